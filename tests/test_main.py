import os

import cv2
import numpy as np
import pytest

from stereograph.errors import InvalidScale, NotReady
from stereograph.main import generate_stereograph, main, require_ready
from stereograph.presenter import OutputPresenter
from stereograph.state import AppState
from conftest import make_bitmap


def loaded_state(left=None, right=None, **settings):
    state = AppState()
    if left is not None:
        state.left.finish(state.left.begin_load(), left)
    if right is not None:
        state.right.finish(state.right.begin_load(), right)
    for key, value in settings.items():
        setattr(state.settings, key, value)
    return state


def decode(resource):
    return cv2.imdecode(np.frombuffer(resource.data, np.uint8), cv2.IMREAD_UNCHANGED)


class TestGenerate:
    def test_not_ready_is_a_no_op(self, caplog):
        state = loaded_state(left=make_bitmap(100, 200))
        assert generate_stereograph(state) is None
        assert state.presenter.current is None
        assert not state.presenter.visible
        assert "Images not loaded yet: RIGHT" in caplog.text

    def test_require_ready(self):
        with pytest.raises(NotReady):
            require_ready(AppState())

    def test_generates_side_by_side(self):
        left = make_bitmap(100, 200, seed=1)
        right = make_bitmap(150, 200, seed=2)
        resource = generate_stereograph(loaded_state(left, right))
        assert (resource.width, resource.height) == (250, 200)
        pixels = decode(resource)
        assert np.array_equal(pixels[:, :100], left.pixels)
        assert np.array_equal(pixels[:, 100:], right.pixels)

    def test_reads_settings_at_generation_time(self):
        state = loaded_state(make_bitmap(100, 200, seed=1), make_bitmap(150, 200, seed=2))
        state.settings.flip = True
        state.settings.scale = 0.5
        resource = generate_stereograph(state)
        assert (resource.width, resource.height) == (125, 100)
        assert np.array_equal(decode(resource)[:, :75],
                              cv2.resize(state.right.bitmap.pixels, (75, 100), interpolation=cv2.INTER_NEAREST))

    def test_repeat_generation_is_identical_and_releases(self, tmp_path):
        state = loaded_state(make_bitmap(20, 10, seed=1), make_bitmap(20, 30, seed=2))
        state.presenter = OutputPresenter(output_dir=str(tmp_path))
        first = generate_stereograph(state)
        second = generate_stereograph(state)
        assert first.data == second.data
        assert [p.name for p in tmp_path.iterdir()] == [os.path.basename(second.path)]

    def test_invalid_scale_hides_output(self):
        state = loaded_state(make_bitmap(4, 4), make_bitmap(4, 4))
        generate_stereograph(state)
        state.settings.scale = 0
        with pytest.raises(InvalidScale):
            generate_stereograph(state)
        assert not state.presenter.visible


class TestCli:
    def test_writes_output(self, image_pair, tmp_path):
        left, right = image_pair
        out = tmp_path / "sbs.png"
        assert main([str(left), str(right), "-o", str(out)]) == 0
        assert cv2.imread(str(out)).shape == (200, 250, 3)

    def test_flip_and_scale(self, image_pair, tmp_path):
        left, right = image_pair
        out = tmp_path / "sbs.png"
        assert main([str(left), str(right), "-o", str(out), "--flip", "--scale", "0.5"]) == 0
        written = cv2.imread(str(out))
        assert written.shape == (100, 125, 3)
        expected = cv2.resize(cv2.imread(str(right)), (75, 100), interpolation=cv2.INTER_NEAREST)
        assert np.array_equal(written[:, :75], expected)

    def test_missing_input(self, image_pair, tmp_path):
        left, _ = image_pair
        assert main([str(left), str(tmp_path / "missing.png"), "-o", str(tmp_path / "x.png")]) == 1
        assert not (tmp_path / "x.png").exists()

    @pytest.mark.parametrize("scale", ["0", "-2", "abc", "1000"])
    def test_invalid_scale(self, image_pair, tmp_path, scale):
        left, right = image_pair
        assert main([str(left), str(right), "-o", str(tmp_path / "x.png"), "--scale", scale]) == 1

    def test_config_flag(self, image_pair, tmp_path):
        left, right = image_pair
        config = tmp_path / "config.yaml"
        config.write_text("settings:\n  scale: 2.0\n")
        out = tmp_path / "sbs.png"
        assert main([str(left), str(right), "-o", str(out), "--config", str(config)]) == 0
        assert cv2.imread(str(out)).shape == (400, 500, 3)
