import os
import logging

import pytest
import yaml

from stereograph import utils
from stereograph.utils import DEFAULT_CONFIG, load_config, resolve_path, substitute_env_vars


class TestSubstituteEnvVars:
    def test_uses_environment(self, monkeypatch):
        monkeypatch.setenv("STEREO_TEST_DIR", "/data")
        assert substitute_env_vars("${STEREO_TEST_DIR:/tmp}/out") == "/data/out"

    def test_falls_back_to_default(self, monkeypatch):
        monkeypatch.delenv("STEREO_TEST_DIR", raising=False)
        assert substitute_env_vars("${STEREO_TEST_DIR:/tmp}") == "/tmp"
        assert substitute_env_vars("${STEREO_TEST_DIR:}") == ""

    def test_leaves_non_strings(self):
        assert substitute_env_vars(1.5) == 1.5
        assert substitute_env_vars(False) is False


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "absent.yaml"))
        assert cfg["settings"] == DEFAULT_CONFIG["settings"]
        assert cfg["app"]["footer"] == "© Copyright lavaboosted"
        assert cfg["config_path"] is None

    def test_partial_file_is_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("settings:\n  flip: true\nui:\n  thumbnail_width: 320\n")
        cfg = load_config(str(path))
        assert cfg["settings"]["flip"] is True
        assert cfg["settings"]["scale"] == 1.0
        assert cfg["ui"]["thumbnail_width"] == 320
        assert cfg["ui"]["thumbnail_height"] == 150
        assert cfg["config_path"] == str(path)

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STEREOGRAPH_LEFT_IMAGE", "/pics/l.jpg")
        path = tmp_path / "config.yaml"
        path.write_text("defaults:\n  left: ${STEREOGRAPH_LEFT_IMAGE:LeftEye.jpg}\n")
        assert load_config(str(path))["defaults"]["left"] == "/pics/l.jpg"

    def test_config_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yaml"
        path.write_text("app:\n  title: Test Title\n")
        monkeypatch.setenv("STEREOGRAPH_CONFIG", str(path))
        assert load_config()["app"]["title"] == "Test Title"

    def test_project_config_parses(self, monkeypatch):
        monkeypatch.delenv("STEREOGRAPH_CONFIG", raising=False)
        monkeypatch.delenv("STEREOGRAPH_OUTPUT_DIR", raising=False)
        cfg = load_config(os.path.join(utils.PROJECT_DIR, "config.yaml"))
        assert cfg["defaults"]["right"]
        assert cfg["output"]["dir"] == ""
        assert cfg["settings"]["max_scale"] == 10.0
        assert cfg["app"]["footer"] == "© Copyright lavaboosted"

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("settings: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path))

    def test_defaults_are_not_mutated(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("settings:\n  scale: 3.0\n")
        load_config(str(path))
        assert DEFAULT_CONFIG["settings"]["scale"] == 1.0


def test_resolve_path():
    assert resolve_path("LeftEye.jpg", "/app") == os.path.join("/app", "LeftEye.jpg")
    assert resolve_path(os.path.abspath("x.jpg"), "/app") == os.path.abspath("x.jpg")
    assert resolve_path("", "/app") == ""


def test_configure_logging_adds_file_handler(tmp_path, monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    log_file = tmp_path / "logs" / "stereograph.log"
    cfg = {"logging": {"level": "debug", "file": str(log_file), "format": "%(message)s"}}
    try:
        utils.configure_logging(cfg)
        assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
        assert log_file.parent.is_dir()
    finally:
        for handler in root.handlers:
            handler.close()
