import os
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from stereograph.image_source import Bitmap

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def pattern(width, height, channels=3, seed=0):
    """Deterministic, position-dependent pixels so placement can be checked."""
    rng = np.random.default_rng(seed)
    shape = (height, width) if channels == 1 else (height, width, channels)
    return rng.integers(1, 256, size=shape, dtype=np.uint8)


def make_bitmap(width, height, channels=3, seed=0, name=""):
    return Bitmap(pattern(width, height, channels, seed), name=name)


def png_bytes(pixels):
    ok, buf = cv2.imencode(".png", pixels)
    assert ok
    return buf.tobytes()


class FakeUpload:
    """Stands in for streamlit's UploadedFile."""

    def __init__(self, name, data, type=None, file_id=None):
        self.name = name
        self.type = type
        self.size = len(data)
        self.file_id = file_id
        self._data = data

    def getvalue(self):
        return self._data


@pytest.fixture
def bitmap_factory():
    return make_bitmap


@pytest.fixture
def placeholder():
    return MagicMock(name="placeholder")


@pytest.fixture
def image_pair(tmp_path):
    left = tmp_path / "left.png"
    right = tmp_path / "right.png"
    left.write_bytes(png_bytes(pattern(100, 200, seed=1)))
    right.write_bytes(png_bytes(pattern(150, 200, seed=2)))
    return left, right
