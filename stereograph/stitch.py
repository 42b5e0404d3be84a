import os
import math
import logging
import cv2
import numpy as np

from .image_source import Bitmap, load_image, encode_image
from .state import parse_scale

logger = logging.getLogger(__name__)

_CONVERSIONS = {
    (1, 3): cv2.COLOR_GRAY2BGR,
    (1, 4): cv2.COLOR_GRAY2BGRA,
    (3, 4): cv2.COLOR_BGR2BGRA,
}


def scaled_size(width, height, scale):
    """round(w * scale), round(h * scale), rounding halves up and never below one pixel"""
    return (
        max(1, int(math.floor(width * scale + 0.5))),
        max(1, int(math.floor(height * scale + 0.5))),
    )


def scale_bitmap(bitmap, scale):
    """Nearest-neighbour rescale. A scale of 1.0 returns the same Bitmap untouched."""
    if scale == 1.0:
        return bitmap
    w, h = scaled_size(bitmap.width, bitmap.height, scale)
    pixels = cv2.resize(bitmap.pixels, (w, h), interpolation=cv2.INTER_NEAREST)
    return Bitmap(pixels, name=bitmap.name)


def _with_channels(pixels, channels):
    have = 1 if pixels.ndim == 2 else pixels.shape[2]
    if have == channels:
        return pixels
    return cv2.cvtColor(pixels, _CONVERSIONS[(have, channels)])


def compose(left, right, scale=1.0, flip=False, max_scale=10.0):
    """Place two bitmaps side by side, each centred vertically.

    Both are scaled first (nearest neighbour), then swapped when ``flip`` is
    set. The output is as wide as both and as tall as the taller one; the seam
    is a hard edge and uncovered rows stay zero.
    """
    scale = parse_scale(scale, max_scale)
    first = scale_bitmap(left, scale)
    second = scale_bitmap(right, scale)
    if flip:
        first, second = second, first

    channels = max(first.channels, second.channels)
    out_w = first.width + second.width
    out_h = max(first.height, second.height)
    shape = (out_h, out_w) if channels == 1 else (out_h, out_w, channels)
    out = np.zeros(shape, dtype=np.uint8)

    x = 0
    for bitmap in (first, second):
        y = (out_h - bitmap.height) // 2
        out[y:y + bitmap.height, x:x + bitmap.width] = _with_channels(bitmap.pixels, channels)
        x += bitmap.width

    logger.debug(f"Composed {first!r} + {second!r} -> {out_w}x{out_h} (scale={scale:g}, flip={flip})")
    return Bitmap(out, name="stereograph")


def stack_lr(left_path, right_path, out_path, scale=1.0, flip=False, fmt=None, jpeg_quality=95, max_scale=10.0):
    """Compose two image files into ``out_path``; the format follows the extension unless given."""
    left = load_image(left_path)
    right = load_image(right_path)
    out = compose(left, right, scale=scale, flip=flip, max_scale=max_scale)
    if fmt is None:
        ext = os.path.splitext(out_path)[1].lower().lstrip(".")
        fmt = ext if ext in ("png", "jpg", "jpeg") else "png"
    data, _ = encode_image(out, fmt, jpeg_quality)
    out_dir = os.path.dirname(os.path.abspath(out_path))
    os.makedirs(out_dir, exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(data)
    return out
