import os
import logging
from dataclasses import dataclass
import cv2
import numpy as np

from .errors import DecodeFailed, FileTypeRejected

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff")
ENCODINGS = {
    "png": (".png", "image/png"),
    "jpg": (".jpg", "image/jpeg"),
    "jpeg": (".jpg", "image/jpeg"),
}


@dataclass(frozen=True, eq=False)
class Bitmap:
    """A decoded image. The pixel buffer is read-only; resizing makes a new Bitmap."""

    pixels: np.ndarray
    name: str = ""

    def __post_init__(self):
        if self.pixels.dtype != np.uint8:
            raise DecodeFailed(f"Unsupported pixel type {self.pixels.dtype}")
        if self.pixels.ndim not in (2, 3) or (self.pixels.ndim == 3 and self.pixels.shape[2] not in (3, 4)):
            raise DecodeFailed(f"Unsupported pixel layout {self.pixels.shape}")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else self.pixels.shape[2]

    @property
    def size(self):
        return self.width, self.height

    def __repr__(self):
        return f"Bitmap({self.name or 'unnamed'}, {self.width}x{self.height}x{self.channels})"


def is_image_file(name=None, mime_type=None):
    """True when the MIME type or file extension says the file is an image"""
    if mime_type and mime_type.lower().startswith("image/"):
        return True
    return bool(name) and os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS


JPEG_MAGIC = b"\xff\xd8"
# OpenCV applies the EXIF orientation for any flags except IMREAD_UNCHANGED.
# JPEG has no alpha, so nothing is lost by not decoding it unchanged.
_ORIENTED = cv2.IMREAD_ANYDEPTH | cv2.IMREAD_ANYCOLOR


def _normalize(pixels):
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.dtype == np.uint16:
        pixels = (pixels >> 8).astype(np.uint8)
    return np.ascontiguousarray(pixels)


def decode_image(data, name=""):
    """Decode encoded image bytes (PNG, JPEG, ...) into a Bitmap, keeping alpha.

    JPEGs are turned upright according to their EXIF orientation tag, the way
    a browser shows them.
    """
    if not data:
        raise DecodeFailed(f"{name or 'image'} is empty")
    buf = np.frombuffer(data, dtype=np.uint8)
    flags = _ORIENTED if data[:2] == JPEG_MAGIC else cv2.IMREAD_UNCHANGED
    try:
        pixels = cv2.imdecode(buf, flags)
    except cv2.error as e:
        raise DecodeFailed(f"Could not decode {name or 'image'}: {e}") from e
    if pixels is None:
        raise DecodeFailed(f"Could not decode {name or 'image'}")
    bitmap = Bitmap(_normalize(pixels), name=name)
    logger.debug(f"Decoded {bitmap!r}")
    return bitmap


def read_uploaded_file(uploaded_file):
    """Decode a file-like upload (``name``, ``type``, ``getvalue()``).

    Raises ``FileTypeRejected`` for anything that is not image data.
    """
    name = getattr(uploaded_file, "name", "") or ""
    mime_type = getattr(uploaded_file, "type", None)
    if not is_image_file(name, mime_type):
        raise FileTypeRejected(f"{name or 'upload'} ({mime_type}) is not an image")
    return decode_image(uploaded_file.getvalue(), name=name)


def load_image(path):
    """Read an image from disk"""
    if not os.path.isfile(path):
        raise DecodeFailed(f"{path} does not exist")
    with open(path, "rb") as f:
        return decode_image(f.read(), name=os.path.basename(path))


def encode_image(bitmap, fmt="png", jpeg_quality=95):
    """Encode a Bitmap; returns ``(data, mime_type)``."""
    fmt = fmt.lower()
    if fmt not in ENCODINGS:
        raise ValueError(f"Unsupported output format: {fmt}")
    ext, mime_type = ENCODINGS[fmt]
    pixels = bitmap.pixels
    params = []
    if ext == ".jpg":
        if bitmap.channels == 4:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_BGRA2BGR)
        params = [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)]
    ok, buf = cv2.imencode(ext, pixels, params)
    if not ok:
        raise ValueError(f"Could not encode {bitmap!r} as {fmt}")
    return buf.tobytes(), mime_type


def cover_fit(bitmap, width, height):
    """Scale and centre-crop so the bitmap fills ``width`` x ``height`` (CSS ``object-fit: cover``)."""
    factor = max(width / bitmap.width, height / bitmap.height)
    scaled_w = max(width, int(round(bitmap.width * factor)))
    scaled_h = max(height, int(round(bitmap.height * factor)))
    interpolation = cv2.INTER_AREA if factor < 1 else cv2.INTER_LINEAR
    scaled = cv2.resize(bitmap.pixels, (scaled_w, scaled_h), interpolation=interpolation)
    x = (scaled_w - width) // 2
    y = (scaled_h - height) // 2
    return Bitmap(np.ascontiguousarray(scaled[y:y + height, x:x + width]), name=bitmap.name)
