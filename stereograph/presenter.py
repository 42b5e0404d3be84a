import os
import logging
import traceback
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from .image_source import encode_image

logger = logging.getLogger(__name__)


@dataclass
class OutputResource:
    data: bytes
    mime_type: str
    width: int
    height: int
    path: Optional[str] = None
    owned: bool = False

    @property
    def file_name(self) -> str:
        if self.path:
            return os.path.basename(self.path)
        return "stereograph." + ("jpg" if self.mime_type == "image/jpeg" else "png")


class OutputPresenter:
    """Holds the one displayed stereograph and releases it when replaced."""

    def __init__(self, output_dir=None, fmt="png", jpeg_quality=95):
        self.output_dir = output_dir
        self.fmt = fmt
        self.jpeg_quality = jpeg_quality
        self.current: Optional[OutputResource] = None
        self.visible = False

    def hide(self):
        self.visible = False

    def release(self):
        """Drop the current resource, deleting its file if this presenter wrote it."""
        resource, self.current = self.current, None
        if resource is None:
            return
        if resource.owned and resource.path and os.path.exists(resource.path):
            try:
                os.remove(resource.path)
                logger.debug(f"Released output file {resource.path}")
            except OSError as e:
                logger.warning(f"Could not remove previous output {resource.path}: {e}")

    def present(self, bitmap) -> OutputResource:
        logger.info(f"Presenting {bitmap.width}x{bitmap.height} stereograph")
        data, mime_type = encode_image(bitmap, self.fmt, self.jpeg_quality)
        path = None
        if self.output_dir:
            os.makedirs(self.output_dir, exist_ok=True)
            ext = ".jpg" if mime_type == "image/jpeg" else ".png"
            path = os.path.join(self.output_dir, f"stereograph_{uuid4().hex[:8]}{ext}")
            try:
                with open(path, "wb") as f:
                    f.write(data)
            except OSError as e:
                logger.error(f"Failed to write output file {path}: {e}")
                logger.error(traceback.format_exc())
                path = None
        resource = OutputResource(
            data=data,
            mime_type=mime_type,
            width=bitmap.width,
            height=bitmap.height,
            path=path,
            owned=path is not None,
        )
        self.release()
        self.current = resource
        self.visible = True
        return resource
