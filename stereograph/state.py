import math
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from .errors import InvalidScale
from .image_source import Bitmap
from .presenter import OutputPresenter
from .utils import resolve_path

logger = logging.getLogger(__name__)


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def label(self) -> str:
        return self.value.upper()


class SlotState(Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Slot:
    """One eye's image.

    Every load is tagged with a token from ``begin_load``; ``finish`` and
    ``fail`` ignore tokens from loads that have since been superseded.
    """

    def __init__(self, side: Side):
        self.side = side
        self.state = SlotState.EMPTY
        self.bitmap: Optional[Bitmap] = None
        self.error: Optional[str] = None
        self.source = None
        # (bitmap, size, png bytes) of the last thumbnail shown for this slot
        self.thumbnail = None
        self._token = 0

    def begin_load(self, source=None) -> int:
        self._token += 1
        self.state = SlotState.LOADING
        self.source = source
        self.error = None
        logger.debug(f"{self.side.label} slot loading {source!r} (token {self._token})")
        return self._token

    def is_current(self, token: int) -> bool:
        return token == self._token

    def finish(self, token: int, bitmap: Bitmap) -> bool:
        if not self.is_current(token):
            logger.info(f"Discarding stale {self.side.label} image {bitmap!r} (token {token}, current {self._token})")
            return False
        self.bitmap = bitmap
        self.state = SlotState.READY
        self.thumbnail = None
        logger.debug(f"{self.side.label} slot ready: {bitmap.width}x{bitmap.height}")
        return True

    def fail(self, token: int, message: str) -> bool:
        if not self.is_current(token):
            logger.info(f"Discarding stale {self.side.label} failure (token {token}): {message}")
            return False
        self.bitmap = None
        self.error = message
        self.thumbnail = None
        self.state = SlotState.FAILED
        return True

    @property
    def ready(self) -> bool:
        return self.state is SlotState.READY

    def __repr__(self):
        return f"Slot({self.side.label}, {self.state.value})"


def parse_scale(value, max_scale=10.0) -> float:
    """Validate a scale factor: a finite number in (0, max_scale]."""
    try:
        scale = float(value)
    except (TypeError, ValueError):
        raise InvalidScale(f"Image scale must be a number, got {value!r}")
    if not math.isfinite(scale) or scale <= 0:
        raise InvalidScale(f"Image scale must be a positive number, got {value!r}")
    if scale > max_scale:
        raise InvalidScale(f"Image scale {scale:g} exceeds the maximum of {max_scale:g}")
    return scale


@dataclass
class Settings:
    scale: float = 1.0
    flip: bool = False
    max_scale: float = 10.0

    def validated_scale(self) -> float:
        return parse_scale(self.scale, self.max_scale)


@dataclass
class AppState:
    left: Slot = field(default_factory=lambda: Slot(Side.LEFT))
    right: Slot = field(default_factory=lambda: Slot(Side.RIGHT))
    settings: Settings = field(default_factory=Settings)
    presenter: OutputPresenter = field(default_factory=OutputPresenter)
    defaults_requested: bool = False

    @classmethod
    def from_config(cls, cfg):
        settings_cfg = cfg["settings"]
        output_cfg = cfg["output"]
        return cls(
            settings=Settings(
                scale=float(settings_cfg["scale"]),
                flip=bool(settings_cfg["flip"]),
                max_scale=float(settings_cfg["max_scale"]),
            ),
            presenter=OutputPresenter(
                output_dir=resolve_path(output_cfg["dir"]) or None,
                fmt=output_cfg["format"],
                jpeg_quality=output_cfg["jpeg_quality"],
            ),
        )

    def slot(self, side: Side) -> Slot:
        return self.left if side is Side.LEFT else self.right

    @property
    def slots(self):
        return self.left, self.right

    @property
    def ready(self) -> bool:
        return self.left.ready and self.right.ready
