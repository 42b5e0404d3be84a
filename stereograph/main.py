import sys
import logging
import argparse
import traceback

from .errors import NotReady, StereographError
from .stitch import compose, stack_lr
from .state import parse_scale
from .utils import load_config, configure_logging

logger = logging.getLogger(__name__)


def require_ready(state):
    missing = [slot.side.label for slot in state.slots if not slot.ready]
    if missing:
        raise NotReady(f"Images not loaded yet: {', '.join(missing)}")
    return state.left.bitmap, state.right.bitmap


def generate_stereograph(state):
    """Compose the two loaded images with the current settings and present the result.

    The output is hidden first. Returns the presented resource, or None
    when either image is not ready (logged, nothing shown). Raises
    ``InvalidScale`` for an unusable scale factor.
    """
    state.presenter.hide()
    settings = state.settings
    try:
        left, right = require_ready(state)
    except NotReady as e:
        logger.warning(str(e))
        return None
    stereograph = compose(left, right, scale=settings.scale, flip=settings.flip, max_scale=settings.max_scale)
    return state.presenter.present(stereograph)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="stereograph",
        description="Combine a left and right eye image side by side for parallel or cross-view viewing.",
    )
    parser.add_argument("left", help="left eye image")
    parser.add_argument("right", help="right eye image")
    parser.add_argument("-o", "--output", default="stereograph.png", help="output image (.png or .jpg)")
    parser.add_argument("--scale", default=None, help="scale both images before stacking (default from config)")
    parser.add_argument("--flip", action="store_true", default=None, help="swap the left and right images (cross-view)")
    parser.add_argument("--config", default=None, help="path to a config.yaml")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    configure_logging(cfg)
    settings_cfg = cfg["settings"]
    flip = settings_cfg["flip"] if args.flip is None else args.flip
    try:
        scale = parse_scale(settings_cfg["scale"] if args.scale is None else args.scale, float(settings_cfg["max_scale"]))
        out = stack_lr(
            args.left,
            args.right,
            args.output,
            scale=scale,
            flip=bool(flip),
            jpeg_quality=cfg["output"]["jpeg_quality"],
            max_scale=float(settings_cfg["max_scale"]),
        )
    except StereographError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Failed to write {args.output}: {e}")
        logger.error(traceback.format_exc())
        return 1
    logger.info(f"Wrote {out.width}x{out.height} stereograph to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
