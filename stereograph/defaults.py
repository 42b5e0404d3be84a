import os
import logging
import traceback
import httpx

from .errors import DecodeFailed, DefaultLoadFailed
from .image_source import decode_image
from .state import Side
from .utils import PROJECT_DIR, resolve_path

logger = logging.getLogger(__name__)


def _is_url(location):
    return location.startswith(("http://", "https://"))


def fetch_default_image(location, base_dir=None, client=None, timeout=10.0):
    """Load a default image from a path (relative to ``base_dir``) or an http(s) URL."""
    if not location:
        raise DefaultLoadFailed("No default image configured")
    name = os.path.basename(location.rstrip("/"))
    try:
        if _is_url(location):
            if client is None:
                with httpx.Client(timeout=timeout, follow_redirects=True) as c:
                    response = c.get(location)
            else:
                response = client.get(location)
            response.raise_for_status()
            data = response.content
        else:
            path = resolve_path(location, base_dir or PROJECT_DIR)
            with open(path, "rb") as f:
                data = f.read()
        return decode_image(data, name=name)
    except (httpx.HTTPError, OSError, DecodeFailed) as e:
        raise DefaultLoadFailed(f"{location}: {e}") from e


def load_default_images(state, zones, cfg, client=None, base_dir=None):
    """Route both configured default images into their zones.

    Both zones show the loading message first; each image then loads on its
    own and a failure only affects its own zone. Returns the sides that loaded.
    """
    defaults_cfg = cfg["defaults"]
    state.defaults_requested = True
    tokens = {}
    for side in Side:
        location = defaults_cfg.get(side.value)
        tokens[side] = state.slot(side).begin_load(location)
        zones[side].show_loading()

    loaded = []
    for side in Side:
        location = defaults_cfg.get(side.value)
        zone = zones[side]
        try:
            bitmap = fetch_default_image(
                location,
                base_dir=base_dir,
                client=client,
                timeout=float(defaults_cfg.get("timeout") or 10.0),
            )
        except DefaultLoadFailed as e:
            logger.warning(f"Default {side.label} image failed to load: {e}")
            zone.fail(tokens[side], f"Failed to load default {side.label} image")
            continue
        except Exception as e:
            logger.error(f"Unexpected error loading default {side.label} image: {e}")
            logger.error(traceback.format_exc())
            zone.fail(tokens[side], f"Failed to load default {side.label} image")
            continue
        if zone.deliver(tokens[side], bitmap):
            loaded.append(side)
    return loaded
