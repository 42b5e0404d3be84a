import os
import re
import copy
import logging
from pathlib import Path
import yaml

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(PACKAGE_DIR)

DEFAULT_CONFIG = {
    "app": {
        "title": "Stereograph Generator",
        "footer": "© Copyright lavaboosted",
    },
    "defaults": {
        "left": "LeftEye.jpg",
        "right": "RightEye.jpg",
        "timeout": 10.0,
    },
    "settings": {
        "scale": 1.0,
        "flip": False,
        "max_scale": 10.0,
    },
    "output": {
        "format": "png",
        "dir": "",
        "jpeg_quality": 95,
    },
    "ui": {
        "thumbnail_width": 200,
        "thumbnail_height": 150,
        "scroll_to_top_on_drag": True,
    },
    "logging": {
        "level": "INFO",
        "file": "",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

def ensure_dirs(*paths):
    for p in paths:
        Path(p).mkdir(parents=True, exist_ok=True)

def substitute_env_vars(text):
    """Substitute environment variables in text like ${VAR:default}"""
    if isinstance(text, str):
        def replace_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) else ""
            return os.getenv(var_name, default_value)
        return re.sub(r'\$\{([^:}]+):?([^}]*)\}', replace_var, text)
    return text

def _merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def find_config(path="config.yaml"):
    """Return the first existing config file: as given, then next to the package."""
    candidates = [path]
    if not os.path.isabs(path):
        candidates.append(os.path.join(PROJECT_DIR, path))
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    return None

def load_config(path=None):
    """Load the YAML config over the built-in defaults.

    The path defaults to ``$STEREOGRAPH_CONFIG`` or ``config.yaml``. A config
    that cannot be found yields the defaults; a config that cannot be parsed
    raises ``yaml.YAMLError``.
    """
    path = path or os.getenv("STEREOGRAPH_CONFIG", "config.yaml")
    config_path = find_config(path)
    loaded = {}
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}

    # Substitute environment variables in the config
    def process_config(obj):
        if isinstance(obj, dict):
            return {k: process_config(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [process_config(item) for item in obj]
        else:
            return substitute_env_vars(obj)

    config = _merge(DEFAULT_CONFIG, process_config(loaded))
    config["config_path"] = config_path
    return config

def resolve_path(path, base_dir=PROJECT_DIR):
    """Resolve a config-relative path against the project directory."""
    if not path or os.path.isabs(path):
        return path
    return os.path.join(base_dir, path)

def configure_logging(cfg):
    log_cfg = cfg.get("logging", {})
    handlers = [logging.StreamHandler()]
    log_file = log_cfg.get("file")
    if log_file:
        ensure_dirs(os.path.dirname(os.path.abspath(log_file)))
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=str(log_cfg.get("level") or "INFO").upper(),
        format=log_cfg.get("format") or DEFAULT_CONFIG["logging"]["format"],
        handlers=handlers,
    )
