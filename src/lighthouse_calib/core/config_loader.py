import copy
import json
import logging
import os

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the startup configuration cannot be used."""


DEFAULTS = {
    "calfile": "lighthouse_calibration.json",
    "trajectory_file": None,
    "offline": False,
    "frames": {
        "world": "world",
        "vive": "vive",
        "body": "body",
        "truth": "truth"
    },
    "thresholds": {
        "count": 4,           # min pulses per measurement
        "angle": 60.0,        # degrees
        "duration": 1.0       # microseconds
    },
    "resolution": 0.1,
    "correct": False,
    "offset": [0.0, 0.0, 0.0],
    "idle_timeout": 1.0,
    "solver": {
        "fov": 2.0944,
        "image_width": 1.0,
        "min_correspondences": 7,
        "ransac_iterations": 100,
        "ransac_reprojection_error": 0.005,
        "ransac_confidence": 0.99,
        "min_alignment_correspondences": 3
    },
    "lighthouses": [],
    "trackers": []
}


def merge_config(user_config):
    """
    Merge user values over the defaults. Dict sections are merged one level deep,
    everything else is replaced.
    """
    config = copy.deepcopy(DEFAULTS)
    for key, value in user_config.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value
    validate_config(config)
    return config


def validate_config(config):
    res = config.get("resolution")
    if not isinstance(res, (int, float)) or res <= 0:
        raise ConfigError(f"resolution must be a positive number, got {res!r}")
    offset = config.get("offset")
    if not isinstance(offset, (list, tuple)) or len(offset) != 3:
        raise ConfigError("offset must have exactly 3 elements")
    for key in ("world", "vive", "body", "truth"):
        if not config["frames"].get(key):
            raise ConfigError(f"missing frames/{key}")
    for lh in config.get("lighthouses", []):
        if "serial" not in lh:
            raise ConfigError("lighthouse entry without serial")
        if "transform" in lh and len(lh["transform"]) != 7:
            raise ConfigError(f"lighthouse {lh['serial']}: transform must have 7 elements")
    for tr in config.get("trackers", []):
        if "serial" not in tr:
            raise ConfigError("tracker entry without serial")
        if "extrinsics" in tr and len(tr["extrinsics"]) != 7:
            raise ConfigError(f"tracker {tr['serial']}: extrinsics must have 7 elements")


def load_config(config_path="config.json"):
    """
    Loads configuration from a JSON file.
    If the file doesn't exist, returns default configuration.
    A file that exists but is malformed raises ConfigError.
    """
    if not os.path.exists(config_path):
        possible_paths = [
            os.path.join("..", config_path),
            os.path.join(os.path.dirname(__file__), "..", "..", "..", config_path)
        ]
        for p in possible_paths:
            if os.path.exists(p):
                config_path = p
                break
        else:
            logger.warning(f"Config file {config_path} not found. Using defaults.")
            return copy.deepcopy(DEFAULTS)

    try:
        with open(config_path, 'r') as f:
            user_config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Error loading config {config_path}: {e}") from e
    if not isinstance(user_config, dict):
        raise ConfigError(f"Config {config_path} must contain a JSON object")

    config = merge_config(user_config)
    logger.info(f"Loaded config from {config_path}")
    return config
