import copy
import logging
import os

import yaml

from nexuslib.constants import CONFIG_DIR, CONFIG_FILE, DEFAULT_PRIORITY, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def _merge_defaults(settings):
    """Deep merge user settings over defaults so new keys are always present"""
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (settings or {}).items():
        if isinstance(values, dict) and isinstance(merged_settings.get(section), dict):
            for key, value in values.items():
                if isinstance(value, dict) and isinstance(merged_settings[section].get(key), dict):
                    merged_settings[section][key].update(value)
                else:
                    merged_settings[section][key] = value
        else:
            merged_settings[section] = values
    return merged_settings


def _apply_env_overrides(settings):
    igdb = settings["apis"]["igdb"]
    if os.environ.get("IGDB_CLIENT_ID"):
        igdb["client_id"] = os.environ["IGDB_CLIENT_ID"]
    if os.environ.get("IGDB_CLIENT_SECRET"):
        igdb["client_secret"] = os.environ["IGDB_CLIENT_SECRET"]
    return settings


def load_settings(force=False, config_file=None):
    global _cached_settings

    if _cached_settings and not force and config_file is None:
        return _cached_settings

    config_file = config_file or CONFIG_FILE

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = _merge_defaults(yaml.safe_load(yaml_file) or {})
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        try:
            os.makedirs(os.path.dirname(config_file) or CONFIG_DIR, exist_ok=True)
            with open(config_file, "w") as yaml_file:
                yaml.dump(settings, yaml_file)
        except OSError as e:
            logger.warning(f"Could not write default configuration to {config_file}: {e}")

    settings = _apply_env_overrides(settings)
    _cached_settings = settings
    return settings


def save_settings(settings, config_file=None):
    config_file = config_file or CONFIG_FILE
    with open(config_file, "w") as yaml_file:
        yaml.dump(settings, yaml_file)
    reload_conf()


def verify_settings(section, data):
    success = True
    errors = []
    if section == "scan":
        for name in data.get("priority", []):
            if name not in DEFAULT_PRIORITY:
                success = False
                errors.append({"path": "scan/priority", "error": f"Unknown source {name}."})
        for name in data.get("enabled_sources", []):
            if name not in DEFAULT_PRIORITY:
                success = False
                errors.append({"path": "scan/enabled_sources", "error": f"Unknown source {name}."})
        for key in ("max_workers", "metadata_workers"):
            if key in data and (not isinstance(data[key], int) or data[key] < 1):
                success = False
                errors.append({"path": f"scan/{key}", "error": f"{key} must be a positive integer."})
    elif section == "metadata":
        threshold = data.get("similarity_threshold")
        if threshold is not None and not 0 < threshold <= 1:
            success = False
            errors.append({"path": "metadata/similarity_threshold", "error": "Threshold must be in (0, 1]."})
        expiry = data.get("cache_expiry_hours")
        if expiry is not None and expiry <= 0:
            success = False
            errors.append({"path": "metadata/cache_expiry_hours", "error": "Expiry must be positive."})
    return success, errors


def set_source_priority(priority):
    settings = load_settings()
    success, errors = verify_settings("scan", {"priority": priority})
    if not success:
        return success, errors
    # Sources missing from the new order keep their relative position at the end
    remaining = [name for name in settings["scan"]["priority"] if name not in priority]
    settings["scan"]["priority"] = list(priority) + remaining
    save_settings(settings)
    return success, errors


def reload_conf():
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True)
