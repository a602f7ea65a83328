"""Constants used in the project."""

import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "JNLPCACHE_LOG_LEVEL"
    ENV_CONFIG = "JNLPCACHE_CONFIG"
    DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "jnlpcache", "config.yml")

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "jnlpcache/0.7"
    CHUNK_SIZE = 1024  # Bytes copied per read while updating a cached resource

    JNLP_MIME_TYPE = "application/x-java-jnlp-file"
    STRICT_MIME = False
    DEFAULT_SPEC_VERSIONS = "1.0+"

    # Cache layout
    CACHE_DIR: Optional[str] = None  # None selects the platform default
    APP_DIR_NAME = "app"
    ENTRY_RECORD_NAME = "entry.xml"
    RESOURCE_DIR_NAME = "Resources"
    LIBRARY_DIR_NAME = "Libraries"

    # Entry meta info keys
    METAKEY_DESCRIPTOR = "descriptor"
    METAKEY_ICON = "icon"


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# Maps "section.key" paths in the YAML config onto Constants attributes.
_CONFIG_KEYS = {
    ("http", "timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "user_agent"): ("USER_AGENT", str),
    ("cache", "directory"): ("CACHE_DIR", str),
    ("cache", "chunk_size"): ("CHUNK_SIZE", int),
    ("parser", "strict_mime"): ("STRICT_MIME", _to_bool),
}


def _config_path() -> str:
    """Return the config file path from the environment or the default location."""
    path = os.environ.get(Constants.ENV_CONFIG) or Constants.DEFAULT_CONFIG_PATH
    return os.path.expanduser(path)


def _apply_config(cfg: Dict[str, Any]) -> None:
    """Apply a parsed config mapping onto Constants, ignoring unknown keys."""
    for (section, key), (attr, cast) in _CONFIG_KEYS.items():
        block = cfg.get(section)
        if not isinstance(block, dict) or key not in block:
            continue
        value = block[key]
        if value is None:
            continue
        try:
            setattr(Constants, attr, cast(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring bad config value for %s.%s: %r", section, key, value)


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML configuration and apply it onto Constants.

    Args:
        path: Optional explicit config path; defaults to JNLPCACHE_CONFIG or
            ~/.config/jnlpcache/config.yml.

    Returns:
        The parsed config mapping (empty if no usable file was found).
    """
    cfg_path = os.path.expanduser(path) if path else _config_path()
    if not os.path.isfile(cfg_path):
        return {}

    try:
        with open(cfg_path, "r", encoding="utf-8") as fh:
            cfg = yaml.safe_load(fh) or {}
    except OSError as exc:
        logger.debug("Config not loaded from %s: %s", cfg_path, exc)
        return {}
    except yaml.YAMLError as exc:
        logger.debug("Config not parsed from %s: %s", cfg_path, exc)
        return {}

    if not isinstance(cfg, dict):
        return {}
    _apply_config(cfg)
    return cfg


_load_yaml_config()
