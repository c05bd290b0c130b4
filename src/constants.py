"""Constants used in the project."""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONFIG_ERROR = 2
    ABI_ERROR = 3


class HostNames(Enum):
    """Host names a caller may request for publishing or fetching binaries.

    Args:
        Enum (string): Requested host names.
    """

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PACKAGE_JSON_FILE = "package.json"
    DEFAULT_PACKAGE_NAME = "{module_name}-v{version}-{node_abi}-{platform}-{arch}.tar.gz"
    DEFAULT_REMOTE_PATH = ""
    STAGE_DIR = "build/stage"
    MODULE_SUFFIX = ".node"

    HOST_KEYS = ["host", "staging_host", "development_host"]
    LEGACY_HOST_FIELDS = ["bucket", "region", "s3ForcePathStyle"]
    HOST_NAMES = [name.value for name in HostNames]
    PUBLISH_COMMANDS = ["publish", "unpublish"]

    ENV_S3_HOST = "node_pre_gyp_s3_host"
    ENV_ABI_CROSSWALK = "NODE_PRE_GYP_ABI_CROSSWALK"
    ENV_HOST_MIRROR_TEMPLATE = "npm_config_{module_name}_binary_host_mirror"
    ENV_LOG_LEVEL = "PREBUILT_LOG_LEVEL"
    ENV_CONFIG = "PREBUILT_CONFIG"

    CROSSWALK_PATH: Optional[str] = None
    NODE_BINARY = "node"
    NODE_DETECT_TIMEOUT = 10  # seconds

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL = "INFO"

    CONFIG_FILE_NAMES = ["prebuilt.yml", "prebuilt.yaml"]
    USER_CONFIG_PATH = os.path.join("~", ".config", "prebuilt-locator", "config.yml")


# Config keys and the Constants attribute each one overrides
_CONFIG_KEYS = {
    "default_package_name": "DEFAULT_PACKAGE_NAME",
    "stage_dir": "STAGE_DIR",
    "node_binary": "NODE_BINARY",
    "node_detect_timeout": "NODE_DETECT_TIMEOUT",
    "crosswalk_path": "CROSSWALK_PATH",
    "log_level": "LOG_LEVEL",
}


def _candidate_config_paths(path: Optional[str] = None) -> list[str]:
    """Return config file locations in priority order."""
    if path:
        return [path]
    candidates = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        candidates.append(env_path)
    candidates.extend(os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_NAMES)
    candidates.append(os.path.expanduser(Constants.USER_CONFIG_PATH))
    return candidates


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first readable YAML config file.

    Args:
        path: Explicit config path; skips the default search when given.

    Returns:
        Mapping of config keys, empty when no file is found.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    for candidate in _candidate_config_paths(path):
        if not os.path.isfile(candidate):
            if path:
                logger.warning("Config file not found: %s", candidate)
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to load config %s: %s", candidate, exc)
            continue
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", candidate)
            continue
        logger.debug("Loaded config from %s", candidate)
        return data
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognised config keys onto Constants."""
    for key, attr in _CONFIG_KEYS.items():
        if key not in cfg or cfg[key] is None:
            continue
        value = cfg[key]
        if attr == "NODE_DETECT_TIMEOUT":
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid %s: %r", key, value)
                continue
        setattr(Constants, attr, value)
