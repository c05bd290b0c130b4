"""Normalization and validation of the ``binary`` section of package.json.

Host definitions changed shape over time: ``production_host`` used to stand
in for ``host``, hosts used to be plain URL strings, and ``bucket``,
``region`` and ``s3ForcePathStyle`` used to live directly under
``binary``. :func:`standardize_config` maps all of these onto the current
shape without touching the caller's document.
"""

from __future__ import annotations

import copy
import logging
import urllib.parse
from typing import Any, Dict, List, Mapping, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from manifest.models import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_TOP_LEVEL = ["main", "version", "name", "binary"]


def is_unset(value: Any) -> bool:
    """True for absent or empty scalars. Mappings and lists always count as set."""
    if isinstance(value, (Mapping, list)):
        return False
    return not value


def standardize_config(package_json: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a canonical copy of ``package_json``.

    - ``production_host`` is copied into ``host`` when ``host`` is unset
    - string hosts become ``{"endpoint": <url>}``
    - legacy ``bucket``/``region``/``s3ForcePathStyle`` move onto ``host``
    """
    canonical = copy.deepcopy(dict(package_json))
    binary = canonical.get("binary")
    if not isinstance(binary, dict):
        return canonical

    if not is_unset(binary.get("production_host")) and is_unset(binary.get("host")):
        binary["host"] = binary["production_host"]

    if is_unset(binary.get("host")):
        return canonical

    for key in Constants.HOST_KEYS:
        if isinstance(binary.get(key), str) and binary[key]:
            binary[key] = {"endpoint": binary[key]}

    host = binary["host"]
    if isinstance(host, dict):
        for field in Constants.LEGACY_HOST_FIELDS:
            value = binary.get(field)
            if value and not isinstance(value, (dict, list)):
                host[field] = value
    return canonical


def _missing_fields(package_json: Mapping[str, Any]) -> List[str]:
    missing = [key for key in REQUIRED_TOP_LEVEL if is_unset(package_json.get(key))]
    binary = package_json.get("binary")
    if is_unset(binary):
        return missing
    if not isinstance(binary, Mapping):
        binary = {}
    if is_unset(binary.get("module_name")):
        missing.append("binary.module_name")
    if is_unset(binary.get("module_path")):
        missing.append("binary.module_path")
    host = binary.get("host")
    if is_unset(host):
        missing.append("binary.host")
    elif not isinstance(host, Mapping) or not host.get("endpoint"):
        missing.append("binary.host.endpoint")
    return missing


def endpoint_protocol(endpoint: Any) -> Optional[str]:
    """Protocol token of ``endpoint`` (``https:``), or None when absent."""
    if not isinstance(endpoint, str):
        return None
    scheme = urllib.parse.urlsplit(endpoint).scheme
    return scheme + ":" if scheme else None


def validate_config(package_json: Mapping[str, Any], options: Any = None, napi: Any = None) -> Dict[str, Any]:
    """Standardize and validate a manifest for prebuilt binary resolution.

    Args:
        package_json: Parsed package.json document (left untouched)
        options: Resolve options, forwarded to the N-API checks
        napi: N-API collaborator exposing ``validate_package_json``

    Returns:
        The canonical manifest

    Raises:
        ConfigError: listing every missing property, on a plain ``http:``
            endpoint, or when the N-API checks fail
    """
    canonical = standardize_config(package_json)
    msg = f"{canonical.get('name')} package.json is not ready for prebuilt binaries:\n"

    missing = _missing_fields(canonical)
    if missing:
        if is_debug_enabled(logger):
            logger.debug(
                "Manifest validation failed",
                extra=extra_context(
                    event="validation",
                    component="manifest",
                    outcome="missing_fields",
                    count=len(missing),
                ),
            )
        raise ConfigError(
            msg + "package.json must declare these properties: \n" + "\n".join(missing),
            missing=missing,
        )

    binary = canonical["binary"]
    for key in Constants.HOST_KEYS:
        host = binary.get(key)
        if is_unset(host):
            continue
        if not isinstance(host, Mapping):
            raise ConfigError(msg + f"'{key}' must be an endpoint URL or an object with an endpoint")
        endpoint = host.get("endpoint")
        protocol = endpoint_protocol(endpoint)
        if protocol == "http:":
            raise ConfigError(msg + f"'{key}' protocol ({protocol}) is invalid - only 'https:' is accepted")

    if napi is not None:
        napi.validate_package_json(canonical, options)
    return canonical
