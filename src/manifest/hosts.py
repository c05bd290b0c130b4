"""Selection of the hosting endpoint for a resolution.

A package may declare ``host`` (production) plus optional ``staging_host``
and ``development_host``. The requested host name comes from the
``node_pre_gyp_s3_host`` environment variable, else the ``s3_host`` option;
values other than production/staging/development are ignored. Publishing
without an explicit request defaults to the lowest declared host so that
releases are not pushed to production by accident.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any, Iterable, Mapping, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, HostNames
from manifest.config import is_unset
from manifest.models import HostDefinition

logger = logging.getLogger(__name__)


def requested_host_name(env_host: Optional[str], cli_host: Optional[str]) -> Optional[str]:
    """Valid host name from the environment, else the CLI, else None."""
    for candidate in (env_host, cli_host):
        if candidate in Constants.HOST_NAMES:
            return candidate
    return None


def select_host(
    binary: Mapping[str, Any],
    env_host: Optional[str] = None,
    cli_host: Optional[str] = None,
    commands: Optional[Iterable[str]] = None,
) -> HostDefinition:
    """Choose the host definition from a canonical ``binary`` section."""
    requested = requested_host_name(env_host, cli_host)
    staging = not is_unset(binary.get("staging_host"))
    development = not is_unset(binary.get("development_host"))
    selected_key = "host"

    if requested == HostNames.STAGING.value and staging:
        selected_key = "staging_host"
    elif requested == HostNames.DEVELOPMENT.value and development:
        selected_key = "development_host"
    elif requested is None and (staging or development):
        if any(cmd in Constants.PUBLISH_COMMANDS for cmd in (commands or [])):
            selected_key = "development_host" if development else "staging_host"

    if is_debug_enabled(logger):
        logger.debug(
            "Selected host",
            extra=extra_context(
                event="decision",
                component="hosts",
                requested=requested,
                selected=selected_key,
            ),
        )
    return HostDefinition.from_mapping(binary[selected_key])


def mirror_env_name(module_name: str) -> str:
    """Environment variable holding a mirror endpoint for ``module_name``."""
    return Constants.ENV_HOST_MIRROR_TEMPLATE.format(module_name=module_name.replace("-", "_"))


def apply_mirror(
    host: HostDefinition,
    module_name: str,
    environ: Optional[Mapping[str, str]] = None,
) -> HostDefinition:
    """Replace the endpoint with the module's mirror when one is configured."""
    env = os.environ if environ is None else environ
    mirror = env.get(mirror_env_name(module_name))
    if not mirror:
        return host
    logger.info("Using binary host mirror for %s: %s", module_name, mirror)
    return dataclasses.replace(host, endpoint=mirror)
