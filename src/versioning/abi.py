"""ABI tag computation for node, electron and node-webkit targets.

When an explicit node target is not recorded in the crosswalk, the last
known ABI compatible release is inferred:

- io.js 1.x: the nearest recorded 1.x release below the target
- 2.x and later: the first recorded release of the same major
- 0.x stable (even minor): the nearest lower patch of the same minor

This keeps ``--target`` working for runtime releases newer than the bundled
table. A substitution is logged, it is not an error.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Union

from common.logging_utils import extra_context, is_debug_enabled
from versioning.crosswalk import CrosswalkTable, load_default_crosswalk
from versioning.models import AbiError, RuntimeEnvironment, RuntimeIdentity, parse_semver

logger = logging.getLogger(__name__)

RuntimeArg = Union[str, RuntimeIdentity]


def get_electron_abi(runtime: str, target_version: Optional[str]) -> str:
    """Electron patch releases are ABI compatible, so only major.minor counts."""
    if not target_version:
        raise AbiError("Empty target version is not supported if electron is the target.")
    try:
        sem_ver = parse_semver(target_version)
    except ValueError:
        raise AbiError(f"Invalid electron target version: {target_version}") from None
    return f"{runtime}-v{sem_ver.major}.{sem_ver.minor}"


def get_node_webkit_abi(runtime: str, target_version: Optional[str]) -> str:
    if not target_version:
        raise AbiError("Empty target version is not supported if node-webkit is the target.")
    return f"{runtime}-v{target_version}"


def get_node_abi(runtime: str, versions: Mapping[str, object]) -> str:
    """Compute the node ABI tag from a process.versions-style mapping.

    Odd 0.x series get the full version since their ABI changed between
    patches. Otherwise the module ABI number is used, falling back to the v8
    major.minor for versions that predate ``process.versions.modules``.
    """
    node_version = versions.get("node")
    if not node_version:
        raise AbiError("get_node_abi requires a node version")
    try:
        sem_ver = parse_semver(str(node_version))
    except ValueError:
        raise AbiError(f"Invalid node version: {node_version}") from None

    if sem_ver.major == 0 and sem_ver.minor % 2:
        return f"{runtime}-v{node_version}"

    modules = versions.get("modules")
    if modules:
        try:
            return f"{runtime}-v{int(modules)}"
        except (TypeError, ValueError):
            raise AbiError(f"Invalid module ABI version: {modules}") from None

    v8_version = versions.get("v8")
    if not v8_version:
        raise AbiError(f"No module ABI or v8 version known for node {node_version}")
    return "v8-" + ".".join(str(v8_version).split(".")[:2])


def _split_target(target_version: str) -> tuple[int, int, int]:
    parts = target_version.split(".")
    if len(parts) != 3:
        raise AbiError(f"Unknown target version: {target_version}")
    try:
        major, minor, patch = (int(part) for part in parts)
    except ValueError:
        raise AbiError(f"Unknown target version: {target_version}") from None
    return major, minor, patch


def _nearest_iojs_release(crosswalk: CrosswalkTable, minor: int, patch: int) -> Optional[str]:
    """Nearest recorded 1.x release strictly below 1.minor.patch."""
    best = None
    for version in crosswalk.versions_of_major(1):
        _, v_minor, v_patch = (int(part) for part in version.split("."))
        if (v_minor, v_patch) < (minor, patch):
            best = version
        else:
            break
    return best


def find_compatible_target(target_version: str, crosswalk: CrosswalkTable) -> Optional[str]:
    """Return the crosswalk version assumed ABI compatible with the target.

    Returns the target itself on an exact hit and None when nothing
    compatible is recorded.
    """
    if target_version in crosswalk:
        return target_version

    major, minor, patch = _split_target(target_version)
    found = None
    if major == 1:
        found = _nearest_iojs_release(crosswalk, minor, patch)
    elif major >= 2:
        found = crosswalk.first_of_major(major)
    elif major == 0 and minor % 2 == 0:
        for candidate_patch in range(patch - 1, 0, -1):
            candidate = f"{major}.{minor}.{candidate_patch}"
            if candidate in crosswalk:
                found = candidate
                break

    if found is not None:
        logger.warning(
            "Could not find exact ABI match for %s; using %s as ABI compatible target",
            target_version,
            found,
        )
    return found


def get_target_abi(runtime: str, target_version: str, crosswalk: CrosswalkTable) -> str:
    """ABI tag for an explicit node target, via the crosswalk."""
    compatible = find_compatible_target(target_version, crosswalk)
    if compatible is None:
        raise AbiError(f"Unsupported target version: {target_version}")
    entry = crosswalk.get(compatible)
    versions = {
        "node": target_version,
        "v8": entry.v8 + ".0",
        "modules": entry.modules,
    }
    if is_debug_enabled(logger):
        logger.debug(
            "Synthesized runtime versions",
            extra=extra_context(
                event="decision",
                component="abi",
                target=target_version,
                crosswalk_version=compatible,
                modules=entry.modules,
            ),
        )
    return get_node_abi(runtime, versions)


def get_runtime_abi(
    runtime: RuntimeArg,
    target_version: Optional[str] = None,
    environment: Optional[RuntimeEnvironment] = None,
    crosswalk: Optional[CrosswalkTable] = None,
) -> str:
    """Compute the ABI tag for ``runtime``.

    Args:
        runtime: node, electron or node-webkit
        target_version: explicit target; defaults to the live runtime's version
        environment: live runtime versions used when no target is given
        crosswalk: table for explicit node targets; defaults to the bundled one

    Raises:
        AbiError: unknown runtime, missing or unsupported target version
    """
    identity = RuntimeIdentity.parse(runtime)
    environment = environment or RuntimeEnvironment()

    if identity is RuntimeIdentity.NODE_WEBKIT:
        return get_node_webkit_abi(identity.value, target_version or environment.version_of("node-webkit"))
    if identity is RuntimeIdentity.ELECTRON:
        return get_electron_abi(identity.value, target_version or environment.version_of("electron"))

    if not target_version:
        return get_node_abi(identity.value, environment.versions)
    return get_target_abi(identity.value, target_version, crosswalk or load_default_crosswalk())
