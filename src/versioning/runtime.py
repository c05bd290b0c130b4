"""Detection of the live runtime environment.

Only entry points call :func:`detect_environment`; the resolver itself takes
a :class:`~versioning.models.RuntimeEnvironment` value.
"""

from __future__ import annotations

import glob
import json
import logging
import platform
import subprocess
import sys
from typing import Dict, Mapping, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import RuntimeEnvironment, RuntimeIdentity

logger = logging.getLogger(__name__)

_NODE_PROBE = "JSON.stringify({versions: process.versions, platform: process.platform, arch: process.arch})"

# Python machine names mapped to process.arch values
ARCH_MAPPINGS = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "loongarch64": "loong64",
}

# sys.platform prefixes mapped to process.platform values
PLATFORM_MAPPINGS = {
    "linux": "linux",
    "darwin": "darwin",
    "win32": "win32",
    "cygwin": "win32",
    "freebsd": "freebsd",
    "openbsd": "openbsd",
    "sunos": "sunos",
    "aix": "aix",
}


def get_process_runtime(versions: Mapping[str, str]) -> RuntimeIdentity:
    """Infer the runtime from a process.versions-style mapping."""
    if versions.get("node-webkit"):
        return RuntimeIdentity.NODE_WEBKIT
    if versions.get("electron"):
        return RuntimeIdentity.ELECTRON
    return RuntimeIdentity.NODE


def host_platform() -> str:
    for prefix, name in PLATFORM_MAPPINGS.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def host_arch() -> str:
    machine = platform.machine().lower()
    return ARCH_MAPPINGS.get(machine, machine)


def detect_libc_family() -> Optional[str]:
    """Return ``glibc`` or ``musl`` on Linux, None elsewhere or when unknown."""
    if not sys.platform.startswith("linux"):
        return None
    lib, _ = platform.libc_ver()
    if lib == "glibc":
        return "glibc"
    if lib == "musl" or glob.glob("/lib/ld-musl-*"):
        return "musl"
    return None


def _probe_node(node_binary: str) -> Optional[Dict[str, object]]:
    """Ask a node binary for process.versions, platform and arch."""
    try:
        result = subprocess.run(
            [node_binary, "-p", _NODE_PROBE],
            capture_output=True,
            text=True,
            timeout=Constants.NODE_DETECT_TIMEOUT,
            check=True,
        )
    except FileNotFoundError:
        logger.warning("Runtime binary not found: %s", node_binary)
        return None
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        logger.warning("Failed to query runtime %s: %s", node_binary, exc)
        return None
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        logger.warning("Unexpected output from %s: %s", node_binary, exc)
        return None
    return data if isinstance(data, dict) else None


def detect_environment(node_binary: Optional[str] = None) -> RuntimeEnvironment:
    """Build a RuntimeEnvironment for this machine.

    Versions come from the configured node binary. When it cannot be
    queried, versions are empty and platform/arch come from Python.
    """
    binary = node_binary or Constants.NODE_BINARY
    probe = _probe_node(binary) or {}
    raw_versions = probe.get("versions") or {}
    versions = {str(k): str(v) for k, v in raw_versions.items()} if isinstance(raw_versions, dict) else {}
    environment = RuntimeEnvironment(
        versions=versions,
        platform=str(probe.get("platform") or host_platform()),
        arch=str(probe.get("arch") or host_arch()),
        libc=detect_libc_family(),
    )
    if is_debug_enabled(logger):
        logger.debug(
            "Detected runtime environment",
            extra=extra_context(
                event="runtime_detected",
                component="runtime",
                node=environment.version_of("node"),
                platform=environment.platform,
                arch=environment.arch,
                libc=environment.libc,
            ),
        )
    return environment
