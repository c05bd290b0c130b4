"""Data models for runtime identity, live runtime versions and ABI errors."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import semantic_version


class AbiError(ValueError):
    """Raised when an ABI tag cannot be computed for a runtime/target pair."""


class RuntimeIdentity(Enum):
    """Runtimes a native addon can be built for."""
    NODE = "node"
    ELECTRON = "electron"
    NODE_WEBKIT = "node-webkit"

    @classmethod
    def parse(cls, value: "str | RuntimeIdentity") -> "RuntimeIdentity":
        """Return the identity for ``value`` or raise AbiError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise AbiError(f"Unknown Runtime: '{value}'") from None


@dataclass(frozen=True)
class RuntimeEnvironment:
    """Snapshot of the runtime a resolution is performed for.

    ``versions`` mirrors ``process.versions`` of a JavaScript runtime
    (``node``, ``v8``, ``modules``, ``napi``, ``electron``, ``node-webkit``).
    Only the outermost caller builds this from the real machine; everything
    else receives it as a value.
    """
    versions: Dict[str, str] = field(default_factory=dict)
    platform: str = ""
    arch: str = ""
    libc: Optional[str] = None

    def version_of(self, key: str) -> Optional[str]:
        value = self.versions.get(key)
        if value is None or value == "":
            return None
        return str(value)


def parse_semver(text: str) -> semantic_version.Version:
    """Parse a semantic version, tolerating a leading ``v`` or ``=``.

    Raises:
        ValueError: text is not a full ``major.minor.patch`` version.
    """
    cleaned = str(text).strip().lstrip("=v").strip()
    return semantic_version.Version(cleaned)
