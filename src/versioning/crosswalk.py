"""ABI crosswalk: released runtime versions mapped to their ABI identifiers.

The bundled table lives next to this module as ``abi_crosswalk.json``. The
``NODE_PRE_GYP_ABI_CROSSWALK`` environment variable (or the
``crosswalk_path`` config key) points at a replacement table, which tests use
to emulate a table that predates the running runtime.
"""

from __future__ import annotations

import functools
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from constants import Constants

logger = logging.getLogger(__name__)

BUNDLED_CROSSWALK = os.path.join(os.path.dirname(os.path.abspath(__file__)), "abi_crosswalk.json")


@dataclass(frozen=True)
class CrosswalkEntry:
    """ABI identifiers recorded for one released runtime version."""
    v8: str
    node_abi: Optional[int] = None

    @property
    def modules(self) -> Optional[int]:
        """Module ABI number, or None for versions predating the concept."""
        if self.node_abi is not None and self.node_abi > 1:
            return self.node_abi
        return None


def _version_key(version: str) -> Optional[Tuple[int, int, int]]:
    parts = version.split(".")
    if len(parts) != 3:
        return None
    try:
        return int(parts[0]), int(parts[1]), int(parts[2])
    except ValueError:
        return None


class CrosswalkTable:
    """Read-only lookup over crosswalk entries.

    The major-version index is built once at construction and maps each
    major number to the lowest full version recorded for it.
    """

    def __init__(self, entries: Mapping[str, Any]):
        self._entries: Dict[str, CrosswalkEntry] = {}
        for version, raw in entries.items():
            if isinstance(raw, CrosswalkEntry):
                self._entries[version] = raw
                continue
            if not isinstance(raw, Mapping) or "v8" not in raw:
                raise ValueError(f"Malformed crosswalk entry for {version!r}")
            node_abi = raw.get("node_abi")
            self._entries[version] = CrosswalkEntry(
                v8=str(raw["v8"]),
                node_abi=int(node_abi) if node_abi is not None else None,
            )

        self._majors: Dict[int, str] = {}
        for version in self._entries:
            key = _version_key(version)
            if key is None:
                continue
            current = self._majors.get(key[0])
            if current is None or key < _version_key(current):
                self._majors[key[0]] = version

    @classmethod
    def from_file(cls, path: str) -> "CrosswalkTable":
        """Load a table from a JSON file."""
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Crosswalk {path} must be a JSON object")
        logger.debug("Loaded ABI crosswalk with %d entries from %s", len(data), path)
        return cls(data)

    def __contains__(self, version: object) -> bool:
        return version in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, version: str) -> Optional[CrosswalkEntry]:
        return self._entries.get(version)

    def first_of_major(self, major: int) -> Optional[str]:
        """Lowest recorded version for ``major``, if any."""
        return self._majors.get(major)

    def versions_of_major(self, major: int) -> List[str]:
        """Recorded versions of ``major``, ascending."""
        keyed = []
        for version in self._entries:
            key = _version_key(version)
            if key is not None and key[0] == major:
                keyed.append((key, version))
        return [version for _, version in sorted(keyed)]


def crosswalk_path(environ: Optional[Mapping[str, str]] = None) -> str:
    """Path of the crosswalk to load: env override, then config, then bundled."""
    env = os.environ if environ is None else environ
    return env.get(Constants.ENV_ABI_CROSSWALK) or Constants.CROSSWALK_PATH or BUNDLED_CROSSWALK


@functools.lru_cache(maxsize=None)
def _load_cached(path: str) -> CrosswalkTable:
    return CrosswalkTable.from_file(path)


def load_default_crosswalk(environ: Optional[Mapping[str, str]] = None) -> CrosswalkTable:
    """Process-wide crosswalk, loaded once per distinct path.

    ``environ`` defaults to ``os.environ``.
    """
    return _load_cached(crosswalk_path(environ))
