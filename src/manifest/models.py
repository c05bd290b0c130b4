"""Data models for package manifests and hosting endpoints."""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional


class ConfigError(ValueError):
    """Raised when a package manifest is not ready for prebuilt binaries."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


@dataclass(frozen=True)
class HostDefinition:
    """A hosting endpoint binaries are fetched from or published to."""
    endpoint: str
    bucket: Optional[str] = None
    region: Optional[str] = None
    s3_force_path_style: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HostDefinition":
        """Build from a canonical manifest host mapping."""
        return cls(
            endpoint=data.get("endpoint"),
            bucket=data.get("bucket"),
            region=data.get("region"),
            s3_force_path_style=bool(data.get("s3ForcePathStyle", False)),
        )
