"""N-API (Node-API) support: runtime N-API version and manifest checks."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from manifest.models import ConfigError
from versioning.models import RuntimeEnvironment, parse_semver

logger = logging.getLogger(__name__)

NAPI_PLACEHOLDERS = ("{napi_build_version}", "{node_napi_label}")


def _path_uses_napi(path: Any) -> bool:
    return isinstance(path, str) and any(p in path for p in NAPI_PLACEHOLDERS)


class Napi:
    """N-API collaborator bound to one runtime environment."""

    def __init__(self, environment: Optional[RuntimeEnvironment] = None):
        self.environment = environment or RuntimeEnvironment()

    def get_napi_version(self, target: Optional[str] = None) -> Optional[int]:  # pylint: disable=unused-argument
        """Non-zero N-API version of the runtime, or None if unsupported.

        The version always comes from the live runtime; supporting ``target``
        would need an N-API crosswalk.
        """
        napi = self.environment.version_of("napi")
        if napi:
            try:
                return int(napi)
            except ValueError:
                logger.warning("Ignoring invalid napi version: %s", napi)
        node = self.environment.version_of("node")
        if not node:
            return None
        try:
            sem_ver = parse_semver(node)
        except ValueError:
            return None
        if sem_ver.major == 9 and sem_ver.minor >= 3:
            return 2
        if sem_ver.major == 8:
            return 1
        return None

    @staticmethod
    def get_napi_build_versions_raw(package_json: Mapping[str, Any]) -> Optional[List[Any]]:
        """Declared ``binary.napi_versions`` without duplicates, or None."""
        binary = package_json.get("binary") or {}
        declared = binary.get("napi_versions")
        if not declared:
            return None
        unique: List[Any] = []
        for version in declared:
            if version not in unique:
                unique.append(version)
        return unique

    def get_napi_build_versions(
        self,
        package_json: Mapping[str, Any],
        options: Any = None,
        warnings: bool = False,
    ) -> Optional[List[int]]:
        """Declared N-API versions this runtime can build, or None."""
        supported = self.get_napi_version(getattr(options, "target", None))
        build_versions: List[int] = []
        for version in self.get_napi_build_versions_raw(package_json) or []:
            if supported and isinstance(version, int) and not isinstance(version, bool) and version <= supported:
                build_versions.append(version)
            elif warnings and supported:
                logger.info("This runtime does not support builds for N-API version %s", version)
        if build_versions and getattr(options, "build_latest_napi_version_only", False):
            build_versions = [max(build_versions)]
        return build_versions or None

    def get_best_napi_build_version(self, package_json: Mapping[str, Any], options: Any = None) -> Optional[int]:
        """Highest declared N-API version the runtime supports."""
        versions = self.get_napi_build_versions(package_json, options)
        supported = self.get_napi_version(getattr(options, "target", None))
        if not versions or not supported:
            return None
        candidates = [v for v in versions if v <= supported]
        return max(candidates) if candidates else None

    @staticmethod
    def build_napi_only(package_json: Mapping[str, Any]) -> bool:
        """True when the package publishes N-API builds only."""
        binary = package_json.get("binary") or {}
        package_name = binary.get("package_name")
        return bool(
            binary.get("napi_versions")
            and isinstance(package_name, str)
            and "{node_napi_label}" not in package_name
        )

    def validate_package_json(self, package_json: Mapping[str, Any], options: Any = None) -> None:
        """Check N-API related manifest rules.

        Raises:
            ConfigError: on the first rule violated
        """
        binary = package_json.get("binary") or {}
        module_path_ok = _path_uses_napi(binary.get("module_path"))
        remote_path_ok = _path_uses_napi(binary.get("remote_path"))
        package_name_ok = _path_uses_napi(binary.get("package_name"))
        declared = self.get_napi_build_versions_raw(package_json)
        build_versions = self.get_napi_build_versions(package_json, options, warnings=True)

        for version in declared or []:
            if isinstance(version, bool) or not isinstance(version, int) or version <= 0:
                raise ConfigError("All values specified in napi_versions must be positive integers.")

        if build_versions and (not module_path_ok or (not remote_path_ok and not package_name_ok)):
            raise ConfigError(
                "When napi_versions is specified; module_path and either remote_path or "
                "package_name must contain the substitution string '{napi_build_version}'."
            )

        if (module_path_ok or remote_path_ok or package_name_ok) and not declared:
            raise ConfigError(
                "When the substitution string '{napi_build_version}' is specified in "
                "module_path, remote_path, or package_name; napi_versions must also be specified."
            )

        if declared and not build_versions and self.build_napi_only(package_json):
            raise ConfigError(
                f"The N-API version of this runtime is {self.get_napi_version()}. "
                f"This module supports N-API version(s) {declared}. "
                "This runtime cannot run this module."
            )
