"""Resolution of a package manifest into the location of its prebuilt binary.

:func:`evaluate` is the single entry point: it validates the manifest,
computes the ABI tags, selects the hosting endpoint and expands every
template into concrete paths and URLs. It reads nothing from the live
process except through the ``environment`` and ``environ`` arguments.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from common.templating import drop_double_slashes, eval_template, fix_slashes, url_resolve
from constants import Constants
from manifest.config import validate_config
from manifest.hosts import apply_mirror, select_host
from manifest.models import ConfigError
from versioning.abi import get_runtime_abi
from versioning.crosswalk import CrosswalkTable, load_default_crosswalk
from versioning.models import RuntimeEnvironment, RuntimeIdentity, parse_semver
from versioning.napi import Napi
from versioning.runtime import get_process_runtime

logger = logging.getLogger(__name__)


@dataclass
class ResolveOptions:
    """Options derived from the command line and runtime flags."""
    debug: bool = False
    target: Optional[str] = None
    runtime: Optional[str] = None
    target_platform: Optional[str] = None
    target_arch: Optional[str] = None
    target_libc: Optional[str] = None
    module_root: Optional[str] = None
    s3_host: Optional[str] = None
    argv_remain: List[str] = field(default_factory=list)
    toolset: Optional[str] = None
    build_latest_napi_version_only: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ResolveOptions":
        """Build options from a loose mapping.

        Accepts the ``{"argv": {"remain": [...]}}`` shape for commands and
        ignores keys it does not know.
        """
        data = dict(data or {})
        argv = data.pop("argv", None)
        if isinstance(argv, Mapping) and "argv_remain" not in data:
            data["argv_remain"] = list(argv.get("remain") or [])
        if "build-latest-napi-version-only" in data:
            data["build_latest_napi_version_only"] = data.pop("build-latest-napi-version-only")
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class ResolvedDescriptor:  # pylint: disable=too-many-instance-attributes
    """Every value needed to fetch, stage or publish one prebuilt binary."""
    name: str
    configuration: str
    debug: bool
    module_name: str
    version: str
    prerelease: str
    build: str
    major: int
    minor: int
    patch: int
    runtime: str
    node_abi: str
    node_abi_napi: str
    napi_version: Optional[int]
    napi_build_version: str
    node_napi_label: str
    target: str
    platform: str
    target_platform: str
    arch: str
    target_arch: str
    libc: str
    module_main: str
    toolset: str
    host: str
    bucket: Optional[str]
    region: Optional[str]
    s3ForcePathStyle: bool  # pylint: disable=invalid-name
    module_path: str
    module: str
    remote_path: str
    package_name: str
    staged_tarball: str
    hosted_path: str
    hosted_tarball: str

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


def _package_version(package_json: Mapping[str, Any]):
    try:
        return parse_semver(package_json["version"])
    except ValueError:
        raise ConfigError(
            f"{package_json.get('name')} package.json has an invalid version: {package_json['version']}"
        ) from None


def evaluate(
    package_json: Mapping[str, Any],
    options: Optional[ResolveOptions | Mapping[str, Any]] = None,
    napi_build_version: Optional[int] = None,
    *,
    environment: Optional[RuntimeEnvironment] = None,
    environ: Optional[Mapping[str, str]] = None,
    crosswalk: Optional[CrosswalkTable] = None,
    napi: Any = None,
) -> ResolvedDescriptor:
    """Resolve ``package_json`` into a :class:`ResolvedDescriptor`.

    Args:
        package_json: Parsed package.json; never mutated
        options: ResolveOptions or an equivalent mapping
        napi_build_version: N-API version being built, if any
        environment: Live runtime versions, platform, arch and libc
        environ: Environment variables (defaults to ``os.environ``)
        crosswalk: ABI crosswalk (defaults to the process-wide table)
        napi: N-API collaborator (defaults to :class:`Napi` for ``environment``)

    Raises:
        ConfigError: invalid manifest
        AbiError: ABI tag cannot be computed
    """
    if not isinstance(options, ResolveOptions):
        options = ResolveOptions.from_mapping(options)
    environment = environment or RuntimeEnvironment()
    env = os.environ if environ is None else environ
    crosswalk = crosswalk or load_default_crosswalk(env)
    napi = napi or Napi(environment)

    with Timer() as timer:
        manifest = validate_config(package_json, options, napi)
        binary = manifest["binary"]
        module_version = _package_version(manifest)

        runtime = RuntimeIdentity.parse(options.runtime) if options.runtime \
            else get_process_runtime(environment.versions)
        node_abi = get_runtime_abi(runtime, options.target, environment, crosswalk)
        napi_version = napi.get_napi_version(options.target)
        platform = options.target_platform or environment.platform
        arch = options.target_arch or environment.arch

        version = f"{module_version.major}.{module_version.minor}.{module_version.patch}"
        if module_version.prerelease:
            version += "-" + ".".join(module_version.prerelease)

        opts: Dict[str, Any] = {
            "name": manifest["name"],
            "configuration": "Debug" if options.debug else "Release",
            "debug": bool(options.debug),
            "module_name": binary["module_name"],
            "version": version,
            "prerelease": ".".join(module_version.prerelease),
            "build": ".".join(module_version.build),
            "major": module_version.major,
            "minor": module_version.minor,
            "patch": module_version.patch,
            "runtime": runtime.value,
            "node_abi": node_abi,
            "node_abi_napi": "napi" if napi_version else node_abi,
            "napi_version": napi_version,
            "napi_build_version": str(napi_build_version) if napi_build_version else "",
            "node_napi_label": f"napi-v{napi_build_version}" if napi_build_version else node_abi,
            "target": options.target or "",
            "platform": platform,
            "target_platform": platform,
            "arch": arch,
            "target_arch": arch,
            "libc": options.target_libc or environment.libc or "unknown",
            "module_main": manifest["main"],
            "toolset": options.toolset or "",
        }

        host = select_host(binary, env.get(Constants.ENV_S3_HOST), options.s3_host, options.argv_remain)
        host = apply_mirror(host, opts["module_name"], env)
        if not host.endpoint:
            raise ConfigError(f"{opts['name']} package.json: selected host has no endpoint")

        opts["host"] = fix_slashes(eval_template(host.endpoint, opts))
        opts["bucket"] = host.bucket
        opts["region"] = host.region
        opts["s3ForcePathStyle"] = host.s3_force_path_style

        module_path = eval_template(binary["module_path"], opts)
        if options.module_root:
            # module_path is always relative to module_root, even with a leading slash
            module_path = os.path.join(options.module_root, module_path.lstrip("/" + os.sep))
        opts["module_path"] = os.path.abspath(module_path)
        opts["module"] = os.path.join(opts["module_path"], opts["module_name"] + Constants.MODULE_SUFFIX)

        remote_path = binary.get("remote_path")
        opts["remote_path"] = drop_double_slashes(fix_slashes(eval_template(remote_path, opts))) \
            if remote_path else Constants.DEFAULT_REMOTE_PATH
        opts["package_name"] = eval_template(binary.get("package_name") or Constants.DEFAULT_PACKAGE_NAME, opts)
        opts["staged_tarball"] = os.path.normpath(
            os.path.join(Constants.STAGE_DIR, opts["remote_path"], opts["package_name"])
        )

        if opts["s3ForcePathStyle"]:
            bucket_path = drop_double_slashes(f"{opts['bucket'] or ''}/{opts['remote_path']}")
            opts["hosted_path"] = url_resolve(opts["host"], bucket_path)
        else:
            opts["hosted_path"] = url_resolve(opts["host"], opts["remote_path"])
        opts["hosted_tarball"] = url_resolve(opts["hosted_path"], opts["package_name"])

    if is_debug_enabled(logger):
        logger.debug(
            "Resolved prebuilt binary",
            extra=extra_context(
                event="resolved",
                component="resolver",
                package=opts["name"],
                node_abi=node_abi,
                hosted_tarball=opts["hosted_tarball"],
                duration_ms=timer.duration_ms(),
            ),
        )
    return ResolvedDescriptor(**opts)
