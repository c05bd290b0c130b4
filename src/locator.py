"""prebuilt-locator command line entry point.

Prints the resolved prebuilt binary descriptor for a package as JSON.
"""

from __future__ import annotations

import json
import logging
import sys

from args import parse_args
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes, apply_config, load_config
from manifest.models import ConfigError
from resolver import ResolveOptions, evaluate
from versioning.models import AbiError
from versioning.runtime import detect_environment

logger = logging.getLogger(__name__)


def load_package_json(path: str) -> dict:
    """Read and parse a package.json file."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def build_options(args) -> ResolveOptions:
    """Map parsed CLI arguments onto ResolveOptions."""
    return ResolveOptions(
        debug=args.DEBUG,
        target=args.TARGET,
        runtime=args.RUNTIME,
        target_platform=args.TARGET_PLATFORM,
        target_arch=args.TARGET_ARCH,
        target_libc=args.TARGET_LIBC,
        module_root=args.MODULE_ROOT,
        s3_host=args.S3_HOST,
        argv_remain=list(args.commands),
        toolset=args.TOOLSET,
        build_latest_napi_version_only=args.BUILD_LATEST_NAPI_VERSION_ONLY,
    )


def _setup_logging(args) -> None:
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)

    # Config file first so CLI and environment settings override it
    apply_config(load_config(args.CONFIG))
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        package_json = load_package_json(args.PACKAGE_JSON)
    except (OSError, ValueError) as exc:
        logger.error("Unable to read %s: %s", args.PACKAGE_JSON, exc)
        return ExitCodes.FILE_ERROR.value

    environment = detect_environment(args.NODE_BINARY)
    try:
        descriptor = evaluate(
            package_json,
            build_options(args),
            args.NAPI_BUILD_VERSION,
            environment=environment,
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        return ExitCodes.CONFIG_ERROR.value
    except AbiError as exc:
        logger.error("%s", exc)
        return ExitCodes.ABI_ERROR.value

    sys.stdout.write(json.dumps(descriptor.as_dict(), indent=2) + "\n")
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
