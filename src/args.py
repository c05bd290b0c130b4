"""Argument parsing functionality for prebuilt-locator."""

import argparse

from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="prebuilt-locator",
        description=(
            "Resolve the ABI tag and remote location of a native addon's prebuilt binary"
        ),
        add_help=True,
    )

    parser.add_argument("commands",
                        help="Commands being run (e.g. install, publish); used to pick the default host",
                        nargs="*",
                        default=[])
    parser.add_argument("-p", "--package-json",
                        dest="PACKAGE_JSON",
                        help="Path to package.json (default: ./package.json)",
                        action="store", type=str,
                        default=Constants.PACKAGE_JSON_FILE)
    parser.add_argument("--target",
                        dest="TARGET",
                        help="Runtime version to resolve for instead of the running one",
                        action="store", type=str)
    parser.add_argument("--runtime",
                        dest="RUNTIME",
                        help="Runtime to resolve for",
                        action="store", type=str,
                        choices=["node", "electron", "node-webkit"])
    parser.add_argument("--target_platform",
                        dest="TARGET_PLATFORM",
                        help="Platform to resolve for (e.g. linux, darwin, win32)",
                        action="store", type=str)
    parser.add_argument("--target_arch",
                        dest="TARGET_ARCH",
                        help="Architecture to resolve for (e.g. x64, arm64)",
                        action="store", type=str)
    parser.add_argument("--target_libc",
                        dest="TARGET_LIBC",
                        help="C library family to resolve for (e.g. glibc, musl)",
                        action="store", type=str)
    parser.add_argument("--module_root",
                        dest="MODULE_ROOT",
                        help="Directory module_path is resolved against (default: cwd)",
                        action="store", type=str)
    parser.add_argument("--s3_host",
                        dest="S3_HOST",
                        help="Host to use: production, staging or development",
                        action="store", type=str)
    parser.add_argument("--napi_build_version",
                        dest="NAPI_BUILD_VERSION",
                        help="N-API version being built",
                        action="store", type=int)
    parser.add_argument("--build-latest-napi-version-only",
                        dest="BUILD_LATEST_NAPI_VERSION_ONLY",
                        help="Only consider the highest supported N-API version",
                        action="store_true")
    parser.add_argument("--toolset",
                        dest="TOOLSET",
                        help="Build toolset name, exposed to templates as {toolset}",
                        action="store", type=str)
    parser.add_argument("--debug",
                        dest="DEBUG",
                        help="Resolve the Debug configuration instead of Release",
                        action="store_true")
    parser.add_argument("--node",
                        dest="NODE_BINARY",
                        help="Runtime binary queried for process.versions",
                        action="store", type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML config file",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
