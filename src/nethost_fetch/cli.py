import argparse
import json
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from nethost_fetch import log_utils
from nethost_fetch.config import load_config
from nethost_fetch.exceptions import NethostFetchError, UnsupportedPlatformError
from nethost_fetch.log_utils import logger
from nethost_fetch.platform_target import Arch, Env, Os, PlatformTriple, detect_host_triple
from nethost_fetch.resolver import resolve_nethost


def get_version() -> str:
    try:
        return version("nethost-fetch")
    except PackageNotFoundError:
        return "unknown"


def _add_platform_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--target",
        metavar="TRIPLE",
        help="Build target triple, e.g. x86_64-unknown-linux-musl (default: host)",
    )
    parser.add_argument("--os", choices=[m.value for m in Os], help="Target OS")
    parser.add_argument(
        "--arch", choices=[m.value for m in Arch], help="Target CPU architecture"
    )
    parser.add_argument(
        "--env", choices=[m.value for m in Env], help="Target ABI/environment"
    )


def _triple_from_args(args: argparse.Namespace) -> PlatformTriple:
    """
    Build the platform triple selected on the command line.

    ``--target`` wins over ``--os``/``--arch``/``--env``; with neither the host
    platform is detected.
    """
    if args.target:
        return PlatformTriple.parse(args.target)
    if args.os or args.arch:
        if not (args.os and args.arch):
            raise UnsupportedPlatformError(
                "Both --os and --arch are required when --target is not given"
            )
        return PlatformTriple.of(args.os, args.arch, args.env)
    return detect_host_triple()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nethost-fetch",
        description="nethost-fetch - resolve the .NET nethost library from NuGet",
    )
    parser.add_argument(
        "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)", default=None
    )
    parser.add_argument(
        "--log-dir", type=Path, default=None, help="Also write rotating log files here"
    )
    subparsers = parser.add_subparsers(dest="command")

    resolve_parser = subparsers.add_parser(
        "resolve", help="Download and extract nethost for a platform"
    )
    _add_platform_arguments(resolve_parser)
    resolve_parser.add_argument(
        "--out-dir", type=Path, help="Build output directory (default: $OUT_DIR)"
    )
    resolve_parser.add_argument(
        "--config", type=Path, help="YAML config file (default: user config dir)"
    )
    resolve_parser.add_argument(
        "--service-index", help="Registry service index URL"
    )
    resolve_parser.add_argument(
        "--timeout", type=float, help="Per-request timeout in seconds"
    )
    resolve_parser.add_argument(
        "--json", action="store_true", help="Print the full result as JSON"
    )

    target_parser = subparsers.add_parser(
        "target", help="Print the registry target identifier for a platform"
    )
    _add_platform_arguments(target_parser)

    subparsers.add_parser("version", help="Display nethost-fetch version")
    return parser


def _run_resolve(args: argparse.Namespace) -> int:
    config = load_config(
        config_file=args.config,
        out_dir=args.out_dir,
        service_index_url=args.service_index,
        request_timeout=args.timeout,
        log_dir=args.log_dir,
    )
    if config.log_level and not args.log_level:
        log_utils.set_log_level(config.log_level)
    if config.log_dir:
        log_utils.add_file_logging(config.log_dir, config.log_level or "INFO")

    result = resolve_nethost(config, _triple_from_args(args))
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.directory is not None:
        print(result.directory)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the nethost-fetch command-line interface.

    Dispatches the ``resolve``, ``target`` and ``version`` subcommands. Resolver
    failures are reported with the pipeline stage that failed and exit status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        log_utils.set_log_level(args.log_level)

    try:
        if args.command == "resolve":
            return _run_resolve(args)
        elif args.command == "target":
            print(_triple_from_args(args).target)
            return 0
        elif args.command == "version":
            print(f"nethost-fetch {get_version()}")
            return 0
        else:
            parser.print_help()
            return 0
    except NethostFetchError as e:
        url = getattr(e, "url", None)
        location = f" ({url})" if url else ""
        logger.error(f"{e.stage} failed{location}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
