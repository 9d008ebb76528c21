"""CLI for inspecting and refreshing a local translation cache."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from ota.client import DistributionClient
from ota.config import Settings
from ota.exceptions import OTAError


def _configure_logging(debug: bool) -> None:
    """Configure CLI logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stderr,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ota-client",
        description="Keep a local cache of distributed translation files",
    )
    parser.add_argument("--endpoint", "-e", help="Distribution URL (default: $OTA_DISTRIBUTION_URL)")
    parser.add_argument("--cache-dir", "-c", help="Cache directory (default: $OTA_CACHE_DIR)")
    parser.add_argument("--concurrency", type=int, help="Maximum parallel downloads")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("files", help="List translation files in the manifest")

    status_parser = subparsers.add_parser("status", help="Show cache state of each locale")
    status_parser.add_argument("file", help="Logical file name from the manifest")

    get_parser = subparsers.add_parser("get", help="Print cached content for a locale")
    get_parser.add_argument("file", help="Logical file name from the manifest")
    get_parser.add_argument("locale", help="Locale code")
    get_parser.add_argument("--scheme", help="Naming scheme the locale code is given in")

    refresh_parser = subparsers.add_parser("refresh", help="Download missing or broken locales")
    refresh_parser.add_argument("file", help="Logical file name from the manifest")
    refresh_parser.add_argument(
        "--expired", action="store_true", help="Also download locales from older versions"
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Overlay command-line options onto environment settings."""
    overrides: dict[str, object] = {}
    if args.endpoint:
        overrides["distribution_url"] = args.endpoint
    if args.cache_dir:
        overrides["cache_dir"] = Path(args.cache_dir)
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.debug:
        overrides["debug"] = True
    return Settings(**overrides)  # type: ignore[arg-type]


def run(client: DistributionClient, args: argparse.Namespace) -> int:
    """Execute one subcommand against a connected client. Returns the exit code."""
    if args.command == "files":
        for name in client.list_files():
            print(name)
        return 0

    file_sync = client.get_file(args.file)
    if file_sync is None:
        print(f"Error: unknown file {args.file}")
        return 1

    if args.command == "status":
        print(f"{args.file} (version {client.manifest_version}):")
        for locale, status in file_sync.status().items():
            print(f"  {locale:<12} {status}")
        return 0

    if args.command == "get":
        if args.scheme:
            content = file_sync.get_content_by_alias(args.scheme, args.locale)
        else:
            content = file_sync.get_content(args.locale)
        if content is None:
            print(f"Error: no cached content for {args.locale}")
            return 1
        sys.stdout.write(content)
        return 0

    if args.command == "refresh":
        result = file_sync.refresh(
            include_expired=args.expired, concurrency=client.concurrency
        )
        print(
            f"Refresh complete. {len(result.downloaded)} downloaded, "
            f"{len(result.failed)} failed."
        )
        for locale in result.failed:
            print(f"  Failed: {locale}")
        return 0 if not result.failed else 1

    return 1


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    try:
        settings = load_settings(args)
    except ValidationError as exc:
        print(f"Error: invalid settings: {exc}")
        sys.exit(1)
    _configure_logging(settings.debug)
    if not settings.distribution_url:
        print("Error: No distribution URL configured. Use --endpoint or OTA_DISTRIBUTION_URL.")
        sys.exit(1)

    try:
        with DistributionClient.from_settings(settings) as client:
            code = run(client, args)
    except OTAError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
