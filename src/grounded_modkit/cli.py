# src/grounded_modkit/cli.py

import argparse
import json
import os
import sys
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from grounded_modkit import log_utils, setup_config
from grounded_modkit.constants import APP_NAME, GAME_ID, PATH_SEP, STORE_STEAM, STORE_XBOX
from grounded_modkit.download import (
    PLUGIN_REQUIREMENT_UE4SS,
    GithubReleaseSource,
    VersionResolver,
    is_unknown_version,
)
from grounded_modkit.exceptions import ArchiveError, ConfigFileError, RateLimitError
from grounded_modkit.game import Discovery, get_binaries_path
from grounded_modkit.installers import (
    BuildContext,
    create_default_cascade,
    instructions_to_dicts,
)
from grounded_modkit.installers.ue4ss_files import StagedFileReader
from grounded_modkit.utils import format_bytes


def get_package_version() -> Optional[str]:
    """Return the installed grounded-modkit version, or None when it is not installed."""
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version(APP_NAME)
    except PackageNotFoundError:
        return None


def read_archive_listing(archive_path: str) -> List[str]:
    """
    Read the entry list of an archive using backslash separators.

    `.zip` files are listed directly; any other file is read as a text listing
    with one path per line.

    Raises:
        ArchiveError: If the archive cannot be opened or read.
    """
    try:
        if zipfile.is_zipfile(archive_path):
            with zipfile.ZipFile(archive_path) as archive:
                names = archive.namelist()
        else:
            with open(archive_path, "r", encoding="utf-8") as f:
                names = [line.strip() for line in f if line.strip()]
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(
            "Unable to read archive", archive_path=archive_path, details=str(e)
        ) from e
    return [name.replace("/", PATH_SEP) for name in names]


def make_zip_reader(archive_path: str) -> StagedFileReader:
    """
    Return a reader serving staged file content straight from a zip archive.

    Used when the archive has not been extracted into a staging directory.
    """

    def read(path: str) -> str:
        member = path.replace(os.sep, "/").replace(PATH_SEP, "/").lstrip("/")
        with zipfile.ZipFile(archive_path) as archive:
            return archive.read(member).decode("utf-8")

    return read


def _resolve_store(config: Dict[str, Any], store: Optional[str]) -> Optional[str]:
    if store:
        return store
    if config.get("GAME_STORE"):
        return config["GAME_STORE"]
    game_path = config.get("GAME_PATH")
    if not game_path:
        return None
    # Infer the store from which binaries folder exists
    binaries = get_binaries_path(Discovery(path=game_path))
    if binaries is None:
        return None
    return STORE_XBOX if binaries.endswith("WinGDK") else STORE_STEAM


def run_classify(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """
    Classify an archive and report its archetype and placement instructions.

    Returns:
        int: Process exit code.
    """
    try:
        files = read_archive_listing(args.archive)
    except ArchiveError as e:
        log_utils.logger.error(f"{e}")
        return 1

    reader: Optional[StagedFileReader] = None
    if not args.staging and zipfile.is_zipfile(args.archive):
        reader = make_zip_reader(args.archive)
    context = BuildContext(
        store=_resolve_store(config, args.store),
        staging_path=args.staging or "",
        reader=reader,
    )

    cascade = create_default_cascade(GAME_ID)
    try:
        plan = cascade.install(files, GAME_ID, context)
    except (ArchiveError, OSError, KeyError, UnicodeDecodeError) as e:
        log_utils.logger.error(f"Unable to install {args.archive}: {e}")
        return 1

    if args.json:
        print(
            json.dumps(
                {
                    "archetype": plan.archetype_key,
                    "requiresUE4SS": plan.requires_ue4ss,
                    "instructions": instructions_to_dicts(plan.instructions),
                },
                indent=2,
            )
        )
        return 0

    log_utils.logger.info(f"Archetype: {plan.archetype_key}")
    if plan.requires_ue4ss:
        log_utils.logger.info("This mod requires UE4SS.")
    for instruction in instructions_to_dicts(plan.instructions):
        kind = instruction["type"]
        if kind == "copy":
            log_utils.logger.info(
                f"copy {instruction['source']} -> {instruction['destination']}"
            )
        elif kind == "generatefile":
            log_utils.logger.info(f"generate {instruction['destination']}")
        else:
            log_utils.logger.info(f"set mod type '{instruction['value']}'")
    return 0


def run_latest(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """
    Report the latest UE4SS release asset and whether it differs from `--installed`.

    Returns:
        int: 0 on success, 1 when no asset was found, 2 when rate limited.
    """
    requirement = PLUGIN_REQUIREMENT_UE4SS
    source = GithubReleaseSource(requirement, config)
    try:
        asset = source.get_latest_asset()
    except RateLimitError as e:
        reset = e.reset_time.isoformat() if e.reset_time else "unknown"
        log_utils.logger.error(f"GitHub API rate limit exceeded. Resets at {reset}.")
        return 2

    if asset is None:
        log_utils.logger.error(
            f"No {requirement.user_facing_name} release found for tag '{source.release_tag}'"
        )
        return 1

    resolver = VersionResolver()
    latest = resolver.resolve_asset_version(asset, requirement)
    log_utils.logger.info(f"Latest asset: {asset.name} ({format_bytes(asset.size)})")
    log_utils.logger.info(
        f"Version: {'unknown' if is_unknown_version(latest) else latest}"
    )
    if args.installed:
        if is_unknown_version(latest):
            log_utils.logger.warning("Cannot compare against an unknown version.")
        elif resolver.compare_versions(latest, args.installed) == 0:
            log_utils.logger.info(f"Installed version {args.installed} is current.")
        else:
            log_utils.logger.info(
                f"Update available: {args.installed} -> {latest}"
            )
    return 0


def run_setup(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Update the configuration file from the given options."""
    updates: Dict[str, Any] = {
        "GITHUB_TOKEN": args.token,
        "GAME_PATH": args.game_path,
        "GAME_STORE": args.store,
        "LOG_LEVEL": args.log_level.upper() if args.log_level else None,
    }
    for key, value in updates.items():
        if value is not None:
            config[key] = value

    try:
        setup_config.save_config(config)
    except ConfigFileError as e:
        log_utils.logger.error(f"{e}")
        return 1
    return 0


def _load_and_prepare_config() -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Load the configuration and apply its logging settings.

    Returns:
        Tuple[Optional[Dict[str, Any]], Optional[str]]: (config, error message)
    """
    try:
        config = setup_config.load_config()
    except ConfigFileError as e:
        return None, str(e)

    if config.get("LOG_LEVEL"):
        log_utils.set_log_level(config["LOG_LEVEL"])
    if config.get("LOG_DIR"):
        log_utils.add_file_logging(
            Path(config["LOG_DIR"]), config.get("LOG_LEVEL") or "INFO"
        )
    return config, None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="grounded-modkit - Grounded mod archive classifier and UE4SS manager"
    )
    subparsers = parser.add_subparsers(dest="command")

    stores = [STORE_STEAM, STORE_XBOX]

    classify_parser = subparsers.add_parser(
        "classify", help="Show how a mod archive would be installed"
    )
    classify_parser.add_argument(
        "archive", help="A .zip archive or a text file listing one path per line"
    )
    classify_parser.add_argument(
        "--staging", help="Directory the archive was extracted into"
    )
    classify_parser.add_argument(
        "--store", choices=stores, help="Store the game was installed from"
    )
    classify_parser.add_argument(
        "--json", action="store_true", help="Print the install plan as JSON"
    )

    latest_parser = subparsers.add_parser(
        "latest", help="Show the latest UE4SS release asset"
    )
    latest_parser.add_argument(
        "--installed", metavar="VERSION", help="Installed UE4SS version to compare with"
    )

    setup_parser = subparsers.add_parser("setup", help="Write the configuration file")
    setup_parser.add_argument("--token", help="GitHub token for API requests")
    setup_parser.add_argument("--game-path", help="Grounded installation directory")
    setup_parser.add_argument("--store", choices=stores, help="Store the game was installed from")
    setup_parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")

    subparsers.add_parser("version", help="Display grounded-modkit version")
    return parser


def main():
    # Logging is automatically initialized by importing log_utils

    """
    Entry point for the grounded-modkit command-line interface.

    Parses command-line arguments and dispatches the classify, latest, setup
    and version subcommands. Exits with the subcommand's status code.
    """
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "version":
        current_version = get_package_version()
        log_utils.logger.info(f"grounded-modkit {current_version or 'unknown'}")
        return
    if args.command is None:
        parser.print_help()
        return

    config, error = _load_and_prepare_config()
    if config is None:
        log_utils.logger.error(f"Failed to load configuration: {error}")
        sys.exit(1)

    handlers = {
        "classify": run_classify,
        "latest": run_latest,
        "setup": run_setup,
    }
    exit_code = handlers[args.command](args, config)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
