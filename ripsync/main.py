"""RipSync -- command-line entry point and configuration loading."""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from pathlib import Path

import yaml

from ripsync.core.catalog import DiscogsClient
from ripsync.core.directory_source import DirectorySource
from ripsync.core.library_processor import BatchResult, DirectoryReport, LibraryProcessor
from ripsync.core.matcher import MatchReport
from ripsync.models.config import AppConfig
from ripsync.models.release import Release
from ripsync.utils.constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_BITRATE_FLOOR_KBPS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_DURATION_TOLERANCE_SECONDS,
    DEFAULT_MAX_CONCURRENT_DIRECTORIES,
    DEFAULT_MAX_SEARCH_CANDIDATES,
    ENV_DISCOGS_TOKEN,
    ENV_SOURCE_PATH,
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
)
from ripsync.utils.file_utils import format_duration
from ripsync.utils.logger import get_logger, setup_logger

# Directories that must never be used as a source path (exact matches).
_DANGEROUS_PATHS = frozenset(
    {
        "/",
        "/usr",
        "/usr/bin",
        "/etc",
        "/var",
        "/tmp",
        "/home",
        "/root",
        "/System",
        "/Library",
        "/Applications",
        "/bin",
        "/sbin",
        "/lib",
        "/opt",
    }
)

# Minimum number of path components below the filesystem root.
# "/music" has 1 and is refused; "/home/me/rips" has 3 and is fine.
_MIN_PATH_DEPTH = 2

# Positive integer settings and their defaults.
_POSITIVE_INT_FIELDS = {
    "bitrate_floor_kbps": DEFAULT_BITRATE_FLOOR_KBPS,
    "max_concurrent_directories": DEFAULT_MAX_CONCURRENT_DIRECTORIES,
    "max_search_candidates": DEFAULT_MAX_SEARCH_CANDIDATES,
}


class ConfigError(Exception):
    """The configuration file is missing or cannot be parsed."""


def _is_dangerous_path(resolved: str) -> str | None:
    """Check if a resolved path is too dangerous to use as a source root.

    Transcoding deletes the lossless originals, so the source root must be
    neither a known system directory nor a shallow path like ``/music``.

    Args:
        resolved: Resolved, normalized path string.

    Returns:
        A human-readable reason if the path is dangerous, or None if it's safe.
    """
    normalized = resolved.rstrip("/") or "/"

    for dangerous in _DANGEROUS_PATHS:
        if normalized.lower() == dangerous.lower():
            return (
                f"resolves to a known system directory ({normalized}). "
                f"Transcoding would delete files there."
            )

    depth = len(Path(normalized).parts) - 1
    if depth < _MIN_PATH_DEPTH:
        return (
            f"is only {depth} level(s) deep from the filesystem root. "
            f"Source paths should be at least {_MIN_PATH_DEPTH} levels "
            f"deep (e.g. '/home/me/rips')."
        )
    return None


def validate_config(config: dict) -> list[str]:
    """Validate configuration values and return a list of warnings.

    Invalid values are replaced with their defaults in ``config``.

    Checks:
    - source_path is not a system directory or too shallow
    - duration_tolerance_seconds is a non-negative number
    - bitrate floor, worker and candidate counts are positive integers

    Args:
        config: Configuration dictionary.

    Returns:
        List of human-readable warning strings. Empty if all checks pass.
    """
    warnings: list[str] = []

    source_path = config.get("source_path", "")
    if source_path:
        resolved = str(Path(source_path).expanduser().resolve())
        reason = _is_dangerous_path(resolved)
        if reason:
            warnings.append(f"source_path '{source_path}' {reason}")

    tolerance = config.get("duration_tolerance_seconds", DEFAULT_DURATION_TOLERANCE_SECONDS)
    if isinstance(tolerance, bool) or not isinstance(tolerance, (int, float)) or tolerance < 0:
        warnings.append(
            f"duration_tolerance_seconds must be a non-negative number, got {tolerance!r}. "
            f"Using default ({DEFAULT_DURATION_TOLERANCE_SECONDS})."
        )
        config["duration_tolerance_seconds"] = DEFAULT_DURATION_TOLERANCE_SECONDS

    for name, default in _POSITIVE_INT_FIELDS.items():
        value = config.get(name, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            warnings.append(
                f"{name} must be a positive integer, got {value!r}. Using default ({default})."
            )
            config[name] = default

    return warnings


def load_config(path: Path | str | None = None, environ: dict | None = None) -> dict:
    """Load configuration from YAML and apply environment overrides.

    Lookup order: ``path`` if given, else ``~/.config/ripsync/config.yaml``
    if it exists, else an empty dict (all defaults). ``DISCOGS_TOKEN`` and
    ``SOURCE`` from the environment take precedence over the file.

    Args:
        path: Explicit config file; it must exist.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Configuration dictionary (suitable for ``AppConfig.from_dict()``).

    Raises:
        ConfigError: If an explicit file is missing, or any file is not
            valid YAML mapping.
    """
    environ = os.environ if environ is None else environ
    config: dict = {}

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
    else:
        config_path = DEFAULT_CONFIG_PATH.expanduser()

    if config_path.is_file():
        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read {config_path}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(config).__name__}")

    if environ.get(ENV_DISCOGS_TOKEN):
        config["discogs_token"] = environ[ENV_DISCOGS_TOKEN]
    if environ.get(ENV_SOURCE_PATH):
        config["source_path"] = environ[ENV_SOURCE_PATH]

    return config


# --- Output helpers ---


def _print_report(report: DirectoryReport) -> None:
    print(f"{report.path}: {report.status.value}", end="")
    details = []
    if report.transcoded or report.skipped:
        details.append(f"{report.transcoded} transcoded, {report.skipped} skipped")
    if report.written:
        details.append(f"{report.written} tagged")
    if report.release is not None:
        details.append(f"release {report.release.id}")
    print(f" ({'; '.join(details)})" if details else "")
    for error in report.errors:
        print(f"  error: {error}", file=sys.stderr)


def _print_batch(result: BatchResult) -> None:
    for report in result.reports:
        _print_report(report)
    stats = result.stats
    print(
        f"\n{stats.directories} directories: {stats.transcoded} files transcoded, "
        f"{stats.skipped} skipped, {stats.failed_files} failed; "
        f"{stats.tagged} tagged, {stats.unmatched} unmatched, {stats.errored} errored"
    )


def _print_match(release: Release, files: list, report: MatchReport) -> None:
    print(f"{release.artists_sort} - {release.title} ({release.year}) [{release.id}]")
    tracks = release.tracks()
    for index, track in enumerate(tracks):
        local = files[index].duration if index < len(files) else None
        delta = f"{report.deltas[index]:5.1f}s" if index < len(report.deltas) else "     -"
        print(
            f"  {track.position:>4}  {format_duration(local):>6}  "
            f"{format_duration(track.duration):>6}  {delta}  {track.title}"
        )
    if report.matched:
        print("match")
    else:
        print(
            f"no match: {report.outcome.value} "
            f"({report.local_count} local, {report.canonical_count} canonical)"
        )


# --- Commands ---


def _binaries_available(config: AppConfig, logger) -> bool:
    ok = True
    for binary in (config.decoder_binary, config.encoder_binary):
        found = shutil.which(binary)
        if found:
            logger.debug("Found %s: %s", binary, found)
        else:
            logger.error("%s not found on PATH; install it or set its path in the config", binary)
            ok = False
    return ok


def cmd_transcode(args: argparse.Namespace, config: AppConfig) -> int:
    """Transcode one release directory, or every release under a source root."""
    logger = get_logger("main")
    target = args.path or config.source_path
    if not target:
        logger.error("No path given and no source_path configured (or %s set)", ENV_SOURCE_PATH)
        return EXIT_USAGE
    root = Path(target).expanduser()
    reason = _is_dangerous_path(str(root.resolve()))
    if reason:
        logger.error("Refusing to transcode: '%s' %s", target, reason)
        return EXIT_USAGE
    if args.stop_on_error:
        config.stop_on_error = True
    if not _binaries_available(config, logger):
        return EXIT_USAGE

    processor = LibraryProcessor(config)
    if args.single:
        report = processor.transcode_release(root)
        _print_report(report)
        return EXIT_OK if report.ok else EXIT_FAILURE

    try:
        result = processor.transcode_library(root)
    except OSError as e:
        logger.error("Cannot read source root %s: %s", root, e)
        return EXIT_FAILURE
    _print_batch(result)
    return EXIT_OK if result.ok else EXIT_FAILURE


def cmd_show(args: argparse.Namespace, config: AppConfig) -> int:
    """Print the tags and duration of every file in a directory."""
    logger = get_logger("main")
    source = DirectorySource(args.dir)
    try:
        results = source.open_files()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.dir, e)
        return EXIT_FAILURE

    for result in results:
        if result.audio_file is None:
            print(f"{result.path}: cannot open ({result.error})\n", file=sys.stderr)
            continue
        print(result.audio_file)
        print(f"duration: {format_duration(result.audio_file.duration)}\n")
    return EXIT_OK


def cmd_match(args: argparse.Namespace, config: AppConfig) -> int:
    """Compare a directory against a catalog release without writing anything."""
    logger = get_logger("main")
    release = DiscogsClient(config).get_release(args.release)
    if release is None:
        logger.error("Release %s not found", args.release)
        return EXIT_FAILURE

    processor = LibraryProcessor(config)
    try:
        files = DirectorySource(args.dir).audio_files()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.dir, e)
        return EXIT_FAILURE
    report = processor.matcher.evaluate(files, release.tracks())
    _print_match(release, files, report)
    return EXIT_OK if report.matched else EXIT_FAILURE


def cmd_tag(args: argparse.Namespace, config: AppConfig) -> int:
    """Tag a directory from a catalog release, only if it matches."""
    processor = LibraryProcessor(config)
    if args.library:
        if args.release:
            get_logger("main").error("--release cannot be combined with --library")
            return EXIT_USAGE
        if args.stop_on_error:
            config.stop_on_error = True
        try:
            result = processor.tag_library(args.dir)
        except OSError as e:
            get_logger("main").error("Cannot read source root %s: %s", args.dir, e)
            return EXIT_FAILURE
        _print_batch(result)
        return EXIT_OK if result.ok else EXIT_FAILURE

    report = processor.tag_release(
        args.dir,
        release_id=args.release,
        stop_on_error=True if args.stop_on_error else None,
    )
    _print_report(report)
    return EXIT_OK if report.ok else EXIT_FAILURE


def cmd_search(args: argparse.Namespace, config: AppConfig) -> int:
    """List catalog releases for an artist and album."""
    results = DiscogsClient(config).search(args.artist, args.album)
    if not results.results:
        print("no results")
        return EXIT_FAILURE
    for result in results.results:
        print(f"{result.id:>10}  {result.year or '----':>4}  {result.title}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ripsync",
        description="Transcode FLAC rips to MP3 and tag them from Discogs.",
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("--config", type=Path, help="Config file (default: %s)" % DEFAULT_CONFIG_PATH)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    transcode_parser = subparsers.add_parser("transcode", help="Transcode FLAC files to MP3")
    transcode_parser.add_argument("path", nargs="?", help="Source root (default: source_path)")
    transcode_parser.add_argument(
        "--single", action="store_true", help="PATH is one release directory"
    )
    transcode_parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop a directory at its first failure"
    )
    transcode_parser.set_defaults(func=cmd_transcode)

    show_parser = subparsers.add_parser("show", help="Show tags and durations")
    show_parser.add_argument("dir", type=Path)
    show_parser.set_defaults(func=cmd_show)

    match_parser = subparsers.add_parser("match", help="Compare a directory with a release")
    match_parser.add_argument("dir", type=Path)
    match_parser.add_argument("--release", required=True, help="Discogs release id")
    match_parser.set_defaults(func=cmd_match)

    tag_parser = subparsers.add_parser("tag", help="Tag a directory from a matching release")
    tag_parser.add_argument("dir", type=Path)
    tag_parser.add_argument("--release", help="Discogs release id (searched if omitted)")
    tag_parser.add_argument(
        "--library", action="store_true", help="DIR is a source root; search and tag every release"
    )
    tag_parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop at the first write failure"
    )
    tag_parser.set_defaults(func=cmd_tag)

    search_parser = subparsers.add_parser("search", help="Search Discogs releases")
    search_parser.add_argument("artist")
    search_parser.add_argument("album")
    search_parser.set_defaults(func=cmd_search)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Application entry point. Loads config, sets up logging, runs a command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        raw_config = load_config(args.config)
    except ConfigError as e:
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return EXIT_USAGE

    # Validate the raw dict first (mutates to fix invalid values)
    config_warnings = validate_config(raw_config)
    config = AppConfig.from_dict(raw_config)
    if args.log_level:
        config.log_level = args.log_level

    setup_logger(log_level=config.log_level, log_file=config.log_file)
    logger = get_logger("main")
    logger.debug("%s v%s starting", APP_NAME, APP_VERSION)

    for warning in config_warnings:
        logger.warning("Config: %s", warning)

    if args.command in ("match", "tag", "search") and not config.discogs_token:
        logger.warning(
            "Discogs token not configured. Set discogs_token in %s or export %s.",
            DEFAULT_CONFIG_PATH, ENV_DISCOGS_TOKEN,
        )

    try:
        return args.func(args, config)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
