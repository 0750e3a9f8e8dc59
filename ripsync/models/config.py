"""Typed configuration model for RipSync.

A single ``AppConfig`` is built at start-up and handed to each component's
constructor; nothing reads configuration from process-wide state later on.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path

from ripsync.utils.constants import (
    DEFAULT_BITRATE_FLOOR_KBPS,
    DEFAULT_DECODER_BINARY,
    DEFAULT_DECODER_OPTIONS,
    DEFAULT_DURATION_TOLERANCE_SECONDS,
    DEFAULT_ENCODER_BINARY,
    DEFAULT_ENCODER_OPTIONS,
    DEFAULT_MAX_CONCURRENT_DIRECTORIES,
    DEFAULT_MAX_SEARCH_CANDIDATES,
    DEFAULT_TARGET_EXTENSION,
    DISCOGS_RATE_LIMIT_CALLS,
    DISCOGS_RATE_LIMIT_PERIOD,
)


@dataclass
class AppConfig:
    """Strongly-typed configuration for RipSync.

    Attributes:
        source_path: Directory holding one subdirectory per release to process.
        discogs_token: Discogs personal access token.
        discogs_rate_limit_calls: Requests allowed per rate-limit period.
        discogs_rate_limit_period: Length of the rate-limit window in seconds.
        decoder_binary: Lossless decoder executable.
        decoder_options: Decoder flags selecting stdout streaming, silent mode.
        encoder_binary: Lossy encoder executable.
        encoder_options: Encoder flags selecting the quality preset.
        target_extension: Extension appended to transcoded files.
        bitrate_floor_kbps: Lossy files under this bitrate are reported as
            below the floor (they are never re-encoded).
        duration_tolerance_seconds: Largest per-track duration difference
            still accepted as a match.
        max_concurrent_directories: Release directories processed in parallel.
        max_search_candidates: Search results fetched when looking for a
            matching release.
        stop_on_error: Abort a directory at its first failing file.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file (None = console only).
    """

    # --- Library ---
    source_path: str = ""

    # --- Catalog ---
    discogs_token: str = ""
    discogs_rate_limit_calls: int = DISCOGS_RATE_LIMIT_CALLS
    discogs_rate_limit_period: float = DISCOGS_RATE_LIMIT_PERIOD

    # --- Transcoding ---
    decoder_binary: str = DEFAULT_DECODER_BINARY
    decoder_options: str = DEFAULT_DECODER_OPTIONS
    encoder_binary: str = DEFAULT_ENCODER_BINARY
    encoder_options: str = DEFAULT_ENCODER_OPTIONS
    target_extension: str = DEFAULT_TARGET_EXTENSION
    bitrate_floor_kbps: int = DEFAULT_BITRATE_FLOOR_KBPS

    # --- Matching ---
    duration_tolerance_seconds: float = DEFAULT_DURATION_TOLERANCE_SECONDS
    max_search_candidates: int = DEFAULT_MAX_SEARCH_CANDIDATES

    # --- Processing ---
    max_concurrent_directories: int = DEFAULT_MAX_CONCURRENT_DIRECTORIES
    stop_on_error: bool = False

    # --- Logging ---
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> AppConfig:
        """Create an AppConfig from a raw dictionary (e.g., from YAML).

        Unknown keys are ignored so config files with extra keys don't
        break older code.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Populated AppConfig instance.
        """
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields and v is not None}
        return cls(**filtered)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def source_path_resolved(self) -> Path | None:
        """Return source_path as a resolved Path, or None if not set."""
        if not self.source_path:
            return None
        return Path(self.source_path).expanduser().resolve()

    @property
    def decoder_args(self) -> list[str]:
        return self.decoder_options.split()

    @property
    def encoder_args(self) -> list[str]:
        return self.encoder_options.split()
