"""Exceptions raised by the RipSync pipeline."""

from __future__ import annotations

from pathlib import Path

from ripsync.models.transcode_state import TranscodeState


class RipsyncError(Exception):
    """Base class for all pipeline errors."""


class OpenError(RipsyncError):
    """A file could not be opened or classified at all."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot open {path}: {reason}")
        self.path = path
        self.reason = reason


class TagWriteError(RipsyncError):
    """Tags could not be written to a file.

    Attributes:
        partial: True if the file on disk may have been modified.
    """

    def __init__(self, path: Path, reason: str, partial: bool = False) -> None:
        super().__init__(f"Cannot write tags to {path}: {reason}")
        self.path = path
        self.reason = reason
        self.partial = partial


class TranscodeError(RipsyncError):
    """A single file's transcode ended in a failure state.

    Attributes:
        path: The source file being transcoded.
        state: Terminal failure state reached.
        partial: False if nothing on disk changed, True if a new file was
            left behind or the original could not be removed.
    """

    state = TranscodeState.SOURCE

    def __init__(
        self,
        path: Path,
        reason: str,
        partial: bool = False,
        state: TranscodeState | None = None,
    ) -> None:
        super().__init__(f"Transcode of {path} failed: {reason}")
        self.path = path
        self.reason = reason
        self.partial = partial
        if state is not None:
            self.state = state


class DecodeError(TranscodeError):
    state = TranscodeState.DECODE_FAILED


class EncodeError(TranscodeError):
    state = TranscodeState.ENCODE_FAILED


class TagMigrationError(TranscodeError):
    state = TranscodeState.TAG_MIGRATION_FAILED


class UnsupportedFormatError(TranscodeError, NotImplementedError):
    """Only FLAC sources can be transcoded; anything else fails fast."""

    state = TranscodeState.UNSUPPORTED_FORMAT
