"""Transcoding state and outcome models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class TranscodeState(Enum):
    """States a single file moves through while being transcoded."""

    SOURCE = "source"
    DECODING = "decoding"
    ENCODING = "encoding"
    TAG_MIGRATION = "tag_migration"
    DONE = "done"
    DECODE_FAILED = "decode_failed"
    ENCODE_FAILED = "encode_failed"
    TAG_MIGRATION_FAILED = "tag_migration_failed"
    UNSUPPORTED_FORMAT = "unsupported_format"

    def is_terminal(self) -> bool:
        """Check if this state ends the transcode."""
        return self in {
            TranscodeState.DONE,
            TranscodeState.DECODE_FAILED,
            TranscodeState.ENCODE_FAILED,
            TranscodeState.TAG_MIGRATION_FAILED,
            TranscodeState.UNSUPPORTED_FORMAT,
        }

    def is_failure(self) -> bool:
        return self.is_terminal() and self is not TranscodeState.DONE


class TranscodeAction(Enum):
    """What a successful transcode actually did."""

    TRANSCODED = "transcoded"
    ALREADY_TARGET = "already_target"
    BELOW_FLOOR = "below_floor"


@dataclass
class TranscodeOutcome:
    """Result of a transcode that reached ``DONE``.

    Attributes:
        source: Path of the input file.
        output: Path of the resulting file (equal to source when skipped).
        action: Whether the file was converted or left alone.
        bitrate_kbps: Bitrate of an already-lossy input, when known.
    """

    source: Path
    output: Path
    action: TranscodeAction
    bitrate_kbps: int | None = None

    @property
    def changed(self) -> bool:
        return self.action is TranscodeAction.TRANSCODED
