"""AudioFile model -- one physical file plus its normalized tag view."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ripsync.models.tags import TagField, TagRecord, parse_track_number, parse_year
from ripsync.utils.constants import VORBIS_FIELD_MAP
from ripsync.utils.logger import get_logger

logger = get_logger("models.audio_file")


class ContainerKind(Enum):
    """Container formats recognized by content sniffing."""

    LOSSLESS_A = "flac"
    LOSSY_B = "mp3"
    OTHER = "other"


@dataclass
class AudioFile:
    """A single audio file and its tags.

    Attributes:
        path: Location of the file. Changes when the file is transcoded.
        container_kind: Container detected from the file's leading bytes.
        tags: Normalized tag record, exclusively owned by this file.
        duration: Duration in seconds, or None if it could not be determined.
    """

    path: Path
    container_kind: ContainerKind = ContainerKind.OTHER
    tags: TagRecord = field(default_factory=TagRecord)
    duration: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.path, str):
            self.path = Path(self.path)

    def get(self, tag: TagField) -> str | None:
        """Return a field as a string, or None when it is absent."""
        value = getattr(self.tags, tag.value)
        if value is None:
            return None
        return str(value)

    def set(self, tag: TagField, value: str) -> None:
        """Set a field in memory. Nothing is written until the file is persisted.

        A year or track number that does not parse leaves the field unset
        and logs a warning instead of raising. An empty string also unsets
        the field: ID3 drops empty text frames on save, so ``""`` could not
        survive ``persist`` followed by ``open``.
        """
        if value == "":
            setattr(self.tags, tag.value, None)
        elif tag is TagField.YEAR:
            parsed = parse_year(value)
            if parsed is None:
                logger.warning("Invalid year %r for %s, leaving it unset", value, self.path.name)
            self.tags.year = parsed
        elif tag is TagField.TRACK_NUMBER:
            parsed = parse_track_number(value)
            if parsed is None:
                logger.warning(
                    "Invalid track number %r for %s, leaving it unset", value, self.path.name
                )
            self.tags.track_number = parsed
        else:
            setattr(self.tags, tag.value, value)

    def import_foreign(self, comments: dict[str, str]) -> None:
        """Copy Vorbis comment values onto the record.

        Only the fixed key set (TITLE, TRACKNUMBER, ARTIST, ALBUM, DATE,
        GENRE) is consulted; keys are matched case-insensitively and missing
        keys leave the field untouched.

        Args:
            comments: Comment block as a key -> first value mapping.
        """
        upper = {key.upper(): value for key, value in comments.items()}
        for tag in TagField:
            value = upper.get(VORBIS_FIELD_MAP[tag.value])
            if value is not None:
                self.set(tag, value)

    @property
    def display_title(self) -> str:
        return self.tags.title or self.path.stem

    def __str__(self) -> str:
        return "\n".join(
            [
                str(self.path),
                f"title: {self.tags.title or 'none'}",
                f"artist: {self.tags.artist or 'none'}",
                f"album: {self.tags.album or 'none'}",
                f"year: {self.tags.year or 0}",
            ]
        )
