"""Normalized tag record shared by every container format."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum

from ripsync.utils.constants import YEAR_MAX, YEAR_MIN


class TagField(Enum):
    """Fields of the normalized tag record.

    The value of each member is the matching ``TagRecord`` attribute name.
    """

    TITLE = "title"
    ARTIST = "artist"
    ALBUM = "album"
    YEAR = "year"
    TRACK_NUMBER = "track_number"
    GENRE = "genre"

    @property
    def is_numeric(self) -> bool:
        return self in (TagField.YEAR, TagField.TRACK_NUMBER)


@dataclass
class TagRecord:
    """Tag values projected from either the ID3 or the Vorbis comment scheme.

    Every field is independently present or absent; ``None`` means absent.
    A present field is never ``""``: ``AudioFile.set`` treats an empty
    string as absent.
    """

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: int | None = None
    track_number: int | None = None
    genre: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def parse_year(date_str: str | None) -> int | None:
    """Parse a year from a date string ('YYYY', 'YYYY-MM-DD', ...).

    Args:
        date_str: Raw date string.

    Returns:
        Four-digit year as int, or None if it cannot be parsed.
    """
    if not date_str:
        return None
    try:
        year = int(date_str.strip()[:4])
    except ValueError:
        return None
    if YEAR_MIN <= year <= YEAR_MAX:
        return year
    return None


def parse_track_number(raw: str | None) -> int | None:
    """Parse a track number from '5' or '5/12'.

    Args:
        raw: Raw track number string.

    Returns:
        Track number as int, or None if it cannot be parsed.
    """
    if not raw:
        return None
    try:
        number = int(raw.split("/")[0].strip())
    except ValueError:
        return None
    return number if number >= 0 else None
