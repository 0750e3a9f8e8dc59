"""Catalog release models -- Discogs releases, tracklists and search results."""

from __future__ import annotations

from dataclasses import dataclass, field

from ripsync.utils.constants import SECONDS_PER_MINUTE, TRACKLIST_TYPE_TRACK


def parse_duration(raw: str | None) -> float | None:
    """Parse a Discogs duration ('3:45', '1:02:03') into seconds.

    Args:
        raw: Duration string; Discogs uses "" for unknown.

    Returns:
        Seconds as float, or None if empty or malformed.
    """
    if not raw or not raw.strip():
        return None
    parts = raw.strip().split(":")
    if len(parts) > 3:
        return None
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    seconds = 0
    for number in numbers:
        if number < 0:
            return None
        seconds = seconds * SECONDS_PER_MINUTE + number
    return float(seconds)


@dataclass
class CanonicalTrack:
    """One playable track of a release, in play order.

    Attributes:
        title: Track title.
        duration: Duration in seconds, or None if the catalog lists none.
        position: Catalog position label (e.g. 'A1', '2-03').
    """

    title: str
    duration: float | None = None
    position: str = ""


@dataclass
class TracklistEntry:
    """A raw tracklist row: a track, a heading, or an index with sub-tracks."""

    title: str = ""
    position: str = ""
    type_: str = TRACKLIST_TYPE_TRACK
    duration: str = ""
    sub_tracks: list[TracklistEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> TracklistEntry:
        return cls(
            title=data.get("title") or "",
            position=data.get("position") or "",
            type_=data.get("type_") or TRACKLIST_TYPE_TRACK,
            duration=data.get("duration") or "",
            sub_tracks=[cls.from_dict(sub) for sub in data.get("sub_tracks") or []],
        )


def flatten_tracklist(entries: list[TracklistEntry]) -> list[CanonicalTrack]:
    """Flatten a nested tracklist into playable tracks.

    Headings and index rows are dropped; sub-track groups are walked
    depth-first, left to right.
    """
    tracks: list[CanonicalTrack] = []
    for entry in entries:
        if entry.sub_tracks:
            tracks.extend(flatten_tracklist(entry.sub_tracks))
        elif entry.type_ == TRACKLIST_TYPE_TRACK:
            tracks.append(
                CanonicalTrack(
                    title=entry.title,
                    duration=parse_duration(entry.duration),
                    position=entry.position,
                )
            )
    return tracks


@dataclass
class Release:
    """A canonical catalog release.

    Attributes:
        id: Discogs release id.
        title: Release (album) title.
        year: Release year; 0 when the catalog does not know it.
        artists_sort: Artist credit string used for tagging.
        uri: Web URL of the release page.
        genres: Genre names.
        tracklist: Raw, possibly nested tracklist.
    """

    id: int
    title: str = ""
    year: int = 0
    artists_sort: str = ""
    uri: str = ""
    genres: list[str] = field(default_factory=list)
    tracklist: list[TracklistEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Release:
        """Build a Release from a Discogs ``/releases/{id}`` response."""
        try:
            year = int(data.get("year") or 0)
        except (TypeError, ValueError):
            year = 0
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "",
            year=year,
            artists_sort=data.get("artists_sort") or "",
            uri=data.get("uri") or "",
            genres=list(data.get("genres") or []),
            tracklist=[TracklistEntry.from_dict(t) for t in data.get("tracklist") or []],
        )

    def tracks(self) -> list[CanonicalTrack]:
        """Playable tracks in play order."""
        return flatten_tracklist(self.tracklist)

    def durations(self) -> list[float | None]:
        return [track.duration for track in self.tracks()]


@dataclass
class SearchResult:
    """A release hit from a catalog search (no tracklist).

    Attributes:
        id: Discogs release id.
        title: Discogs display title, formatted "Artist - Album".
        year: Release year as listed, may be empty.
        uri: Relative web path of the release.
    """

    id: int
    title: str = ""
    year: str = ""
    uri: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> SearchResult:
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "",
            year=str(data.get("year") or ""),
            uri=data.get("uri") or "",
        )


@dataclass
class SearchResults:
    """Results of a catalog search. ``results`` is empty when nothing matched."""

    results: list[SearchResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> SearchResults:
        results = []
        for item in data.get("results") or []:
            if item.get("id") is None:
                continue
            results.append(SearchResult.from_dict(item))
        return cls(results=results)

    def __len__(self) -> int:
        return len(self.results)

    def first(self) -> SearchResult | None:
        return self.results[0] if self.results else None
