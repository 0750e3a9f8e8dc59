"""Matcher -- decides whether a release directory is a given canonical tracklist.

Track durations, compared position by position, act as a fingerprint for the
whole sequence. Titles and other tag text are never looked at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from ripsync.core.directory_source import DirectorySource
from ripsync.models.audio_file import AudioFile
from ripsync.models.release import CanonicalTrack
from ripsync.utils.constants import DEFAULT_DURATION_TOLERANCE_SECONDS
from ripsync.utils.logger import get_logger

logger = get_logger("core.matcher")


class MatchOutcome(Enum):
    MATCH = "match"
    UNEQUAL_LENGTH = "unequal_length"
    UNEQUAL_DURATION = "unequal_duration"


@dataclass
class MatchReport:
    """Why a directory did or did not match a tracklist.

    Attributes:
        outcome: The decision and its reason.
        local_count: Number of local files.
        canonical_count: Number of canonical tracks.
        deltas: Absolute per-position duration differences in seconds
            (empty when the counts differ).
    """

    outcome: MatchOutcome
    local_count: int
    canonical_count: int
    deltas: list[float] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.outcome is MatchOutcome.MATCH

    @property
    def max_delta(self) -> float | None:
        return max(self.deltas) if self.deltas else None

    @property
    def worst_position(self) -> int | None:
        """Zero-based index of the largest delta."""
        if not self.deltas:
            return None
        return self.deltas.index(max(self.deltas))


class Matcher:
    """Matches local files to canonical tracks by count and duration.

    Usage:
        matcher = Matcher(tolerance_seconds=5)
        if matcher.matches(DirectorySource(path), release.tracks()):
            ...
    """

    def __init__(self, tolerance_seconds: float = DEFAULT_DURATION_TOLERANCE_SECONDS) -> None:
        """Initialize the matcher.

        Args:
            tolerance_seconds: Largest per-track difference still accepted.
                Absorbs encoder padding and trimmed silence between rips.
        """
        self._tolerance = tolerance_seconds

    @property
    def tolerance_seconds(self) -> float:
        return self._tolerance

    def matches(self, local: DirectorySource, canonical: Sequence[CanonicalTrack]) -> bool:
        """Return True if the directory's files are the canonical tracks, in order."""
        return self.matches_files(local.audio_files(), canonical)

    def matches_files(
        self,
        files: Sequence[AudioFile],
        canonical: Sequence[CanonicalTrack],
    ) -> bool:
        return self.evaluate(files, canonical).matched

    def evaluate(
        self,
        files: Sequence[AudioFile],
        canonical: Sequence[CanonicalTrack],
    ) -> MatchReport:
        """Compare files and tracks, returning the full report.

        The counts must be equal and the largest absolute duration
        difference over all positions must not exceed the tolerance. A
        single far-off track fails the whole match. A missing duration on
        either side counts as zero.

        Args:
            files: Local files in track order.
            canonical: Canonical tracks in play order.

        Returns:
            A MatchReport.
        """
        if len(files) != len(canonical):
            logger.debug("Track count differs: %d local, %d canonical", len(files), len(canonical))
            return MatchReport(
                outcome=MatchOutcome.UNEQUAL_LENGTH,
                local_count=len(files),
                canonical_count=len(canonical),
            )

        deltas = [
            abs((audio_file.duration or 0.0) - (track.duration or 0.0))
            for audio_file, track in zip(files, canonical)
        ]
        report = MatchReport(
            outcome=MatchOutcome.MATCH,
            local_count=len(files),
            canonical_count=len(canonical),
            deltas=deltas,
        )
        if deltas and max(deltas) > self._tolerance:
            report.outcome = MatchOutcome.UNEQUAL_DURATION
            logger.debug(
                "Duration differs by %.1fs at track %d (tolerance %.1fs)",
                report.max_delta, report.worst_position + 1, self._tolerance,
            )
        return report
