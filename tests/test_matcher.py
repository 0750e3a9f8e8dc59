"""Tests for Matcher -- duration fingerprint matching of directories to tracklists."""

from __future__ import annotations

from pathlib import Path

import pytest

from ripsync.core.directory_source import DirectorySource
from ripsync.core.matcher import Matcher, MatchOutcome
from ripsync.models.audio_file import AudioFile
from ripsync.models.release import CanonicalTrack


def _files(durations: list[float | None]) -> list[AudioFile]:
    return [AudioFile(path=Path(f"/r/{i:02d}.mp3"), duration=d) for i, d in enumerate(durations)]


def _tracks(durations: list[float | None]) -> list[CanonicalTrack]:
    return [CanonicalTrack(title=f"T{i}", duration=d) for i, d in enumerate(durations)]


@pytest.fixture
def matcher() -> Matcher:
    return Matcher()


class TestMatchesFiles:
    def test_within_tolerance(self, matcher: Matcher):
        assert matcher.matches_files(_files([200, 180, 210]), _tracks([202, 180, 214]))

    def test_one_track_off(self, matcher: Matcher):
        assert not matcher.matches_files(_files([200, 180, 220]), _tracks([202, 180, 214]))

    def test_fewer_files_than_tracks(self, matcher: Matcher):
        assert not matcher.matches_files(_files([200, 180]), _tracks([200, 180, 210]))

    def test_more_files_than_tracks(self, matcher: Matcher):
        assert not matcher.matches_files(_files([200, 180, 1]), _tracks([200, 180]))

    def test_exact_tolerance_is_accepted(self, matcher: Matcher):
        assert matcher.matches_files(_files([100]), _tracks([105]))

    def test_just_over_tolerance(self, matcher: Matcher):
        assert not matcher.matches_files(_files([100]), _tracks([105.5]))

    def test_missing_local_duration_counts_as_zero(self, matcher: Matcher):
        assert matcher.matches_files(_files([None]), _tracks([4]))
        assert not matcher.matches_files(_files([None]), _tracks([200]))

    def test_missing_canonical_duration_counts_as_zero(self, matcher: Matcher):
        assert not matcher.matches_files(_files([200]), _tracks([None]))

    def test_both_empty(self, matcher: Matcher):
        assert matcher.matches_files([], [])

    def test_order_matters(self, matcher: Matcher):
        assert not matcher.matches_files(_files([100, 300]), _tracks([300, 100]))

    def test_custom_tolerance(self):
        strict = Matcher(tolerance_seconds=1)
        assert strict.tolerance_seconds == 1
        assert not strict.matches_files(_files([200]), _tracks([202]))


class TestEvaluate:
    def test_report_for_length_mismatch(self, matcher: Matcher):
        report = matcher.evaluate(_files([1, 2]), _tracks([1, 2, 3]))
        assert report.outcome is MatchOutcome.UNEQUAL_LENGTH
        assert report.local_count == 2
        assert report.canonical_count == 3
        assert report.deltas == []
        assert report.max_delta is None

    def test_report_for_duration_mismatch(self, matcher: Matcher):
        report = matcher.evaluate(_files([200, 180, 220]), _tracks([202, 180, 214]))
        assert report.outcome is MatchOutcome.UNEQUAL_DURATION
        assert report.deltas == [2, 0, 6]
        assert report.max_delta == 6
        assert report.worst_position == 2
        assert not report.matched

    def test_report_for_match(self, matcher: Matcher):
        report = matcher.evaluate(_files([200]), _tracks([203]))
        assert report.matched
        assert report.max_delta == 3


class TestMatchesDirectory:
    def test_tag_text_is_ignored(self, matcher: Matcher, release_dir):
        directory = release_dir([200, 180, 210], artist="Someone Else", album="Wrong")
        tracks = [
            CanonicalTrack(title="Completely", duration=202),
            CanonicalTrack(title="Different", duration=180),
            CanonicalTrack(title="Titles", duration=214),
        ]
        assert matcher.matches(DirectorySource(directory), tracks)

    def test_directory_with_missing_track(self, matcher: Matcher, release_dir):
        directory = release_dir([200, 180])
        assert not matcher.matches(DirectorySource(directory), _tracks([200, 180, 210]))
