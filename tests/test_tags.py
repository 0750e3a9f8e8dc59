"""Tests for the tag record, AudioFile field access and parsing helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from ripsync.models.audio_file import AudioFile
from ripsync.models.tags import TagField, TagRecord, parse_track_number, parse_year


@pytest.fixture
def audio_file() -> AudioFile:
    return AudioFile(path=Path("/music/01.mp3"))


class TestParseYear:
    def test_four_digit_year(self):
        assert parse_year("2024") == 2024

    def test_date_string(self):
        assert parse_year("2024-03-15") == 2024

    def test_invalid_year(self):
        assert parse_year("abcd") is None

    def test_none(self):
        assert parse_year(None) is None

    def test_too_short(self):
        assert parse_year("99") is None


class TestParseTrackNumber:
    def test_simple_number(self):
        assert parse_track_number("5") == 5

    def test_fraction_format(self):
        assert parse_track_number("5/12") == 5

    def test_whitespace(self):
        assert parse_track_number(" 7 / 14 ") == 7

    def test_invalid(self):
        assert parse_track_number("abc") is None

    def test_negative(self):
        assert parse_track_number("-1") is None


class TestGetSet:
    def test_absent_field_is_none(self, audio_file: AudioFile):
        assert audio_file.get(TagField.TITLE) is None

    def test_empty_string_unsets_field(self, audio_file: AudioFile):
        audio_file.set(TagField.TITLE, "Old")
        audio_file.set(TagField.TITLE, "")
        assert audio_file.get(TagField.TITLE) is None

    def test_empty_year_is_unset_without_warning(self, audio_file: AudioFile, caplog):
        audio_file.set(TagField.YEAR, "")
        assert audio_file.tags.year is None
        assert "Invalid year" not in caplog.text

    def test_year_is_numeric(self, audio_file: AudioFile):
        audio_file.set(TagField.YEAR, "1997-10-01")
        assert audio_file.tags.year == 1997
        assert audio_file.get(TagField.YEAR) == "1997"

    def test_invalid_year_is_unset(self, audio_file: AudioFile, caplog):
        audio_file.set(TagField.YEAR, "1997")
        audio_file.set(TagField.YEAR, "unknown")
        assert audio_file.get(TagField.YEAR) is None
        assert "Invalid year" in caplog.text

    def test_invalid_track_number_is_unset(self, audio_file: AudioFile):
        audio_file.set(TagField.TRACK_NUMBER, "A1")
        assert audio_file.tags.track_number is None

    def test_set_is_in_memory_only(self, tmp_path: Path):
        path = tmp_path / "x.mp3"
        path.write_bytes(b"\x00" * 16)
        audio_file = AudioFile(path=path)
        audio_file.set(TagField.TITLE, "New")
        assert path.read_bytes() == b"\x00" * 16


class TestImportForeign:
    def test_maps_fixed_keys(self, audio_file: AudioFile):
        audio_file.import_foreign(
            {
                "TITLE": "Song",
                "TRACKNUMBER": "2/10",
                "ARTIST": "Band",
                "ALBUM": "Record",
                "DATE": "1985",
                "GENRE": "Rock",
            }
        )
        assert audio_file.tags == TagRecord(
            title="Song", artist="Band", album="Record", year=1985, track_number=2, genre="Rock"
        )

    def test_keys_are_case_insensitive(self, audio_file: AudioFile):
        audio_file.import_foreign({"title": "lower"})
        assert audio_file.get(TagField.TITLE) == "lower"

    def test_other_keys_are_ignored(self, audio_file: AudioFile):
        audio_file.import_foreign({"COMMENT": "ripped with EAC", "ALBUMARTIST": "Various"})
        assert audio_file.tags.is_empty()

    def test_missing_keys_leave_fields_untouched(self, audio_file: AudioFile):
        audio_file.set(TagField.ALBUM, "Kept")
        audio_file.import_foreign({"TITLE": "New"})
        assert audio_file.get(TagField.ALBUM) == "Kept"


class TestDisplay:
    def test_str_lists_fields(self, audio_file: AudioFile):
        audio_file.set(TagField.TITLE, "Song")
        text = str(audio_file)
        assert "title: Song" in text
        assert "artist: none" in text
        assert "year: 0" in text

    def test_display_title_falls_back_to_stem(self, audio_file: AudioFile):
        assert audio_file.display_title == "01"
