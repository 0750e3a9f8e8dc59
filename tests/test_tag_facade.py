"""Tests for TagFacade -- sniffing, reading, writing and the Vorbis migration path."""

from __future__ import annotations

from pathlib import Path

import pytest
from mutagen.id3 import ID3, TCON

from ripsync.core.errors import OpenError, TagWriteError
from ripsync.core.tag_facade import TagFacade
from ripsync.models.audio_file import AudioFile, ContainerKind
from ripsync.models.tags import TagField


@pytest.fixture
def facade() -> TagFacade:
    return TagFacade()


class TestSniff:
    def test_flac_magic(self, facade: TagFacade, make_flac):
        assert facade.sniff(make_flac()) is ContainerKind.LOSSLESS_A

    def test_id3_header_is_lossy(self, facade: TagFacade, make_tagged):
        assert facade.sniff(make_tagged(title="x")) is ContainerKind.LOSSY_B

    def test_mpeg_sync_word(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "raw.mp3"
        p.write_bytes(bytes([0xFF, 0xFB, 0x90, 0x00]) + b"\x00" * 417)
        assert facade.sniff(p) is ContainerKind.LOSSY_B

    def test_unknown_content(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "notes.txt"
        p.write_text("liner notes")
        assert facade.sniff(p) is ContainerKind.OTHER

    def test_extension_is_ignored(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "fake.flac"
        p.write_text("not audio")
        assert facade.sniff(p) is ContainerKind.OTHER

    def test_flac_with_prepended_id3_is_still_flac(self, facade: TagFacade, make_flac):
        path = make_flac()
        audio_file = AudioFile(path=path, container_kind=ContainerKind.LOSSLESS_A)
        audio_file.set(TagField.TITLE, "Tagged")
        facade.persist(audio_file)
        assert path.read_bytes().startswith(b"ID3")
        assert facade.sniff(path) is ContainerKind.LOSSLESS_A

    def test_truncated_id3_header_is_lossy(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "short.mp3"
        p.write_bytes(b"ID3\x04")
        assert facade.sniff(p) is ContainerKind.LOSSY_B

    def test_empty_file_raises(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "empty.mp3"
        p.write_bytes(b"")
        with pytest.raises(OpenError):
            facade.sniff(p)

    def test_missing_file_raises(self, facade: TagFacade, tmp_path: Path):
        with pytest.raises(OpenError):
            facade.sniff(tmp_path / "missing.mp3")


class TestOpen:
    def test_reads_id3_fields(self, facade: TagFacade, make_tagged):
        path = make_tagged(title="Song", artist="Band", album="Record", year="1999")
        audio_file = facade.open(path)
        assert audio_file.get(TagField.TITLE) == "Song"
        assert audio_file.get(TagField.ARTIST) == "Band"
        assert audio_file.get(TagField.ALBUM) == "Record"
        assert audio_file.tags.year == 1999
        assert audio_file.get(TagField.GENRE) is None

    def test_duration_from_tlen(self, facade: TagFacade, make_tagged):
        audio_file = facade.open(make_tagged(duration=201.5))
        assert audio_file.duration == pytest.approx(201.5)

    def test_no_duration(self, facade: TagFacade, make_tagged):
        assert facade.open(make_tagged(title="x")).duration is None

    def test_flac_reads_vorbis_comments(self, facade: TagFacade, make_flac):
        path = make_flac(comments={"TITLE": "Intro", "ARTIST": "Band", "DATE": "2001-05-04"})
        audio_file = facade.open(path)
        assert audio_file.container_kind is ContainerKind.LOSSLESS_A
        assert audio_file.get(TagField.TITLE) == "Intro"
        assert audio_file.get(TagField.ARTIST) == "Band"
        assert audio_file.tags.year == 2001

    def test_empty_id3_block_does_not_hide_vorbis_comments(self, facade: TagFacade, make_flac):
        path = make_flac(comments={"TITLE": "Vorbis"})
        ID3().save(path, v2_version=4)
        assert path.read_bytes().startswith(b"ID3")

        audio_file = facade.open(path)
        assert audio_file.container_kind is ContainerKind.LOSSLESS_A
        assert audio_file.get(TagField.TITLE) == "Vorbis"

    def test_numeric_genre_is_read_literally(self, facade: TagFacade, make_tagged):
        path = make_tagged(title="x")
        tags = ID3(path)
        tags.add(TCON(encoding=3, text="(17)"))
        tags.save(path, v2_version=4)
        assert facade.open(path).get(TagField.GENRE) == "(17)"

    def test_flac_without_comments_is_empty(self, facade: TagFacade, make_flac):
        audio_file = facade.open(make_flac())
        assert audio_file.tags.is_empty()

    def test_untagged_file_opens_with_empty_record(self, facade: TagFacade, tmp_path: Path):
        p = tmp_path / "cover.jpg"
        p.write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 32)
        audio_file = facade.open(p)
        assert audio_file.tags.is_empty()

    def test_missing_file_raises(self, facade: TagFacade, tmp_path: Path):
        with pytest.raises(OpenError):
            facade.open(tmp_path / "gone.mp3")


class TestReadCommentBlock:
    def test_returns_first_values(self, facade: TagFacade, make_flac):
        path = make_flac(comments={"TITLE": "A", "TRACKNUMBER": "3/9"})
        block = facade.read_comment_block(path)
        upper = {k.upper(): v for k, v in block.items()}
        assert upper["TITLE"] == "A"
        assert upper["TRACKNUMBER"] == "3/9"

    def test_no_block(self, facade: TagFacade, make_flac):
        assert facade.read_comment_block(make_flac()) == {}

    def test_not_flac_raises(self, facade: TagFacade, make_tagged):
        with pytest.raises(OpenError):
            facade.read_comment_block(make_tagged(title="x"))


class TestPersist:
    def test_round_trip_all_fields(self, facade: TagFacade, make_tagged):
        path = make_tagged()
        audio_file = facade.open(path)
        audio_file.set(TagField.TITLE, "Title")
        audio_file.set(TagField.ARTIST, "Artist")
        audio_file.set(TagField.ALBUM, "Album")
        audio_file.set(TagField.YEAR, "2004")
        audio_file.set(TagField.TRACK_NUMBER, "7")
        audio_file.set(TagField.GENRE, "Jazz")
        facade.persist(audio_file)

        reopened = facade.open(path)
        assert reopened.tags == audio_file.tags

    def test_empty_string_round_trips_as_absent(self, facade: TagFacade, make_tagged):
        path = make_tagged(title="Old", artist="Band")
        audio_file = facade.open(path)
        audio_file.set(TagField.TITLE, "")
        facade.persist(audio_file)

        reopened = facade.open(path)
        assert reopened.get(TagField.TITLE) is None
        assert reopened.get(TagField.TITLE) == audio_file.get(TagField.TITLE)
        assert reopened.tags == audio_file.tags

    @pytest.mark.parametrize("genre", ["0", "(17)", "Jazz"])
    def test_genre_round_trips_literally(self, facade: TagFacade, make_tagged, genre: str):
        path = make_tagged()
        audio_file = facade.open(path)
        audio_file.set(TagField.GENRE, genre)
        facade.persist(audio_file)
        assert facade.open(path).get(TagField.GENRE) == genre

    def test_empty_record_on_flac_keeps_vorbis_comments(self, facade: TagFacade, make_flac):
        path = make_flac(comments={"TITLE": "Vorbis"})
        facade.persist(AudioFile(path=path, container_kind=ContainerKind.LOSSLESS_A))
        assert facade.sniff(path) is ContainerKind.LOSSLESS_A
        assert facade.open(path).get(TagField.TITLE) == "Vorbis"

    def test_writes_id3v24(self, facade: TagFacade, make_tagged):
        path = make_tagged()
        audio_file = facade.open(path)
        audio_file.set(TagField.TITLE, "Title")
        facade.persist(audio_file)
        assert ID3(path).version[:2] == (2, 4)

    def test_unset_fields_are_removed(self, facade: TagFacade, make_tagged):
        path = make_tagged(title="Old", album="Old Album")
        audio_file = facade.open(path)
        audio_file.tags.album = None
        facade.persist(audio_file)
        assert facade.open(path).get(TagField.ALBUM) is None
        assert facade.open(path).get(TagField.TITLE) == "Old"

    def test_round_trip_flac_container(self, facade: TagFacade, make_flac):
        path = make_flac(comments={"TITLE": "Vorbis"})
        audio_file = facade.open(path)
        audio_file.set(TagField.TITLE, "Id3")
        facade.persist(audio_file)
        assert facade.open(path).get(TagField.TITLE) == "Id3"

    def test_persist_to_other_path(self, facade: TagFacade, make_tagged):
        source = facade.open(make_tagged("a.mp3", title="Source"))
        target = make_tagged("b.mp3")
        facade.persist(source, target)
        assert facade.open(target).get(TagField.TITLE) == "Source"

    def test_missing_target_raises(self, facade: TagFacade, tmp_path: Path):
        audio_file = AudioFile(path=tmp_path / "gone.mp3")
        with pytest.raises(TagWriteError) as excinfo:
            facade.persist(audio_file)
        assert excinfo.value.partial is False
