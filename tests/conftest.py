"""Shared fixtures -- synthesized FLAC and ID3-tagged files for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from mutagen.flac import FLAC
from mutagen.id3 import ID3, TALB, TDRC, TIT2, TLEN, TPE1

# STREAMINFO body: 4096-sample blocks, 44.1 kHz, stereo, 16 bit, 0 samples
_STREAMINFO = (
    b"\x10\x00\x10\x00\x00\x00\x00\x00\x00\x00"
    b"\x0a\xc4\x42\xf0\x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x00\x00"
)


def write_flac(path: Path, comments: dict[str, str] | None = None) -> Path:
    """Write a metadata-only FLAC stream, optionally with Vorbis comments."""
    # fLaC marker + last-block STREAMINFO header (type 0, length 34)
    path.write_bytes(b"fLaC" + bytes([0x80, 0x00, 0x00, 0x22]) + _STREAMINFO)
    if comments is not None:
        flac = FLAC(path)
        flac.add_tags()
        for key, value in comments.items():
            flac.tags[key] = value
        flac.save()
    return path


def write_tagged(
    path: Path,
    title: str | None = None,
    artist: str | None = None,
    album: str | None = None,
    year: str | None = None,
    duration: float | None = None,
) -> Path:
    """Write an ID3v2.4-tagged file with no audio frames.

    ``duration`` is stored in the TLEN frame, the only length source such a
    file has.
    """
    path.write_bytes(b"\x00" * 256)
    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=title))
    if artist is not None:
        tags.add(TPE1(encoding=3, text=artist))
    if album is not None:
        tags.add(TALB(encoding=3, text=album))
    if year is not None:
        tags.add(TDRC(encoding=3, text=year))
    if duration is not None:
        tags.add(TLEN(encoding=3, text=str(int(duration * 1000))))
    tags.save(path, v2_version=4)
    return path


@pytest.fixture
def make_flac(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str = "track.flac", comments: dict[str, str] | None = None) -> Path:
        return write_flac(tmp_path / name, comments)

    return _make


@pytest.fixture
def make_tagged(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str = "track.mp3", **kwargs) -> Path:
        return write_tagged(tmp_path / name, **kwargs)

    return _make


@pytest.fixture
def release_dir(tmp_path: Path) -> Callable[..., Path]:
    """Build a release directory of tagged files with the given durations."""

    def _make(
        durations: list[float | None],
        name: str = "Artist - Album",
        artist: str = "Artist",
        album: str = "Album",
    ) -> Path:
        directory = tmp_path / name
        directory.mkdir()
        for index, duration in enumerate(durations, start=1):
            write_tagged(
                directory / f"{index:02d}.mp3",
                title=f"Local {index}",
                artist=artist,
                album=album,
                duration=duration,
            )
        return directory

    return _make
