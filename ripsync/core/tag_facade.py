"""Tag facade -- one tag view over ID3 frames and FLAC Vorbis comments, via mutagen."""

from __future__ import annotations

from pathlib import Path

import mutagen
from mutagen.easyid3 import EasyID3
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError

from ripsync.core.errors import OpenError, TagWriteError
from ripsync.models.audio_file import AudioFile, ContainerKind
from ripsync.models.tags import TagField
from ripsync.utils.constants import (
    EASYID3_FIELD_MAP,
    FLAC_MAGIC,
    GENRE_FRAME_ID,
    ID3_HEADER_SIZE,
    ID3_MAGIC,
    ID3_VERSION,
    MILLISECONDS_PER_SECOND,
    MPEG_SYNC_MASK,
)
from ripsync.utils.logger import get_logger

logger = get_logger("core.tag_facade")


class TagFacade:
    """Opens audio files and reads/writes their tags in one normalized shape.

    Reading is forgiving: a missing or corrupt tag block gives an empty
    record. Writing always uses ID3v2.4, whatever the container, because
    every file this pipeline produces is an MP3.
    """

    def sniff(self, path: Path) -> ContainerKind:
        """Classify a file by its leading bytes.

        A leading ID3v2 block is skipped so that a FLAC stream carrying a
        prepended ID3 tag is still recognized as FLAC.

        Args:
            path: File to inspect.

        Returns:
            The detected container kind.

        Raises:
            OpenError: If the file cannot be read or is empty.
        """
        try:
            with open(path, "rb") as fh:
                header = fh.read(ID3_HEADER_SIZE)
        except OSError as e:
            raise OpenError(path, str(e)) from e
        if not header:
            raise OpenError(path, "file is empty")

        if header.startswith(ID3_MAGIC):
            return self._sniff_after_id3(path)
        if header.startswith(FLAC_MAGIC):
            return ContainerKind.LOSSLESS_A
        if len(header) >= 2 and header[0] == 0xFF and header[1] & MPEG_SYNC_MASK == MPEG_SYNC_MASK:
            return ContainerKind.LOSSY_B
        return ContainerKind.OTHER

    def open(self, path: Path | str) -> AudioFile:
        """Open a file, classify it and read its tags and duration.

        Args:
            path: File to open.

        Returns:
            An AudioFile; its tag record is empty if no tags could be read.

        Raises:
            OpenError: If the file cannot be read at all.
        """
        path = Path(path)
        kind = self.sniff(path)
        audio_file = AudioFile(path=path, container_kind=kind)
        self._load_tags(audio_file)
        audio_file.duration = self._read_duration(path)
        logger.debug(
            "Opened %s (%s): %s - %s",
            path.name, kind.value, audio_file.tags.artist, audio_file.tags.title,
        )
        return audio_file

    def read_comment_block(self, path: Path) -> dict[str, str]:
        """Read the Vorbis comment block of a FLAC file.

        Args:
            path: FLAC file.

        Returns:
            Mapping of lower-case comment key to its first value. Empty if
            the file has no comment block.

        Raises:
            OpenError: If the file is not a parseable FLAC stream.
        """
        try:
            flac = FLAC(path)
        except (mutagen.MutagenError, OSError) as e:
            raise OpenError(path, f"not a readable FLAC stream: {e}") from e

        if flac.tags is None:
            return {}
        return {key: values[0] for key, values in flac.tags.as_dict().items() if values}

    def persist(self, audio_file: AudioFile, path: Path | str | None = None) -> None:
        """Write the record as ID3v2.4 frames.

        Unset fields are removed from the file so that re-opening it yields
        the same record.

        Args:
            audio_file: File whose record is written.
            path: Destination file; defaults to ``audio_file.path``.

        Raises:
            TagWriteError: If the destination is missing or cannot be written.
        """
        target = Path(path) if path is not None else audio_file.path
        if not target.is_file():
            raise TagWriteError(target, "file not found")

        try:
            try:
                easy = EasyID3(target)
            except ID3NoHeaderError:
                easy = EasyID3()

            for tag in TagField:
                key = EASYID3_FIELD_MAP[tag.value]
                value = audio_file.get(tag)
                if value is None:
                    if key in easy:
                        del easy[key]
                else:
                    easy[key] = value

            easy.save(target, v2_version=ID3_VERSION)
        except (mutagen.MutagenError, OSError, ValueError) as e:
            raise TagWriteError(target, str(e), partial=True) from e

        logger.debug("Wrote ID3v2.%d tags: %s", ID3_VERSION, target.name)

    # --- Private: Read helpers ---

    def _sniff_after_id3(self, path: Path) -> ContainerKind:
        """Classify the stream that follows a leading ID3v2 block."""
        try:
            tag_size = ID3(path, translate=False).size
        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.debug("Unparseable ID3 header in %s: %s", path.name, e)
            return ContainerKind.LOSSY_B

        try:
            with open(path, "rb") as fh:
                fh.seek(tag_size)
                magic = fh.read(len(FLAC_MAGIC))
        except OSError as e:
            raise OpenError(path, str(e)) from e
        if magic == FLAC_MAGIC:
            return ContainerKind.LOSSLESS_A
        return ContainerKind.LOSSY_B

    def _load_tags(self, audio_file: AudioFile) -> None:
        """Populate the record, preferring ID3 frames over Vorbis comments.

        A file this pipeline has written to always carries ID3, even when the
        container is FLAC, so ID3 wins when it holds any field. An ID3 block
        with none of them does not hide a FLAC comment block.
        """
        path = audio_file.path
        easy: EasyID3 | None = None
        try:
            easy = EasyID3(path)
        except ID3NoHeaderError:
            pass
        except (mutagen.MutagenError, OSError, ValueError) as e:
            logger.warning("Unreadable ID3 tag in %s: %s", path.name, e)

        if easy is not None:
            for tag in TagField:
                if tag is TagField.GENRE:
                    value = self._literal_genre(path)
                else:
                    value = self._get_tag(easy, EASYID3_FIELD_MAP[tag.value])
                if value is not None:
                    audio_file.set(tag, value)
            if not audio_file.tags.is_empty():
                return

        if audio_file.container_kind is ContainerKind.LOSSLESS_A:
            try:
                audio_file.import_foreign(self.read_comment_block(path))
            except OpenError as e:
                logger.warning("Unreadable comment block in %s: %s", path.name, e.reason)

    def _literal_genre(self, path: Path) -> str | None:
        """Genre frame text as stored.

        EasyID3 expands ID3v1 genre references, so ``"0"`` would read back as
        ``"Blues"`` and ``"(17)"`` as ``"Rock"``. Loading without translation
        keeps the text that ``persist`` wrote.
        """
        try:
            id3 = ID3(path, translate=False)
        except (mutagen.MutagenError, OSError, ValueError):
            return None
        frame = id3.get(GENRE_FRAME_ID)
        if frame is None or not frame.text:
            return None
        return str(frame.text[0])

    def _get_tag(self, audio: EasyID3, key: str) -> str | None:
        """Extract the first value of a tag."""
        try:
            values = audio.get(key)
        except (KeyError, ValueError):
            return None
        if not values:
            return None
        return str(values[0])

    def _read_duration(self, path: Path) -> float | None:
        """Duration from the stream properties, falling back to the TLEN frame."""
        audio = None
        try:
            audio = mutagen.File(path)
        except (mutagen.MutagenError, OSError) as e:
            logger.debug("No stream info for %s: %s", path.name, e)

        info = getattr(audio, "info", None)
        length = getattr(info, "length", None)
        if length:
            return float(length)

        try:
            id3 = ID3(path)
        except (mutagen.MutagenError, OSError):
            return None
        frame = id3.get("TLEN")
        if frame is None or not frame.text:
            return None
        try:
            return int(str(frame.text[0])) / MILLISECONDS_PER_SECOND
        except ValueError:
            return None
