"""Directory source -- one release directory and its audio files in track order."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ripsync.core.errors import OpenError
from ripsync.core.tag_facade import TagFacade
from ripsync.models.audio_file import AudioFile
from ripsync.utils.file_utils import list_children
from ripsync.utils.logger import get_logger

logger = get_logger("core.directory_source")


class EntryKind(Enum):
    FILES = "files"
    DIRS = "dirs"


@dataclass
class OpenResult:
    """A directory entry and the outcome of opening it."""

    path: Path
    audio_file: AudioFile | None = None
    error: OpenError | None = None

    @property
    def ok(self) -> bool:
        return self.audio_file is not None


class DirectorySource:
    """A release directory whose regular files are its tracks.

    Track order is the lexicographic order of the full file paths. Track
    number tags are never consulted, so "Track 10" sorts before "Track 2".

    Usage:
        source = DirectorySource("/music/incoming/Artist - Album")
        for audio_file in source.audio_files():
            print(audio_file.path, audio_file.duration)
    """

    def __init__(self, root: Path | str, tag_facade: TagFacade | None = None) -> None:
        """Initialize the source.

        Args:
            root: The release directory.
            tag_facade: Facade used to open files (a new one if omitted).
        """
        self.root = Path(root)
        self._tag_facade = tag_facade or TagFacade()

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.root)!r})"

    def list_files(self, kind: EntryKind = EntryKind.FILES) -> list[Path]:
        """List one level of the directory, sorted by full path.

        Args:
            kind: Whether to return regular files or subdirectories.

        Returns:
            Sorted child paths.

        Raises:
            FileNotFoundError: If the directory does not exist.
            NotADirectoryError: If root is not a directory.
        """
        return list_children(self.root, dirs=kind is EntryKind.DIRS)

    def release_dirs(self) -> list[Path]:
        """Subdirectories of this directory, for a source root holding many releases."""
        return self.list_files(EntryKind.DIRS)

    def open_files(self) -> list[OpenResult]:
        """Open every file in track order, keeping failures alongside successes."""
        results: list[OpenResult] = []
        for path in self.list_files(EntryKind.FILES):
            try:
                results.append(OpenResult(path=path, audio_file=self._tag_facade.open(path)))
            except OpenError as e:
                results.append(OpenResult(path=path, error=e))
        return results

    def audio_files(self) -> list[AudioFile]:
        """Open every file in track order, dropping those that cannot be opened."""
        files: list[AudioFile] = []
        for result in self.open_files():
            if result.audio_file is None:
                logger.debug("Dropping %s: %s", result.path.name, result.error)
                continue
            files.append(result.audio_file)
        return files

    def durations(self) -> list[float | None]:
        """Durations of the audio files in track order."""
        return [audio_file.duration for audio_file in self.audio_files()]
