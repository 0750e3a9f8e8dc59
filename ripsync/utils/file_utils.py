"""Path helpers and small file operations for RipSync."""

from __future__ import annotations

from pathlib import Path

from ripsync.utils.constants import SECONDS_PER_MINUTE
from ripsync.utils.logger import get_logger

logger = get_logger("utils.file_utils")


def list_children(root: Path, dirs: bool = False) -> list[Path]:
    """List the immediate children of ``root`` that are files (or directories).

    Entries are sorted by their full path string. Symlinks are followed, so
    a link to a regular file counts as a file. Entries that vanish or cannot
    be stat'ed while listing are skipped.

    Args:
        root: Directory to list.
        dirs: If True, return subdirectories instead of files.

    Returns:
        Sorted list of child paths.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.
    """
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    children: list[Path] = []
    for entry in root.iterdir():
        try:
            wanted = entry.is_dir() if dirs else entry.is_file()
        except OSError as e:
            logger.debug("Skipping unreadable entry %s: %s", entry, e)
            continue
        if wanted:
            children.append(entry)

    children.sort(key=str)
    return children


def output_path_for(source: Path, extension: str) -> Path:
    """Return ``<source>.<extension>`` (the original suffix is kept).

    ``"01 Intro.flac"`` becomes ``"01 Intro.flac.mp3"``.
    """
    return source.with_name(f"{source.name}.{extension.lstrip('.')}")


def remove_quietly(path: Path) -> bool:
    """Delete ``path`` if it exists.

    Returns:
        True if nothing is left at ``path`` afterwards.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
        return False
    return True


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``m:ss`` (``--:--`` when unknown)."""
    if seconds is None:
        return "--:--"
    total = int(round(seconds))
    minutes, secs = divmod(total, SECONDS_PER_MINUTE)
    return f"{minutes}:{secs:02d}"
