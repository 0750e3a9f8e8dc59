"""Reconciler -- writes canonical release metadata onto a directory's files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ripsync.core.directory_source import DirectorySource
from ripsync.core.errors import TagWriteError
from ripsync.core.tag_facade import TagFacade
from ripsync.models.release import Release
from ripsync.models.tags import TagField
from ripsync.utils.logger import get_logger

logger = get_logger("core.reconciler")


@dataclass
class ReconcileResult:
    """Files written and failures from one ``apply`` call."""

    written: list[Path] = field(default_factory=list)
    errors: list[TagWriteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Reconciler:
    """Overwrites title, artist, album and year with the release's values.

    The caller is trusted to have confirmed the match first; nothing here
    re-checks it, so applying a release to the wrong directory writes wrong
    titles. Files and tracks are paired by position and the shorter of the
    two sequences decides how many files are written.
    """

    def __init__(self, tag_facade: TagFacade | None = None) -> None:
        self._tag_facade = tag_facade or TagFacade()

    def apply(
        self,
        local: DirectorySource,
        release: Release,
        stop_on_error: bool = False,
    ) -> ReconcileResult:
        """Tag every file of ``local`` from ``release`` and persist it.

        Args:
            local: The release directory.
            release: Canonical release; titles come from its tracks, artist,
                album and year from the release itself.
            stop_on_error: Raise on the first write failure instead of
                collecting it and moving on.

        Returns:
            A ReconcileResult.

        Raises:
            TagWriteError: On the first failure when ``stop_on_error`` is set.
        """
        result = ReconcileResult()
        year = str(release.year)

        for audio_file, track in zip(local.audio_files(), release.tracks()):
            audio_file.set(TagField.TITLE, track.title)
            audio_file.set(TagField.ARTIST, release.artists_sort)
            audio_file.set(TagField.ALBUM, release.title)
            audio_file.set(TagField.YEAR, year)
            try:
                self._tag_facade.persist(audio_file)
            except TagWriteError as e:
                logger.error("%s", e)
                result.errors.append(e)
                if stop_on_error:
                    raise
                continue
            result.written.append(audio_file.path)
            logger.debug("Tagged %s: %s", audio_file.path.name, track.title)

        logger.info(
            "Applied release %s to %s: %d written, %d failed",
            release.id, local.root, len(result.written), len(result.errors),
        )
        return result
