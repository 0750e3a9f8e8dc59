"""Library processor -- runs the transcode and tagging pipeline over release directories."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from ripsync.core.candidate_ranker import CandidateRanker
from ripsync.core.catalog import DiscogsClient
from ripsync.core.directory_source import DirectorySource
from ripsync.core.errors import TagWriteError, TranscodeError
from ripsync.core.matcher import Matcher, MatchReport
from ripsync.core.reconciler import Reconciler
from ripsync.core.tag_facade import TagFacade
from ripsync.core.transcoder import Transcoder
from ripsync.models.config import AppConfig
from ripsync.models.release import Release
from ripsync.models.tags import TagField
from ripsync.utils.logger import get_logger

logger = get_logger("core.library_processor")


class DirectoryStatus(Enum):
    """Final status of one release directory."""

    TRANSCODED = "transcoded"
    TAGGED = "tagged"
    UNMATCHED = "unmatched"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class DirectoryReport:
    """What happened to one release directory.

    Attributes:
        path: The release directory.
        status: Final status.
        transcoded: Files converted to the target format.
        skipped: Files already in the target format.
        written: Files whose tags were rewritten.
        errors: Human-readable failure messages.
        release: Release applied or checked, if any.
        match: Match report against that release, if one was computed.
    """

    path: Path
    status: DirectoryStatus
    transcoded: int = 0
    skipped: int = 0
    written: int = 0
    errors: list[str] = field(default_factory=list)
    release: Release | None = None
    match: MatchReport | None = None

    @property
    def ok(self) -> bool:
        return self.status in (DirectoryStatus.TRANSCODED, DirectoryStatus.TAGGED) and not self.errors


@dataclass
class BatchStats:
    """Statistics for a run over many directories."""

    directories: int = 0
    transcoded: int = 0
    skipped: int = 0
    failed_files: int = 0
    matched: int = 0
    unmatched: int = 0
    tagged: int = 0
    errored: int = 0

    def add(self, report: DirectoryReport) -> None:
        self.directories += 1
        self.transcoded += report.transcoded
        self.skipped += report.skipped
        self.failed_files += len(report.errors)
        if report.match is not None and report.match.matched:
            self.matched += 1
        elif report.status in (DirectoryStatus.UNMATCHED, DirectoryStatus.NOT_FOUND):
            self.unmatched += 1
        if report.status is DirectoryStatus.TAGGED:
            self.tagged += 1
        elif report.status is DirectoryStatus.FAILED:
            self.errored += 1


@dataclass
class BatchResult:
    """Complete result of a run over many directories."""

    reports: list[DirectoryReport] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)

    @property
    def ok(self) -> bool:
        return all(report.ok for report in self.reports)


# Callback type: (completed, total, report)
ProgressCallback = Callable[[int, int, DirectoryReport], None]


class LibraryProcessor:
    """Orchestrates transcoding and tagging of release directories.

    Pipeline per directory:
    1. Transcode: FLAC files become MP3, MP3s are left alone
    2. Find: look the release up in the catalog (by id, or by searching
       with the first file's artist/album tags)
    3. Match: compare track count and durations
    4. Apply: rewrite title/artist/album/year, only after a match

    Directories are independent; each one is owned by a single worker.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        catalog: DiscogsClient | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize the processor and its components.

        Args:
            config: Application config.
            catalog: Catalog client (created from config if omitted).
            progress_callback: Optional callback invoked after each directory.
        """
        self._config = config or AppConfig()
        self._tag_facade = TagFacade()
        self._transcoder = Transcoder(self._config, self._tag_facade)
        self._matcher = Matcher(self._config.duration_tolerance_seconds)
        self._reconciler = Reconciler(self._tag_facade)
        self._ranker = CandidateRanker()
        self._catalog = catalog or DiscogsClient(self._config)
        self._progress_callback = progress_callback

    @property
    def matcher(self) -> Matcher:
        return self._matcher

    def source(self, directory: Path | str) -> DirectorySource:
        return DirectorySource(directory, self._tag_facade)

    # --- Transcoding ---

    def transcode_release(self, directory: Path | str) -> DirectoryReport:
        """Transcode every file of one release directory.

        Args:
            directory: The release directory.

        Returns:
            A DirectoryReport; failures are recorded, not raised.
        """
        path = Path(directory)
        try:
            result = self._transcoder.transcode_directory(self.source(path))
        except TranscodeError as e:
            logger.error("Stopped transcoding %s: %s", path, e)
            return DirectoryReport(path=path, status=DirectoryStatus.FAILED, errors=[str(e)])
        except OSError as e:
            logger.error("Cannot read %s: %s", path, e)
            return DirectoryReport(path=path, status=DirectoryStatus.FAILED, errors=[str(e)])

        return DirectoryReport(
            path=path,
            status=DirectoryStatus.TRANSCODED if result.ok else DirectoryStatus.FAILED,
            transcoded=result.transcoded,
            skipped=result.skipped,
            errors=[str(e) for e in result.errors],
        )

    def transcode_library(self, root: Path | str) -> BatchResult:
        """Transcode every release directory directly under ``root``.

        Args:
            root: Directory containing one subdirectory per release.

        Returns:
            BatchResult with one report per directory, in path order.

        Raises:
            FileNotFoundError: If root does not exist.
            NotADirectoryError: If root is not a directory.
        """
        directories = self.source(root).release_dirs()
        return self._run_parallel(directories, self.transcode_release)

    # --- Tagging ---

    def find_release(self, source: DirectorySource) -> tuple[Release | None, MatchReport | None]:
        """Search the catalog for a release whose tracklist matches ``source``.

        The first file's artist and album tags form the query. Candidates
        are ranked by title similarity and fetched in that order; the first
        one that matches wins.

        Returns:
            ``(release, report)`` for the match, ``(None, best_report)`` if
            no candidate matched, ``(None, None)`` if nothing was found.
        """
        files = source.audio_files()
        if not files:
            logger.info("No audio files in %s", source.root)
            return None, None

        artist = files[0].get(TagField.ARTIST)
        album = files[0].get(TagField.ALBUM)
        if not artist and not album:
            logger.info("No artist/album tags to search with in %s", source.root)
            return None, None

        results = self._catalog.search(artist, album)
        candidates = self._ranker.rank(
            results.results, artist, album, limit=self._config.max_search_candidates
        )

        last_report: MatchReport | None = None
        for candidate in candidates:
            release = self._catalog.get_release(candidate.id)
            if release is None:
                continue
            report = self._matcher.evaluate(files, release.tracks())
            if report.matched:
                logger.info("%s matches release %s (%s)", source.root.name, release.id, candidate.title)
                return release, report
            last_report = report
        return None, last_report

    def tag_release(
        self,
        directory: Path | str,
        release_id: int | str | None = None,
        stop_on_error: bool | None = None,
    ) -> DirectoryReport:
        """Look up, match and tag one release directory.

        Tags are only written when the directory matches the release.

        Args:
            directory: The release directory.
            release_id: Catalog release id; searched for when omitted.
            stop_on_error: Stop at the first tag write failure (defaults to config).

        Returns:
            A DirectoryReport.
        """
        path = Path(directory)
        if stop_on_error is None:
            stop_on_error = self._config.stop_on_error
        source = self.source(path)

        try:
            if release_id is not None:
                release = self._catalog.get_release(release_id)
                if release is None:
                    return DirectoryReport(path=path, status=DirectoryStatus.NOT_FOUND)
                report = self._matcher.evaluate(source.audio_files(), release.tracks())
            else:
                release, report = self.find_release(source)
                if release is None:
                    status = DirectoryStatus.UNMATCHED if report else DirectoryStatus.NOT_FOUND
                    return DirectoryReport(path=path, status=status, match=report)
        except OSError as e:
            logger.error("Cannot read %s: %s", path, e)
            return DirectoryReport(path=path, status=DirectoryStatus.FAILED, errors=[str(e)])

        if not report.matched:
            logger.info("%s does not match release %s: %s", path.name, release.id, report.outcome.value)
            return DirectoryReport(
                path=path, status=DirectoryStatus.UNMATCHED, release=release, match=report
            )

        try:
            result = self._reconciler.apply(source, release, stop_on_error=stop_on_error)
        except TagWriteError as e:
            logger.error("Stopped tagging %s: %s", path, e)
            return DirectoryReport(
                path=path, status=DirectoryStatus.FAILED, errors=[str(e)],
                release=release, match=report,
            )
        return DirectoryReport(
            path=path,
            status=DirectoryStatus.TAGGED if result.ok else DirectoryStatus.FAILED,
            written=len(result.written),
            errors=[str(e) for e in result.errors],
            release=release,
            match=report,
        )

    def tag_library(self, root: Path | str) -> BatchResult:
        """Search, match and tag every release directory directly under ``root``."""
        directories = self.source(root).release_dirs()
        return self._run_parallel(directories, self.tag_release)

    # --- Private ---

    def _run_parallel(
        self,
        directories: list[Path],
        work: Callable[[Path], DirectoryReport],
    ) -> BatchResult:
        """Run ``work`` on each directory with up to ``max_concurrent_directories`` workers."""
        result = BatchResult()
        total = len(directories)
        if total == 0:
            return result

        max_workers = max(1, self._config.max_concurrent_directories)
        logger.info("Processing %d release directories with %d workers", total, max_workers)

        reports: dict[Path, DirectoryReport] = {}
        completed = 0
        # Threads suffice: the heavy lifting happens in codec subprocesses
        # and HTTP calls, both of which release the GIL.
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            future_to_dir = {pool.submit(work, d): d for d in directories}
            for future in as_completed(future_to_dir):
                directory = future_to_dir[future]
                report = future.result()
                reports[directory] = report
                completed += 1
                if self._progress_callback:
                    self._progress_callback(completed, total, report)

        for directory in directories:
            report = reports[directory]
            result.reports.append(report)
            result.stats.add(report)

        logger.info(
            "Done: %d directories, %d files transcoded, %d tagged, %d unmatched, %d errored",
            result.stats.directories, result.stats.transcoded, result.stats.tagged,
            result.stats.unmatched, result.stats.errored,
        )
        return result
