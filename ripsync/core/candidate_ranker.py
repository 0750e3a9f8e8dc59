"""Orders catalog search results by how closely they resemble the query."""

from __future__ import annotations

from rapidfuzz import fuzz

from ripsync.models.release import SearchResult
from ripsync.utils.logger import get_logger

logger = get_logger("core.candidate_ranker")


class CandidateRanker:
    """Ranks search hits by fuzzy similarity of "Artist - Album" titles.

    Discogs already sorts by relevance, so ties keep the catalog's order.
    Ranking only decides which releases are fetched first; whether a
    release fits a directory is still decided by durations alone.
    """

    def similarity(self, str_a: str | None, str_b: str | None) -> float:
        """Similarity between two strings (0.0 - 100.0).

        Weighted combination of ratio, partial_ratio and token_sort_ratio:
        token_sort handles word reordering, partial handles substrings such
        as edition suffixes.
        """
        if not str_a or not str_b:
            return 0.0

        a = str_a.strip().lower()
        b = str_b.strip().lower()
        if a == b:
            return 100.0

        ratio = fuzz.ratio(a, b)
        partial = fuzz.partial_ratio(a, b)
        token_sort = fuzz.token_sort_ratio(a, b)
        return (ratio * 0.4) + (partial * 0.3) + (token_sort * 0.3)

    def rank(
        self,
        results: list[SearchResult],
        artist: str | None,
        album: str | None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Return ``results`` best-first, truncated to ``limit``.

        Args:
            results: Search hits in catalog order.
            artist: Queried artist.
            album: Queried album.
            limit: Maximum number of hits to keep.

        Returns:
            Reordered hits.
        """
        query = " - ".join(part for part in (artist, album) if part)
        scored = [
            (self.similarity(query, result.title), index, result)
            for index, result in enumerate(results)
        ]
        scored.sort(key=lambda item: (-item[0], item[1]))
        ranked = [result for _, _, result in scored]
        if scored:
            logger.debug("Best candidate for %r: %r (%.1f)", query, scored[0][2].title, scored[0][0])
        if limit is not None:
            ranked = ranked[:limit]
        return ranked
