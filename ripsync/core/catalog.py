"""Catalog client -- release lookup and search against the Discogs API."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

import requests

from ripsync.models.config import AppConfig
from ripsync.models.release import Release, SearchResults
from ripsync.utils.constants import (
    API_MAX_RETRIES,
    API_RETRY_BACKOFF_SECONDS,
    API_TIMEOUT_SECONDS,
    DISCOGS_API_URL,
    DISCOGS_USER_AGENT,
)
from ripsync.utils.logger import get_logger
from ripsync.utils.rate_limiter import RateLimiter

logger = get_logger("core.catalog")

T = TypeVar("T")

_SERVICE = "discogs"
_HTTP_NOT_FOUND = 404


class _NotFound(Exception):
    """The catalog answered 404; never retried."""


def _retry(
    func: Callable[[], T],
    service_name: str,
    max_retries: int = API_MAX_RETRIES,
    backoff_seconds: float = API_RETRY_BACKOFF_SECONDS,
) -> T | None:
    """Retry a request with linear backoff.

    Args:
        func: Callable performing the request.
        service_name: Name of the service (for logging).
        max_retries: Maximum number of attempts.
        backoff_seconds: Base wait, multiplied by the attempt number.

    Returns:
        The function's return value, or None if all attempts failed.

    Raises:
        _NotFound: Passed through untouched on the first attempt that hits it.
    """
    for attempt in range(1, max_retries + 1):
        try:
            return func()
        except _NotFound:
            raise
        except (requests.RequestException, ValueError) as e:
            wait_time = backoff_seconds * attempt
            if attempt < max_retries:
                logger.warning(
                    "%s request failed (attempt %d/%d): %s -- retrying in %.0fs",
                    service_name, attempt, max_retries, e, wait_time,
                )
                time.sleep(wait_time)
            else:
                logger.error(
                    "%s request failed after %d attempts: %s",
                    service_name, max_retries, e,
                )
    return None


class DiscogsClient:
    """Fetches releases and searches the Discogs database.

    A personal access token is required by Discogs for search; without one,
    every call logs a warning and returns an empty result.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        rate_limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
        retry_backoff_seconds: float = API_RETRY_BACKOFF_SECONDS,
    ) -> None:
        """Initialize the client.

        Args:
            config: Application config (token and rate limit).
            rate_limiter: Shared limiter; a private one is created if omitted.
            session: HTTP session to use (for connection reuse and tests).
            retry_backoff_seconds: Base wait between retries.
        """
        self._config = config or AppConfig()
        self._token = self._config.discogs_token
        self._rate_limiter = rate_limiter or RateLimiter(
            max_calls=self._config.discogs_rate_limit_calls,
            period=self._config.discogs_rate_limit_period,
        )
        self._retry_backoff = retry_backoff_seconds

        # Persistent HTTP session -- reuses TCP/TLS connections across requests
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": DISCOGS_USER_AGENT,
            "Cache-Control": "no-cache",
        })
        if self._token:
            self._session.headers["Authorization"] = f"Discogs token={self._token}"

    def get_release(self, release_id: int | str) -> Release | None:
        """Fetch a release with its full tracklist.

        Args:
            release_id: Discogs release id.

        Returns:
            The Release, or None if it does not exist or the request failed.
        """
        if not self._check_token():
            return None

        try:
            data = _retry(
                lambda: self._get_json(f"/releases/{release_id}"),
                "Discogs",
                backoff_seconds=self._retry_backoff,
            )
        except _NotFound:
            logger.info("Discogs release %s not found", release_id)
            return None
        if data is None:
            return None

        try:
            release = Release.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed Discogs release %s: %s", release_id, e)
            return None

        logger.debug(
            "Discogs release %s: %s - %s (%d tracks)",
            release.id, release.artists_sort, release.title, len(release.tracks()),
        )
        return release

    def search(self, artist: str | None, album: str | None) -> SearchResults:
        """Search releases by artist and album title.

        Args:
            artist: Artist name.
            album: Release title.

        Returns:
            SearchResults; ``results`` is empty on no match or failure.
        """
        if not self._check_token():
            return SearchResults()
        if not artist and not album:
            return SearchResults()

        params = {"type": "release"}
        if artist:
            params["artist"] = artist
        if album:
            params["release_title"] = album

        try:
            data = _retry(
                lambda: self._get_json("/database/search", params),
                "Discogs",
                backoff_seconds=self._retry_backoff,
            )
        except _NotFound:
            data = None
        if data is None:
            return SearchResults()

        try:
            results = SearchResults.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed Discogs search response: %s", e)
            return SearchResults()

        logger.debug("Discogs search %r / %r returned %d results", artist, album, len(results))
        return results

    # --- Private ---

    def _check_token(self) -> bool:
        if not self._token:
            logger.warning("Discogs token not configured, skipping catalog request")
            return False
        return True

    def _get_json(self, path: str, params: dict | None = None) -> dict:
        self._rate_limiter.wait(_SERVICE)
        response = self._session.get(
            f"{DISCOGS_API_URL}{path}",
            params=params,
            timeout=API_TIMEOUT_SECONDS,
        )
        if response.status_code == _HTTP_NOT_FOUND:
            raise _NotFound(path)
        response.raise_for_status()
        return response.json()
