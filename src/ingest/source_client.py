"""Paginated HTTP client for the facility export API.

Pages are fetched serially with a fixed pause between requests. Each
page gets a bounded number of attempts with exponential backoff; a page
that still fails is logged and skipped so one bad page never aborts a run.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterator, Mapping

import httpx

from core.constants import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_DELAY_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SOURCE_PAGE_SIZE,
    DEFAULT_SOURCE_QUERY,
    SOURCE_USER_AGENT,
)
from core.config import AtlasConfig
from core.errors import AtlasSourceError
from core.logging_config import get_logger
from core.types import FetchStats, RawRecord, SourcePage

_LOGGER = get_logger(__name__)


class SourceClient:
    """Serial page fetcher with retries and a polite inter-page delay."""

    def __init__(
        self,
        source_url: str,
        page_size: int = DEFAULT_SOURCE_PAGE_SIZE,
        delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        base_query: Mapping[str, str] | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create a source client.

        Args:
            source_url: Export endpoint.
            page_size: Rows requested per page.
            delay_seconds: Pause between consecutive page requests.
            timeout_seconds: Per-request timeout for an owned HTTP client.
            max_retries: Attempts per page, at least one.
            backoff_seconds: Base delay doubled after each failed attempt.
            base_query: Default query parameters sent with every page.
            http_client: Optional preconfigured client, e.g. a mock transport.
            sleep: Sleep function, injectable for tests.
        """
        self._source_url = source_url
        self._page_size = page_size
        self._delay_seconds = delay_seconds
        self._max_retries = max(1, max_retries)
        self._backoff_seconds = backoff_seconds
        self._base_query = dict(base_query or DEFAULT_SOURCE_QUERY)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=timeout_seconds,
            headers={"User-Agent": SOURCE_USER_AGENT, "Accept": "application/json"},
        )
        self._sleep = sleep
        self.stats = FetchStats()

    @classmethod
    def from_config(cls, config: AtlasConfig, **kwargs: Any) -> "SourceClient":
        """Build a client from runtime configuration."""
        return cls(
            config.source_url,
            page_size=config.source_page_size,
            delay_seconds=config.request_delay_seconds,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.max_retries,
            **kwargs,
        )

    @property
    def source_url(self) -> str:
        return self._source_url

    def __enter__(self) -> "SourceClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def fetch_page(self, page: int, base_query: Mapping[str, str] | None = None) -> SourcePage:
        """Fetch one page, retrying with exponential backoff.

        Args:
            page: One-based page index.
            base_query: Query parameters overriding the client default.

        Returns:
            Decoded page.

        Raises:
            AtlasSourceError: If every attempt fails.
        """
        params = {
            **(self._base_query if base_query is None else base_query),
            "page": str(page),
            "pageSize": str(self._page_size),
        }
        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                response = self._client.get(self._source_url, params=params)
                response.raise_for_status()
                return _decode_page(response.json(), page)
            except (httpx.HTTPError, ValueError, AtlasSourceError) as error:
                last_error = error
                _LOGGER.warning(
                    "page_request_failed",
                    page=page,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    error=str(error),
                )
            if attempt + 1 < self._max_retries:
                self._sleep(self._backoff_seconds * 2**attempt)
        raise AtlasSourceError(
            f"Failed to fetch source page {page} after {self._max_retries} attempts: "
            f"{last_error}. Check ATLAS_SOURCE_URL and the provider status."
        ) from last_error

    def fetch_all_pages(self, base_query: Mapping[str, str] | None = None) -> Iterator[RawRecord]:
        """Lazily yield every raw record across all pages.

        The first successful page fixes the total page count. Iteration
        stops after the last page or at the first empty page. When the
        first page fails the total stays at one and nothing is yielded.

        Args:
            base_query: Query parameters overriding the client default.

        Yields:
            Raw facility rows in source order.
        """
        self.stats = FetchStats()
        page = 1
        total_pages = 1
        while page <= total_pages:
            if page > 1:
                self._sleep(self._delay_seconds)
            try:
                result = self.fetch_page(page, base_query)
            except AtlasSourceError as error:
                self.stats.pages_failed += 1
                _LOGGER.error("page_skipped", page=page, error=str(error))
                page += 1
                continue
            if self.stats.total_pages is None:
                total_pages = result.total_pages
                self.stats.total_pages = result.total_pages
                self.stats.record_count = result.record_count
                _LOGGER.info(
                    "source_total_discovered",
                    total_pages=result.total_pages,
                    record_count=result.record_count,
                )
            self.stats.pages_fetched += 1
            if not result.rows:
                _LOGGER.info("source_empty_page", page=page)
                return
            self.stats.rows_fetched += len(result.rows)
            _LOGGER.debug("page_fetched", page=page, total_pages=total_pages, rows=len(result.rows))
            yield from result.rows
            page += 1


def _decode_page(payload: Any, requested_page: int) -> SourcePage:
    """Validate a page payload into a typed page.

    Raises:
        AtlasSourceError: If the payload is not a page object.
    """
    if not isinstance(payload, dict):
        raise AtlasSourceError(
            f"Malformed source page {requested_page}: expected a JSON object, "
            f"got {type(payload).__name__}."
        )
    rows = payload.get("rows")
    if rows is None:
        rows = []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise AtlasSourceError(
            f"Malformed source page {requested_page}: 'rows' must be a list of objects."
        )
    try:
        total_pages = int(payload.get("totalPages") or 1)
        record_count = int(payload.get("recordCount") or 0)
        page = int(payload.get("page") or requested_page)
    except (TypeError, ValueError) as error:
        raise AtlasSourceError(
            f"Malformed source page {requested_page}: non-numeric paging fields ({error})."
        ) from error
    return SourcePage(
        page=page,
        total_pages=max(1, total_pages),
        record_count=record_count,
        rows=tuple(rows),
    )
