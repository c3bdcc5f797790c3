"""Stub source API helpers backed by httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any, Iterable

import httpx

from ingest.source_client import SourceClient
from tests.fixture_paths import fixture_path


def load_source_pages() -> list[dict[str, Any]]:
    """Load the three-page source fixture."""
    return json.loads(fixture_path("source_pages.json").read_text(encoding="utf-8"))


def build_source_client(
    pages: list[dict[str, Any]],
    failing_pages: Iterable[int] = (),
    requests: list[httpx.Request] | None = None,
    max_retries: int = 2,
) -> SourceClient:
    """Build a source client that serves pages by their ``page`` parameter.

    Args:
        pages: Page payloads, page 1 first.
        failing_pages: Page numbers that always answer HTTP 503.
        requests: Optional list collecting every request sent.
        max_retries: Attempts per page.

    Returns:
        Source client with no-op sleeps.
    """
    failing = set(failing_pages)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        page = int(request.url.params["page"])
        if page in failing:
            return httpx.Response(503, json={"error": "unavailable"})
        if page > len(pages):
            return httpx.Response(200, json={"page": page, "totalPages": len(pages), "rows": []})
        return httpx.Response(200, json=pages[page - 1])

    return SourceClient(
        "https://source.test/export",
        page_size=2,
        max_retries=max_retries,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda seconds: None,
    )
