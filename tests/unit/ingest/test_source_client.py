"""Unit tests for the paginated source client."""

from __future__ import annotations

import httpx
import pytest

from core.errors import AtlasSourceError
from ingest.source_client import SourceClient
from tests.source_stubs import build_source_client, load_source_pages


def test_fetch_all_pages_yields_every_row() -> None:
    """All rows across all pages should be streamed in order."""
    client = build_source_client(load_source_pages())

    rows = list(client.fetch_all_pages())

    assert ([row["_irow"] for row in rows], client.stats.pages_fetched) == (
        ["101", "102", "201", "301"],
        3,
    )


def test_failed_page_is_skipped() -> None:
    """A page failing every retry should be skipped, not fatal."""
    client = build_source_client(load_source_pages(), failing_pages={2})

    rows = list(client.fetch_all_pages())

    assert ([row["_irow"] for row in rows], client.stats.pages_failed) == (
        ["101", "102", "301"],
        1,
    )


def test_empty_page_stops_iteration() -> None:
    """A zero-row page should end the stream before totalPages."""
    pages = [
        {"page": 1, "totalPages": 5, "recordCount": 9, "rows": [{"_irow": "1"}]},
        {"page": 2, "totalPages": 5, "recordCount": 9, "rows": []},
    ]
    requests: list[httpx.Request] = []
    client = build_source_client(pages, requests=requests)

    rows = list(client.fetch_all_pages())

    assert (len(rows), len(requests)) == (1, 2)


def test_first_page_failure_ends_stream() -> None:
    """Without a first page the total stays at one page."""
    requests: list[httpx.Request] = []
    client = build_source_client(load_source_pages(), failing_pages={1}, requests=requests)

    rows = list(client.fetch_all_pages())

    assert (rows, client.stats.pages_failed, len(requests)) == ([], 1, 2)


def test_requests_carry_query_and_paging_parameters() -> None:
    """Each request should merge the base query with page parameters."""
    requests: list[httpx.Request] = []
    client = build_source_client(load_source_pages(), requests=requests)

    list(client.fetch_all_pages({"sAddr": "Portland ME"}))
    params = requests[-1].url.params

    assert (params["sAddr"], params["page"], params["pageSize"]) == ("Portland ME", "3", "2")


def test_fetch_page_retries_with_exponential_backoff() -> None:
    """Transient failures should be retried with doubling sleeps."""
    responses = iter([httpx.Response(500), httpx.Response(502)])
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses, httpx.Response(200, json={"totalPages": 1, "rows": []}))

    client = SourceClient(
        "https://source.test/export",
        max_retries=3,
        backoff_seconds=0.5,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
    )

    page = client.fetch_page(1)

    assert (page.total_pages, sleeps) == (1, [0.5, 1.0])


def test_fetch_page_rejects_malformed_payload() -> None:
    """Non-object payloads should raise after the retries."""
    client = SourceClient(
        "https://source.test/export",
        max_retries=1,
        http_client=httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2]))
        ),
        sleep=lambda seconds: None,
    )

    with pytest.raises(AtlasSourceError, match="page 1"):
        client.fetch_page(1)


def test_delay_applies_between_pages_only() -> None:
    """The inter-page pause should not follow the last page."""
    sleeps: list[float] = []
    pages = load_source_pages()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[int(request.url.params["page"]) - 1])

    client = SourceClient(
        "https://source.test/export",
        delay_seconds=0.1,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
    )

    list(client.fetch_all_pages())

    assert sleeps == [0.1, 0.1]
