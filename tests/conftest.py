"""Shared fixtures: a scripted stand-in for the Open Library client."""

from __future__ import annotations

import asyncio

import pytest

from bookfinder.models import BookDetail, BookResult, SearchPage


def _page(count: int, *, total: int = 0, page_size: int = 20, prefix: str = "OL") -> SearchPage:
    items = [
        BookResult(key=f"/works/{prefix}{i}W", title=f"{prefix} Book {i}", author_names=["Frank Herbert"])
        for i in range(count)
    ]
    return SearchPage(items=items, total=total, has_more=count == page_size)


class FakeClient:
    """Replays queued results instead of calling the provider.

    A queued ``asyncio.Future`` is awaited before use, which lets a test
    hold a request open and resolve it later. A queued exception is raised.
    """

    def __init__(self):
        self.search_results: list = []
        self.detail_results: dict = {}
        self.search_calls: list[tuple] = []
        self.detail_calls: list[str] = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def search_books(self, query, mode, page, page_size):
        self.search_calls.append((query, mode, page, page_size))
        result = self.search_results.pop(0)
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, Exception):
            raise result
        return result

    async def get_book_detail(self, key):
        self.detail_calls.append(key)
        queue = self.detail_results[key]
        result = queue.pop(0) if isinstance(queue, list) else queue
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_page():
    return _page


@pytest.fixture
def make_detail():
    def _detail(description="A desert planet.", **raw):
        payload = {"description": description, **raw}
        return BookDetail.from_payload(payload)

    return _detail
