"""Open Library API client: search, record details, and cover URLs."""

from __future__ import annotations

import logging
from typing import Optional, Union

import httpx

from bookfinder import config
from bookfinder.errors import (
    DETAIL_FAILED,
    SEARCH_FAILED,
    NetworkError,
    ProviderError,
)
from bookfinder.models import (
    DEFAULT_PAGE_SIZE,
    BookDetail,
    BookResult,
    CoverSize,
    SearchMode,
    SearchPage,
    SearchRequest,
)

logger = logging.getLogger(__name__)

USER_AGENT = "bookfinder/0.1 (+https://openlibrary.org/developers/api)"
SEARCH_FIELDS = (
    "key,title,author_name,first_publish_year,cover_i,"
    "isbn,publisher,number_of_pages_median"
)

_UNSET = object()


def build_search_params(request: SearchRequest) -> dict:
    """Query parameters for one page of a search."""
    mode = SearchMode.parse(request.mode)
    return {
        mode.value: request.query,
        "limit": request.page_size,
        "offset": request.offset,
        "fields": SEARCH_FIELDS,
    }


def cover_url(
    cover_id: Optional[Union[str, int]],
    size: Union[CoverSize, str] = CoverSize.MEDIUM,
    *,
    base: Optional[str] = None,
) -> Optional[str]:
    """Cover image URL for a cover id, or None when there is no cover.

    Only builds the string; the image itself is never fetched.
    """
    if cover_id is None or cover_id == "":
        return None
    code = size.value if isinstance(size, CoverSize) else str(size)
    base = (base or config.get_covers_url()).rstrip("/")
    return f"{base}/b/id/{cover_id}-{code}.jpg"


def parse_search_page(data: dict, page_size: int) -> SearchPage:
    """Map a ``/search.json`` body to a page; raises on a malformed body."""
    docs = data.get("docs")
    if docs is None:
        docs = []
    if not isinstance(docs, list):
        raise TypeError(f"docs must be a list, got {type(docs).__name__}")

    total = data.get("numFound")
    if total is None:
        total = 0
    # bool is an int subclass
    if isinstance(total, bool) or not isinstance(total, int):
        raise TypeError(f"numFound must be an integer, got {total!r}")
    if total < 0:
        raise ValueError(f"numFound must be >= 0, got {total}")

    items = [BookResult.from_doc(d) for d in docs]
    return SearchPage(
        items=items,
        total=total,
        has_more=len(items) == page_size,
    )


class OpenLibraryClient:
    """Async client for the Open Library search and record endpoints.

    Every failure surfaces as a ``NetworkError`` or ``ProviderError`` whose
    message is generic; the cause is logged and chained. Nothing is retried
    or cached: each call issues exactly one request.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        base_url: Optional[str] = None,
        covers_url: Optional[str] = None,
        timeout=_UNSET,
    ):
        self.base_url = (base_url or config.get_base_url()).rstrip("/")
        self.covers_url = (covers_url or config.get_covers_url()).rstrip("/")
        self._owns_http = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=config.get_timeout() if timeout is _UNSET else timeout,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                follow_redirects=True,
            )
        self._http = http_client

    async def __aenter__(self) -> "OpenLibraryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _get_json(self, url: str, failure_message: str, params: Optional[dict] = None) -> dict:
        try:
            resp = await self._http.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Provider returned HTTP %s for %s", status, url)
            raise ProviderError(failure_message, status_code=status) from e
        except httpx.DecodingError as e:
            logger.warning("Undecodable response body from %s: %s", url, e)
            raise ProviderError(failure_message) from e
        except httpx.RequestError as e:
            logger.error("Request to %s failed: %s", url, e)
            raise NetworkError(failure_message) from e
        except ValueError as e:
            logger.warning("Malformed JSON from %s: %s", url, e)
            raise ProviderError(failure_message) from e

        if not isinstance(data, dict):
            logger.warning("Expected a JSON object from %s, got %s", url, type(data).__name__)
            raise ProviderError(failure_message)
        return data

    async def search_books(
        self,
        query: str,
        mode: Union[SearchMode, str] = SearchMode.GENERAL,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SearchPage:
        """Fetch one page of search results."""
        request = SearchRequest(
            query=query, mode=SearchMode.parse(mode), page=page, page_size=page_size,
        )
        url = f"{self.base_url}/search.json"
        logger.debug(
            "Searching %s=%r page=%d offset=%d", request.mode.value, query, page, request.offset,
        )
        data = await self._get_json(url, SEARCH_FAILED, params=build_search_params(request))
        try:
            return parse_search_page(data, request.page_size)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Unexpected search payload from %s: %s", url, e)
            raise ProviderError(SEARCH_FAILED) from e

    async def get_book_detail(self, key: str) -> BookDetail:
        """Fetch the full record for a result key such as ``/works/OL45804W``."""
        path = key if key.startswith("/") else f"/{key}"
        url = f"{self.base_url}{path}.json"
        data = await self._get_json(url, DETAIL_FAILED)
        return BookDetail.from_payload(data)

    def get_cover_url(
        self,
        cover_id: Optional[Union[str, int]],
        size: Union[CoverSize, str] = CoverSize.MEDIUM,
    ) -> Optional[str]:
        return cover_url(cover_id, size, base=self.covers_url)
