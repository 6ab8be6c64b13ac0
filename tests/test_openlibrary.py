"""Tests for the Open Library client with mocked HTTP calls."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from bookfinder.errors import DETAIL_FAILED, SEARCH_FAILED, NetworkError, ProviderError
from bookfinder.models import CoverSize, SearchMode, SearchRequest
from bookfinder.openlibrary import (
    SEARCH_FIELDS,
    OpenLibraryClient,
    build_search_params,
    cover_url,
)


def _mock_response(json_data, status_code=200):
    """Create a mock httpx.Response."""
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = json_data
    if status_code >= 400:
        mock.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=MagicMock(), response=mock,
        )
    else:
        mock.raise_for_status.return_value = None
    return mock


def _client(response=None, side_effect=None):
    http = MagicMock()
    http.get = AsyncMock(return_value=response, side_effect=side_effect)
    http.aclose = AsyncMock()
    client = OpenLibraryClient(
        http, base_url="https://openlibrary.org", covers_url="https://covers.openlibrary.org",
    )
    return client, http


def _docs(n):
    return [{"key": f"/works/OL{i}W", "title": f"Book {i}"} for i in range(n)]


DUNE_DOC = {
    "key": "/works/OL893415W",
    "title": "Dune",
    "author_name": ["Frank Herbert"],
    "first_publish_year": 1965,
    "cover_i": 12345,
    "isbn": ["9780441013593", "0441013597"],
    "publisher": ["Ace Books", "Chilton Books"],
    "number_of_pages_median": 604,
}


class TestBuildSearchParams:
    @pytest.mark.parametrize(
        "mode, param",
        [(SearchMode.GENERAL, "q"), (SearchMode.TITLE, "title"), (SearchMode.AUTHOR, "author")],
    )
    def test_param_name_matches_mode(self, mode, param):
        params = build_search_params(SearchRequest(query="dune", mode=mode))
        assert params[param] == "dune"
        assert {"q", "title", "author"} & set(params) == {param}

    @pytest.mark.parametrize("page, size, offset", [(1, 20, 0), (2, 20, 20), (3, 20, 40), (4, 7, 21)])
    def test_offset(self, page, size, offset):
        params = build_search_params(SearchRequest(query="dune", page=page, page_size=size))
        assert params["offset"] == offset
        assert params["limit"] == size

    def test_fixed_field_projection(self):
        params = build_search_params(SearchRequest(query="dune"))
        assert params["fields"] == SEARCH_FIELDS
        assert "number_of_pages_median" in params["fields"]


class TestSearchBooks:
    @pytest.mark.asyncio
    async def test_maps_docs(self):
        client, http = _client(_mock_response({"numFound": 57, "docs": [DUNE_DOC]}))
        page = await client.search_books("dune", SearchMode.GENERAL, 1)

        assert page.total == 57
        assert len(page.items) == 1
        book = page.items[0]
        assert book.key == "/works/OL893415W"
        assert book.title == "Dune"
        assert book.author_names == ["Frank Herbert"]
        assert book.first_publish_year == 1965
        assert book.cover_id == "12345"
        assert book.isbns == ["9780441013593", "0441013597"]
        assert book.publishers == ["Ace Books", "Chilton Books"]
        assert book.pages_median == 604
        http.get.assert_called_once()

    @pytest.mark.asyncio
    async def test_request_shape(self):
        client, http = _client(_mock_response({"numFound": 0, "docs": []}))
        await client.search_books("frank herbert", SearchMode.AUTHOR, page=3, page_size=20)

        url = http.get.call_args.args[0]
        params = http.get.call_args.kwargs["params"]
        assert url == "https://openlibrary.org/search.json"
        assert params["author"] == "frank herbert"
        assert params["offset"] == 40
        assert params["limit"] == 20

    @pytest.mark.asyncio
    async def test_unknown_mode_falls_back_to_general(self):
        client, http = _client(_mock_response({"numFound": 0, "docs": []}))
        await client.search_books("dune", "isbn")

        params = http.get.call_args.kwargs["params"]
        assert params["q"] == "dune"

    @pytest.mark.asyncio
    async def test_full_page_has_more(self):
        client, _ = _client(_mock_response({"numFound": 57, "docs": _docs(20)}))
        page = await client.search_books("dune")
        assert page.has_more is True

    @pytest.mark.asyncio
    async def test_short_page_has_no_more(self):
        client, _ = _client(_mock_response({"numFound": 47, "docs": _docs(7)}))
        page = await client.search_books("dune", page=3)
        assert len(page.items) == 7
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_missing_docs_and_count(self):
        client, _ = _client(_mock_response({}))
        page = await client.search_books("dune")
        assert page.items == []
        assert page.total == 0
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_http_error(self):
        client, _ = _client(_mock_response({"error": "boom"}, status_code=500))
        with pytest.raises(ProviderError) as exc_info:
            await client.search_books("dune")
        assert str(exc_info.value) == SEARCH_FAILED
        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client, _ = _client(side_effect=httpx.ConnectError("Name or service not known"))
        with pytest.raises(NetworkError) as exc_info:
            await client.search_books("dune")
        assert str(exc_info.value) == SEARCH_FAILED
        assert "service" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self):
        client, _ = _client(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(NetworkError):
            await client.search_books("dune")

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        resp = _mock_response(None)
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1")
        client, _ = _client(resp)
        with pytest.raises(ProviderError) as exc_info:
            await client.search_books("dune")
        assert str(exc_info.value) == SEARCH_FAILED

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        client, _ = _client(_mock_response(["not", "an", "object"]))
        with pytest.raises(ProviderError):
            await client.search_books("dune")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", ["57", True, -1, 5.0])
    async def test_bad_count_is_provider_error(self, count):
        client, _ = _client(_mock_response({"numFound": count, "docs": _docs(1)}))
        with pytest.raises(ProviderError) as exc_info:
            await client.search_books("dune")
        assert str(exc_info.value) == SEARCH_FAILED

    @pytest.mark.asyncio
    async def test_docs_object_is_provider_error(self):
        client, _ = _client(_mock_response({"numFound": 1, "docs": {"key": "/works/OL1W"}}))
        with pytest.raises(ProviderError) as exc_info:
            await client.search_books("dune")
        assert str(exc_info.value) == SEARCH_FAILED

    @pytest.mark.asyncio
    async def test_non_object_doc_is_provider_error(self):
        client, _ = _client(_mock_response({"numFound": 1, "docs": ["/works/OL1W"]}))
        with pytest.raises(ProviderError):
            await client.search_books("dune")

    @pytest.mark.asyncio
    async def test_each_call_issues_a_request(self):
        client, http = _client(_mock_response({"numFound": 0, "docs": []}))
        await client.search_books("dune")
        await client.search_books("dune")
        assert http.get.call_count == 2


class TestGetBookDetail:
    @pytest.mark.asyncio
    async def test_string_description(self):
        client, http = _client(_mock_response({"title": "Dune", "description": "Spice."}))
        detail = await client.get_book_detail("/works/OL893415W")

        assert http.get.call_args.args[0] == "https://openlibrary.org/works/OL893415W.json"
        assert detail.description == "Spice."
        assert detail.raw["title"] == "Dune"

    @pytest.mark.asyncio
    async def test_structured_description(self):
        payload = {"description": {"type": "/type/text", "value": "Arrakis."}}
        client, _ = _client(_mock_response(payload))
        detail = await client.get_book_detail("/works/OL893415W")
        assert detail.description == "Arrakis."

    @pytest.mark.asyncio
    async def test_missing_description(self):
        client, _ = _client(_mock_response({"title": "Dune", "subjects": ["Science fiction"]}))
        detail = await client.get_book_detail("/works/OL893415W")
        assert detail.description is None
        assert detail.subjects == ["Science fiction"]

    @pytest.mark.asyncio
    async def test_key_without_leading_slash(self):
        client, http = _client(_mock_response({}))
        await client.get_book_detail("works/OL1W")
        assert http.get.call_args.args[0] == "https://openlibrary.org/works/OL1W.json"

    @pytest.mark.asyncio
    async def test_not_found(self):
        client, _ = _client(_mock_response({"error": "notfound"}, status_code=404))
        with pytest.raises(ProviderError) as exc_info:
            await client.get_book_detail("/works/OL0W")
        assert str(exc_info.value) == DETAIL_FAILED
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client, _ = _client(side_effect=httpx.ConnectError("connection refused"))
        with pytest.raises(NetworkError) as exc_info:
            await client.get_book_detail("/works/OL1W")
        assert str(exc_info.value) == DETAIL_FAILED


class TestCoverUrl:
    def test_absent_id(self):
        assert cover_url(None, "M") is None
        assert cover_url("", CoverSize.LARGE) is None

    def test_medium(self, monkeypatch):
        monkeypatch.delenv("OPENLIBRARY_COVERS_URL", raising=False)
        assert cover_url("12345", "M") == "https://covers.openlibrary.org/b/id/12345-M.jpg"

    def test_sizes(self):
        base = "https://covers.openlibrary.org"
        assert cover_url(12345, CoverSize.SMALL, base=base).endswith("/12345-S.jpg")
        assert cover_url(12345, CoverSize.LARGE, base=base).endswith("/12345-L.jpg")

    def test_client_method(self):
        client, http = _client()
        assert client.get_cover_url("12345") == "https://covers.openlibrary.org/b/id/12345-M.jpg"
        assert client.get_cover_url(None) is None
        http.get.assert_not_called()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client, http = _client()
        async with client:
            pass
        http.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        client = OpenLibraryClient(base_url="https://openlibrary.org")
        await client._http.aclose()
        client._http = MagicMock(aclose=AsyncMock())
        await client.aclose()
        client._http.aclose.assert_called_once()
