"""Search session: list pagination and detail lookups as explicit state.

A ``SearchSession`` owns two independent pieces of state:

* ``state`` (``SessionState``) — the current query, the accumulated result
  list and its loading/error status.
* ``detail`` (``DetailState``) — the selected item and its detail fetch.

Both are mutated only by the session's own methods. Observers register
callbacks instead of polling:

* ``subscribe`` — called with the list state after every change.
* ``subscribe_detail`` — called with the detail state after every change.
* ``on_results_ready`` — the one-shot signal fired when a new search
  completes (successfully or not). It is not fired for ``load_more``, and
  the UI uses it to bring the results into view once per search.

Responses are matched to the request that produced them with generation
counters. A completion that belongs to a superseded search (or selection)
is dropped without touching state.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

from bookfinder.errors import BookFinderError
from bookfinder.models import (
    DEFAULT_PAGE_SIZE,
    BookResult,
    DetailState,
    DetailStatus,
    ListStatus,
    SearchMode,
    SessionState,
)

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]
DetailListener = Callable[[DetailState], None]


class SearchSession:
    def __init__(self, client, *, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        self.client = client
        self.page_size = page_size
        self.state = SessionState()
        self.detail = DetailState()
        self._search_generation = 0
        self._detail_generation = 0
        self._listeners: list[Listener] = []
        self._detail_listeners: list[DetailListener] = []
        self._ready_listeners: list[Listener] = []

    # --- Observation ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return _register(self._listeners, listener)

    def subscribe_detail(self, listener: DetailListener) -> Callable[[], None]:
        return _register(self._detail_listeners, listener)

    def on_results_ready(self, listener: Listener) -> Callable[[], None]:
        return _register(self._ready_listeners, listener)

    def _notify(self) -> None:
        _emit(self._listeners, self.state)

    def _notify_detail(self) -> None:
        _emit(self._detail_listeners, self.detail)

    # --- Result list ---

    async def submit_search(self, query: str, mode: Union[SearchMode, str] = SearchMode.GENERAL) -> None:
        """Start a new search, discarding the previous result list."""
        text = (query or "").strip()
        if not text:
            return

        mode = SearchMode.parse(mode)
        self._search_generation += 1
        generation = self._search_generation
        self.state = SessionState(
            query=text, mode=mode, page=1, status=ListStatus.LOADING_FIRST_PAGE,
        )
        self._notify()

        try:
            page = await self.client.search_books(text, mode, 1, self.page_size)
        except BookFinderError as e:
            if generation != self._search_generation:
                logger.debug("Dropping failed search for %r: superseded", text)
                return
            self.state.items = []
            self.state.total = 0
            self.state.has_more = False
            self.state.status = ListStatus.FAILED
            self.state.error = str(e)
        else:
            if generation != self._search_generation:
                logger.debug("Dropping results for %r: superseded", text)
                return
            self.state.items = list(page.items)
            self.state.total = page.total
            self.state.has_more = page.has_more
            self.state.status = ListStatus.READY

        self._notify()
        _emit(self._ready_listeners, self.state)

    async def load_more(self) -> None:
        """Append the next page to the current result list.

        No-op while any page is loading or when the last page was short.
        Earlier pages are kept if this one fails.
        """
        if self.state.is_loading or not self.state.has_more:
            return

        generation = self._search_generation
        query, mode = self.state.query, self.state.mode
        next_page = self.state.page + 1
        self.state.status = ListStatus.LOADING_NEXT_PAGE
        self.state.error = None
        self._notify()

        try:
            page = await self.client.search_books(query, mode, next_page, self.page_size)
        except BookFinderError as e:
            if generation != self._search_generation:
                return
            self.state.status = ListStatus.FAILED
            self.state.error = str(e)
        else:
            if generation != self._search_generation:
                return
            self.state.items = self.state.items + list(page.items)
            self.state.total = page.total
            self.state.has_more = page.has_more
            self.state.page = next_page
            self.state.status = ListStatus.READY

        self._notify()

    # --- Detail ---

    async def select_item(self, item: BookResult) -> None:
        """Select an item and fetch its detail record.

        Only the most recent selection is applied; a slower fetch for an
        earlier selection is dropped when it completes.
        """
        self._detail_generation += 1
        generation = self._detail_generation
        self.detail = DetailState(item=item, status=DetailStatus.LOADING)
        self._notify_detail()

        try:
            detail = await self.client.get_book_detail(item.key)
        except BookFinderError as e:
            if generation != self._detail_generation:
                logger.debug("Dropping failed detail for %s: superseded", item.key)
                return
            self.detail = DetailState(item=item, status=DetailStatus.FAILED, error=str(e))
        else:
            if generation != self._detail_generation:
                logger.debug("Dropping detail for %s: superseded", item.key)
                return
            self.detail = DetailState(item=item, status=DetailStatus.READY, detail=detail)

        self._notify_detail()

    async def retry_detail(self) -> None:
        """Re-issue the detail fetch for the current selection."""
        if self.detail.item is None:
            return
        await self.select_item(self.detail.item)

    def clear_selection(self) -> None:
        self._detail_generation += 1
        self.detail = DetailState()
        self._notify_detail()


def _register(listeners: list, listener: Callable) -> Callable[[], None]:
    listeners.append(listener)

    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe


def _emit(listeners: list, payload) -> None:
    for listener in list(listeners):
        try:
            listener(payload)
        except Exception:
            logger.exception("Session listener %r raised", listener)
