"""Paginated search sessions ("load more")."""
import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from bookscout.client import DEFAULT_PAGE_SIZE
from bookscout.errors import BookScoutError, ValidationFailure
from bookscout.models import BookRecord, SearchCriteria, SearchPage, SortOrder
from bookscout.query import NO_CRITERIA_MESSAGE, build_search_params

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"
    FAILED = "failed"


class PageOutcome(str, Enum):
    """What a transition did. Only failures are raised."""
    RESULTS = "results"
    NO_RESULTS = "no_results"
    NO_MORE_RESULTS = "no_more_results"
    SKIPPED = "skipped"
    STALE = "stale"


@dataclass
class SearchSession:
    """Everything fetched so far for one search."""
    criteria: SearchCriteria
    items: List[BookRecord] = field(default_factory=list)
    total_matching: int = 0
    next_offset: int = 0

    @property
    def has_more(self) -> bool:
        return len(self.items) < self.total_matching


class _AccumulatorBase:
    """
    Transition logic shared by the sync and async accumulators.

    Subclasses only perform the fetch. Each new search bumps a generation
    number; a fetch whose generation is no longer current is reported as
    STALE and leaves the state alone, since in-flight requests are never
    cancelled.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.state = SearchState.IDLE
        self.session: Optional[SearchSession] = None
        self.criteria: Optional[SearchCriteria] = None
        self.last_error: Optional[BookScoutError] = None
        self._generation = 0

    def snapshot(self) -> Optional[SearchSession]:
        """Copy of the current session that callers may keep."""
        if self.session is None:
            return None
        return dataclasses.replace(self.session, items=list(self.session.items))

    @property
    def is_busy(self) -> bool:
        return self.state in (SearchState.SEARCHING, SearchState.LOADING_MORE)

    def _begin_search(self, criteria: SearchCriteria) -> Tuple[int, dict]:
        params = build_search_params(criteria)
        if params is None:
            raise ValidationFailure(NO_CRITERIA_MESSAGE)

        self._generation += 1
        self.session = None
        self.criteria = criteria
        self.last_error = None
        self.state = SearchState.SEARCHING
        logger.info(f"New search (generation {self._generation}): {params}")
        return self._generation, params

    def _finish_search(self, generation: int, page: SearchPage) -> PageOutcome:
        if generation != self._generation:
            logger.info(f"Discarding stale first page from generation {generation}")
            return PageOutcome.STALE

        items = list(page.items)
        self.session = SearchSession(
            criteria=self.criteria,
            items=items,
            # a body without numFound still counts what it delivered
            total_matching=max(page.total_matching, len(items)) if items else 0,
            next_offset=max(page.docs_consumed, len(items)),
        )
        self.state = SearchState.LOADED

        if not items:
            logger.info("Search returned no results")
            return PageOutcome.NO_RESULTS
        return PageOutcome.RESULTS

    def _begin_load_more(self) -> Optional[Tuple[int, dict, int]]:
        session = self.session
        if session is None or self.is_busy or not session.has_more:
            return None

        self.last_error = None
        self.state = SearchState.LOADING_MORE
        # criteria were validated when the session was created
        params = build_search_params(session.criteria)
        return self._generation, params, session.next_offset

    def _finish_load_more(self, generation: int, page: SearchPage) -> PageOutcome:
        if generation != self._generation:
            logger.info(f"Discarding stale page from generation {generation}")
            return PageOutcome.STALE

        session = self.session
        self.state = SearchState.LOADED

        if not page.items:
            # Nothing came back although more were announced; stop paging
            logger.info(
                f"No more results at offset {session.next_offset} "
                f"(server reported {page.total_matching})"
            )
            session.total_matching = len(session.items)
            return PageOutcome.NO_MORE_RESULTS

        session.items.extend(page.items)
        session.next_offset += max(page.docs_consumed, len(page.items))
        # numFound may drift between pages; the latest value wins
        session.total_matching = max(page.total_matching, len(session.items))
        return PageOutcome.RESULTS

    def _fail(self, generation: int, error: BookScoutError):
        if generation != self._generation:
            logger.warning(f"Stale request from generation {generation} failed: {error}")
            return
        self.last_error = error
        self.state = SearchState.FAILED

    def _abandon(self, generation: int):
        """Release the busy state after an exit outside BookScoutError (e.g. cancellation)."""
        if generation != self._generation:
            return
        if self.session is None:
            self.state = SearchState.FAILED
        else:
            self.state = SearchState.LOADED

    def _resorted(self, sort_order: SortOrder) -> Optional[SearchCriteria]:
        if self.criteria is None or self.criteria.sort_order == sort_order:
            return None
        return dataclasses.replace(self.criteria, sort_order=sort_order)


class ResultAccumulator(_AccumulatorBase):
    """Pages through search results with a blocking OpenLibraryClient."""

    def __init__(self, client, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(page_size)
        self.client = client

    def start_new_search(self, criteria: SearchCriteria) -> PageOutcome:
        """
        Replace any current session with the first page for `criteria`.

        Raises:
            ValidationFailure: No title, author or genre given
            BookScoutError: The fetch failed (state becomes FAILED)
        """
        generation, params = self._begin_search(criteria)
        try:
            page = self.client.fetch_page(params, self.page_size, 0)
        except BookScoutError as e:
            self._fail(generation, e)
            raise
        except BaseException:
            self._abandon(generation)
            raise
        return self._finish_search(generation, page)

    def load_more(self) -> PageOutcome:
        """Append the next page; SKIPPED when there is nothing to do."""
        pending = self._begin_load_more()
        if pending is None:
            return PageOutcome.SKIPPED

        generation, params, offset = pending
        try:
            page = self.client.fetch_page(params, self.page_size, offset)
        except BookScoutError as e:
            self._fail(generation, e)
            raise
        except BaseException:
            self._abandon(generation)
            raise
        return self._finish_load_more(generation, page)

    def change_sort(self, sort_order: SortOrder) -> PageOutcome:
        """Restart the current search with a different ordering."""
        criteria = self._resorted(sort_order)
        if criteria is None:
            return PageOutcome.SKIPPED
        return self.start_new_search(criteria)


class AsyncResultAccumulator(_AccumulatorBase):
    """Same transitions over AsyncOpenLibraryClient."""

    def __init__(self, client, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(page_size)
        self.client = client

    async def start_new_search(self, criteria: SearchCriteria) -> PageOutcome:
        generation, params = self._begin_search(criteria)
        try:
            page = await self.client.fetch_page(params, self.page_size, 0)
        except BookScoutError as e:
            self._fail(generation, e)
            raise
        except BaseException:
            self._abandon(generation)
            raise
        return self._finish_search(generation, page)

    async def load_more(self) -> PageOutcome:
        pending = self._begin_load_more()
        if pending is None:
            return PageOutcome.SKIPPED

        generation, params, offset = pending
        try:
            page = await self.client.fetch_page(params, self.page_size, offset)
        except BookScoutError as e:
            self._fail(generation, e)
            raise
        except BaseException:
            self._abandon(generation)
            raise
        return self._finish_load_more(generation, page)

    async def change_sort(self, sort_order: SortOrder) -> PageOutcome:
        criteria = self._resorted(sort_order)
        if criteria is None:
            return PageOutcome.SKIPPED
        return await self.start_new_search(criteria)
