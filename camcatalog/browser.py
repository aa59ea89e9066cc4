from __future__ import annotations

import asyncio
from typing import Optional

from camcatalog import get_logger
from camcatalog.catalog_view import CatalogItemView, build_item_views, extract_brands
from camcatalog.config import CatalogSettings
from camcatalog.debounce import Scheduler, SearchDebouncer
from camcatalog.fetch_coordinator import FetchOutcome, ListingFetchCoordinator, ListingState
from camcatalog.filters import FilterCriteria, FilterState, initial_criteria
from camcatalog.query import QueryDescriptor

LOGGER = get_logger()


class CatalogBrowser:
    """Ties search input, filter state and listing fetches together.

    Typing goes through the debouncer; every other setter hits the filter state
    directly. Any change of the criteria starts a refresh, and the coordinator
    makes sure only the latest refresh lands in ``state``.
    """

    def __init__(
        self,
        coordinator: ListingFetchCoordinator,
        scheduler: Scheduler,
        settings: CatalogSettings,
        *,
        criteria: Optional[FilterCriteria] = None,
    ) -> None:
        self.settings = settings
        self.coordinator = coordinator
        self.filters = FilterState(
            criteria
            or initial_criteria(
                sort_by=settings.default_sort_by,
                sort_order=settings.default_sort_order,
                price_type=settings.default_price_type,
            )
        )
        self.debouncer = SearchDebouncer(
            self.filters.set_search,
            scheduler,
            delay_ms=settings.search_debounce_ms,
        )
        self._tasks: set[asyncio.Task[FetchOutcome]] = set()
        self._last_params: Optional[tuple[tuple[str, str], ...]] = None
        self._unsubscribe = self.filters.subscribe(self._on_criteria_change)

    @property
    def state(self) -> ListingState:
        return self.coordinator.state

    @property
    def criteria(self) -> FilterCriteria:
        return self.filters.snapshot()

    def type_search(self, text: str) -> None:
        self.debouncer.push(text)

    def combined_filters(self) -> dict:
        return self.criteria.to_dict()

    def refresh(self) -> asyncio.Task[FetchOutcome]:
        descriptor = QueryDescriptor.from_criteria(self.criteria)
        self._last_params = descriptor.params
        task = asyncio.get_running_loop().create_task(self.coordinator.request(descriptor))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def items(self) -> list[CatalogItemView]:
        return build_item_views(self.state.records, self.criteria, self.settings)

    def brands(self) -> list[str]:
        return extract_brands(self.state.records)

    def close(self) -> None:
        self._unsubscribe()
        self.debouncer.close()
        self.coordinator.close()

    def _on_criteria_change(self, criteria: FilterCriteria) -> None:
        params = QueryDescriptor.from_criteria(criteria).params
        if params == self._last_params:
            # Brand, sort and price type are applied locally; no new request needed.
            LOGGER.debug("Criteria changed without affecting the listing request.")
            return
        self.refresh()
