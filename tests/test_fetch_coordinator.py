from __future__ import annotations

import asyncio

from camcatalog.catalog_client import CatalogApiError
from camcatalog.fetch_coordinator import CancellationToken, ListingFetchCoordinator
from camcatalog.filters import FilterCriteria
from camcatalog.models import CameraRecord
from camcatalog.query import QueryDescriptor


def _descriptor(search: str) -> QueryDescriptor:
    return QueryDescriptor.from_criteria(FilterCriteria(search=search))


def _record(model: str) -> CameraRecord:
    return CameraRecord(id=None, brand="Test", model=model)


def _gated_fetch(gates: dict[str, asyncio.Event], failures: set[str] | None = None):
    failures = failures or set()

    async def fetch(descriptor: QueryDescriptor, token: CancellationToken) -> list[CameraRecord]:
        search = descriptor.criteria.search
        await gates[search].wait()
        if search in failures:
            raise CatalogApiError(f"boom {search}", status_code=500)
        return [_record(search)]

    return fetch


def test_slow_earlier_request_never_overwrites_faster_later_one() -> None:
    async def scenario():
        async def fetch(descriptor: QueryDescriptor, token: CancellationToken) -> list[CameraRecord]:
            delay = 0.2 if descriptor.criteria.search == "A" else 0.05
            await asyncio.sleep(delay)
            return [_record(descriptor.criteria.search)]

        coordinator = ListingFetchCoordinator(fetch)
        task_a = asyncio.create_task(coordinator.request(_descriptor("A")))
        await asyncio.sleep(0.05)
        task_b = asyncio.create_task(coordinator.request(_descriptor("B")))
        outcome_a, outcome_b = await asyncio.gather(task_a, task_b)
        return coordinator, outcome_a, outcome_b

    coordinator, outcome_a, outcome_b = asyncio.run(scenario())
    assert outcome_a.status == "cancelled"
    assert outcome_b.status == "ok"
    assert [r.model for r in coordinator.state.records] == ["B"]
    assert coordinator.state.generation == 1
    assert coordinator.state.loading is False


def test_superseded_request_is_discarded_even_if_it_settles_first() -> None:
    async def scenario():
        gates = {"A": asyncio.Event(), "B": asyncio.Event()}
        coordinator = ListingFetchCoordinator(_gated_fetch(gates))
        task_a = asyncio.create_task(coordinator.request(_descriptor("A")))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(coordinator.request(_descriptor("B")))
        await asyncio.sleep(0)
        gates["A"].set()
        outcome_a = await task_a
        assert coordinator.state.records == []
        assert coordinator.state.loading is True
        gates["B"].set()
        outcome_b = await task_b
        return coordinator, outcome_a, outcome_b

    coordinator, outcome_a, outcome_b = asyncio.run(scenario())
    assert outcome_a.cancelled
    assert outcome_b.ok
    assert [r.model for r in coordinator.state.records] == ["B"]


def test_failure_of_cancelled_request_is_not_reported() -> None:
    async def scenario():
        gates = {"A": asyncio.Event(), "B": asyncio.Event()}
        coordinator = ListingFetchCoordinator(_gated_fetch(gates, failures={"A"}))
        task_a = asyncio.create_task(coordinator.request(_descriptor("A")))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(coordinator.request(_descriptor("B")))
        await asyncio.sleep(0)
        gates["B"].set()
        await task_b
        gates["A"].set()
        outcome_a = await task_a
        return coordinator, outcome_a

    coordinator, outcome_a = asyncio.run(scenario())
    assert outcome_a.cancelled
    assert coordinator.state.error is None
    assert [r.model for r in coordinator.state.records] == ["B"]


def test_failure_of_live_request_sets_error_and_keeps_records() -> None:
    async def scenario():
        gates = {"ok": asyncio.Event(), "bad": asyncio.Event()}
        gates["ok"].set()
        gates["bad"].set()
        coordinator = ListingFetchCoordinator(_gated_fetch(gates, failures={"bad"}))
        await coordinator.request(_descriptor("ok"))
        outcome = await coordinator.request(_descriptor("bad"))
        return coordinator, outcome

    coordinator, outcome = asyncio.run(scenario())
    assert outcome.status == "error"
    assert outcome.error == "boom bad"
    assert coordinator.state.error == "boom bad"
    assert [r.model for r in coordinator.state.records] == ["ok"]


def test_next_successful_request_clears_error() -> None:
    async def scenario():
        gates = {"ok": asyncio.Event(), "bad": asyncio.Event()}
        gates["ok"].set()
        gates["bad"].set()
        coordinator = ListingFetchCoordinator(_gated_fetch(gates, failures={"bad"}))
        await coordinator.request(_descriptor("bad"))
        await coordinator.request(_descriptor("ok"))
        return coordinator

    coordinator = asyncio.run(scenario())
    assert coordinator.state.error is None


def test_close_cancels_outstanding_request() -> None:
    async def scenario():
        gates = {"A": asyncio.Event()}
        coordinator = ListingFetchCoordinator(_gated_fetch(gates))
        task = asyncio.create_task(coordinator.request(_descriptor("A")))
        await asyncio.sleep(0)
        coordinator.close()
        gates["A"].set()
        outcome = await task
        late = await coordinator.request(_descriptor("A"))
        return coordinator, outcome, late

    coordinator, outcome, late = asyncio.run(scenario())
    assert outcome.cancelled
    assert late.cancelled
    assert coordinator.state.records == []
    assert coordinator.state.generation == 0
    assert coordinator.state.loading is False


def test_failed_request_does_not_make_listing_stale() -> None:
    async def scenario():
        gates = {"bad": asyncio.Event()}
        gates["bad"].set()
        coordinator = ListingFetchCoordinator(_gated_fetch(gates, failures={"bad"}))
        assert coordinator.is_stale(_descriptor("bad"))
        await coordinator.request(_descriptor("bad"))
        return coordinator

    coordinator = asyncio.run(scenario())
    assert coordinator.state.error == "boom bad"
    assert coordinator.is_stale(_descriptor("bad")) is False
    assert coordinator.is_stale(_descriptor("other")) is True


def test_cancel_pending_clears_loading_and_drops_result() -> None:
    seen: list[bool] = []

    async def scenario():
        gates = {"A": asyncio.Event()}
        coordinator = ListingFetchCoordinator(
            _gated_fetch(gates),
            on_change=lambda state: seen.append(state.loading),
        )
        task = asyncio.create_task(coordinator.request(_descriptor("A")))
        await asyncio.sleep(0)
        assert coordinator.in_flight is True
        coordinator.cancel_pending()
        assert coordinator.in_flight is False
        assert coordinator.state.loading is False
        gates["A"].set()
        outcome = await task
        return coordinator, outcome

    coordinator, outcome = asyncio.run(scenario())
    assert outcome.cancelled
    assert coordinator.state.loading is False
    assert coordinator.state.records == []
    assert coordinator.closed is False
    assert seen == [True, False]


def test_on_change_sees_loading_then_commit() -> None:
    seen: list[tuple[bool, int]] = []

    async def scenario():
        gates = {"A": asyncio.Event()}
        gates["A"].set()
        coordinator = ListingFetchCoordinator(
            _gated_fetch(gates),
            on_change=lambda state: seen.append((state.loading, state.generation)),
        )
        await coordinator.request(_descriptor("A"))

    asyncio.run(scenario())
    assert seen == [(True, 0), (False, 1)]


def test_from_client_passes_serialized_params() -> None:
    captured: list[list[tuple[str, str]]] = []

    class FakeClient:
        def list_records(self, params):
            captured.append(params)
            return [_record("F3")]

    async def scenario():
        coordinator = ListingFetchCoordinator.from_client(FakeClient())
        criteria = FilterCriteria(search="nikon", mechanical_status=frozenset({5}))
        return await coordinator.request(QueryDescriptor.from_criteria(criteria))

    outcome = asyncio.run(scenario())
    assert outcome.ok
    assert captured == [[("search", "nikon"), ("mechanicalStatus", "5")]]
