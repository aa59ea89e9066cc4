from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import requests

from camcatalog import get_logger
from camcatalog.catalog_client import CatalogApiError, CatalogClient
from camcatalog.models import CameraRecord
from camcatalog.query import QueryDescriptor

LOGGER = get_logger()

FetchFn = Callable[[QueryDescriptor, "CancellationToken"], Awaitable[list[CameraRecord]]]


class CancellationToken:
    """Marks one request's eventual result as unwanted. Cancel is one-way."""

    __slots__ = ("_cancelled", "label")

    def __init__(self, label: str = "") -> None:
        self._cancelled = False
        self.label = label

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(slots=True)
class ListingState:
    records: list[CameraRecord] = dataclasses.field(default_factory=list)
    error: Optional[str] = None
    loading: bool = False
    descriptor: Optional[QueryDescriptor] = None
    generation: int = 0


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    status: str
    descriptor: QueryDescriptor
    records: Optional[list[CameraRecord]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"


class ListingFetchCoordinator:
    """Issue listing requests so that only the newest one can change the visible state.

    Issuing a request cancels the token of the one still in flight. Whatever a
    cancelled request eventually returns or raises is dropped without touching
    ``state``; only a live, current request commits records or an error.
    """

    def __init__(
        self,
        fetch: FetchFn,
        *,
        on_change: Optional[Callable[[ListingState], None]] = None,
    ) -> None:
        self._fetch = fetch
        self._on_change = on_change
        self._current: Optional[CancellationToken] = None
        self._issued = 0
        self._closed = False
        self.state = ListingState()

    @classmethod
    def from_client(
        cls,
        client: CatalogClient,
        *,
        on_change: Optional[Callable[[ListingState], None]] = None,
    ) -> "ListingFetchCoordinator":
        async def fetch(descriptor: QueryDescriptor, token: CancellationToken) -> list[CameraRecord]:
            # requests cannot be interrupted; a cancelled call finishes in its thread and is ignored.
            return await asyncio.to_thread(client.list_records, list(descriptor.params))

        return cls(fetch, on_change=on_change)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> bool:
        return self._current is not None

    def is_stale(self, descriptor: QueryDescriptor) -> bool:
        """True when ``descriptor`` asks for something other than the last committed request.

        A failed request counts as committed, so an error alone never makes the
        listing stale; retrying is up to the caller.
        """
        committed = self.state.descriptor
        return committed is None or committed.params != descriptor.params

    def cancel_pending(self) -> None:
        if self._cancel_current():
            self._set_loading(False)

    def close(self) -> None:
        self.cancel_pending()
        self._closed = True

    async def request(self, descriptor: QueryDescriptor) -> FetchOutcome:
        if self._closed:
            return FetchOutcome(status="cancelled", descriptor=descriptor)
        # Loading stays set while a newer request replaces the current one.
        self._cancel_current()
        self._issued += 1
        token = CancellationToken(label=f"#{self._issued}")
        self._current = token
        self._set_loading(True)

        try:
            records = await self._fetch(descriptor, token)
        except asyncio.CancelledError:
            token.cancel()
            self._release(token)
            raise
        except (CatalogApiError, requests.RequestException) as exc:
            if self._discard(token):
                return FetchOutcome(status="cancelled", descriptor=descriptor)
            LOGGER.warning("Listing request %s failed: %s", token.label, exc)
            self._commit(token, descriptor, records=None, error=str(exc))
            return FetchOutcome(status="error", descriptor=descriptor, error=str(exc))
        except Exception as exc:
            if self._discard(token):
                return FetchOutcome(status="cancelled", descriptor=descriptor)
            LOGGER.exception("Unexpected error in listing request %s.", token.label)
            message = str(exc) or type(exc).__name__
            self._commit(token, descriptor, records=None, error=message)
            return FetchOutcome(status="error", descriptor=descriptor, error=message)

        if self._discard(token):
            return FetchOutcome(status="cancelled", descriptor=descriptor)
        self._commit(token, descriptor, records=records, error=None)
        return FetchOutcome(status="ok", descriptor=descriptor, records=records)

    def _cancel_current(self) -> bool:
        if self._current is None:
            return False
        LOGGER.debug("Cancelling listing request %s", self._current.label)
        self._current.cancel()
        self._current = None
        return True

    def _discard(self, token: CancellationToken) -> bool:
        if token.cancelled or token is not self._current:
            LOGGER.debug("Dropping result of superseded listing request %s", token.label)
            return True
        return False

    def _release(self, token: CancellationToken) -> None:
        if token is self._current:
            self._current = None
            self._set_loading(False)

    def _commit(
        self,
        token: CancellationToken,
        descriptor: QueryDescriptor,
        *,
        records: Optional[list[CameraRecord]],
        error: Optional[str],
    ) -> None:
        self._current = None
        state = self.state
        if records is not None:
            state.records = list(records)
        state.error = error
        state.loading = False
        state.descriptor = descriptor
        state.generation += 1
        self._notify()

    def _set_loading(self, loading: bool) -> None:
        if self.state.loading != loading:
            self.state.loading = loading
            self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)
