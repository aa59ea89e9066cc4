from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable

from camcatalog import get_logger
from camcatalog.config import (
    DEFAULT_PRICE_TYPE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    PRICE_TYPES,
    SORT_FIELDS,
    SORT_ORDERS,
)

LOGGER = get_logger()

STATUS_VALUES: tuple[int, ...] = (1, 2, 3, 4, 5)
STATUS_AXES = {"mechanical": "mechanical_status", "cosmetic": "cosmetic_status"}
PRICE_BOUNDS = {"min": "min_price", "max": "max_price"}

Listener = Callable[["FilterCriteria"], None]


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    search: str = ""
    brand: str = ""
    mechanical_status: frozenset[int] = frozenset()
    cosmetic_status: frozenset[int] = frozenset()
    min_price: str = ""
    max_price: str = ""
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER
    price_type: str = DEFAULT_PRICE_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "search": self.search,
            "brand": self.brand,
            "mechanicalStatus": sorted(self.mechanical_status),
            "cosmeticStatus": sorted(self.cosmetic_status),
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
            "priceType": self.price_type,
        }


def _check_choice(value: str, allowed: tuple[str, ...], label: str) -> str:
    if value not in allowed:
        raise ValueError(f"Unknown {label} {value!r}; expected one of {', '.join(allowed)}.")
    return value


def set_search(criteria: FilterCriteria, term: str) -> FilterCriteria:
    return dataclasses.replace(criteria, search=term or "")


def set_brand(criteria: FilterCriteria, brand: str) -> FilterCriteria:
    return dataclasses.replace(criteria, brand=brand or "")


def toggle_brand(criteria: FilterCriteria, brand: str) -> FilterCriteria:
    # Single select: picking the active brand again clears the filter.
    if brand == criteria.brand:
        return dataclasses.replace(criteria, brand="")
    return dataclasses.replace(criteria, brand=brand or "")


def set_price_type(criteria: FilterCriteria, price_type: str) -> FilterCriteria:
    return dataclasses.replace(criteria, price_type=_check_choice(price_type, PRICE_TYPES, "price type"))


def set_price_range(criteria: FilterCriteria, kind: str, value: str | None) -> FilterCriteria:
    attr = PRICE_BOUNDS.get(kind)
    if attr is None:
        raise ValueError(f"Unknown price bound {kind!r}; expected 'min' or 'max'.")
    return dataclasses.replace(criteria, **{attr: "" if value is None else str(value)})


def toggle_status(criteria: FilterCriteria, axis: str, value: int) -> FilterCriteria:
    attr = STATUS_AXES.get(axis)
    if attr is None:
        raise ValueError(f"Unknown status axis {axis!r}; expected 'mechanical' or 'cosmetic'.")
    if value not in STATUS_VALUES:
        LOGGER.debug("Ignoring out-of-range %s status %r", axis, value)
        return criteria
    current: frozenset[int] = getattr(criteria, attr)
    return dataclasses.replace(criteria, **{attr: current ^ {value}})


def set_sort(criteria: FilterCriteria, field: str) -> FilterCriteria:
    _check_choice(field, SORT_FIELDS, "sort field")
    if field == criteria.sort_by:
        flipped = "asc" if criteria.sort_order == "desc" else "desc"
        return dataclasses.replace(criteria, sort_order=flipped)
    return dataclasses.replace(criteria, sort_by=field, sort_order="asc")


def clear_filters(criteria: FilterCriteria) -> FilterCriteria:
    """Reset condition sets and price bounds; search, brand, sort and price type survive."""
    return dataclasses.replace(
        criteria,
        mechanical_status=frozenset(),
        cosmetic_status=frozenset(),
        min_price="",
        max_price="",
    )


def initial_criteria(
    *,
    sort_by: str = DEFAULT_SORT_BY,
    sort_order: str = DEFAULT_SORT_ORDER,
    price_type: str = DEFAULT_PRICE_TYPE,
) -> FilterCriteria:
    return FilterCriteria(
        sort_by=_check_choice(sort_by, SORT_FIELDS, "sort field"),
        sort_order=_check_choice(sort_order, SORT_ORDERS, "sort order"),
        price_type=_check_choice(price_type, PRICE_TYPES, "price type"),
    )


class FilterState:
    """Owner of the current FilterCriteria.

    Every operation replaces the held value with the result of the matching pure
    transition. Listeners are told about the new value only when it differs from
    the old one, so a repeated call does not trigger another fetch.
    """

    def __init__(self, criteria: FilterCriteria | None = None) -> None:
        self._criteria = criteria or FilterCriteria()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> FilterCriteria:
        return self._criteria

    def set_search(self, term: str) -> FilterCriteria:
        return self._apply(set_search(self._criteria, term))

    def set_brand(self, brand: str) -> FilterCriteria:
        return self._apply(set_brand(self._criteria, brand))

    def toggle_brand(self, brand: str) -> FilterCriteria:
        return self._apply(toggle_brand(self._criteria, brand))

    def set_price_type(self, price_type: str) -> FilterCriteria:
        return self._apply(set_price_type(self._criteria, price_type))

    def set_price_range(self, kind: str, value: str | None) -> FilterCriteria:
        return self._apply(set_price_range(self._criteria, kind, value))

    def toggle_status(self, axis: str, value: int) -> FilterCriteria:
        return self._apply(toggle_status(self._criteria, axis, value))

    def set_sort(self, field: str) -> FilterCriteria:
        return self._apply(set_sort(self._criteria, field))

    def clear_filters(self) -> FilterCriteria:
        return self._apply(clear_filters(self._criteria))

    def _apply(self, updated: FilterCriteria) -> FilterCriteria:
        if updated == self._criteria:
            return updated
        self._criteria = updated
        for listener in list(self._listeners):
            listener(updated)
        return updated
