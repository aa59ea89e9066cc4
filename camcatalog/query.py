from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from camcatalog.filters import FilterCriteria

QueryParams = list[tuple[str, str]]


def serialize_criteria(criteria: FilterCriteria) -> QueryParams:
    """Build listing endpoint parameters from a criteria snapshot.

    Keys always come out in the same order and status sets are emitted sorted,
    one pair per value. A price bound of "0" is a real filter and is kept; only
    the empty string means "no bound". Brand, sort and price type are not part
    of the listing request.
    """
    params: QueryParams = []
    if criteria.search:
        params.append(("search", criteria.search))
    for value in sorted(criteria.mechanical_status):
        params.append(("mechanicalStatus", str(value)))
    for value in sorted(criteria.cosmetic_status):
        params.append(("cosmeticStatus", str(value)))
    if criteria.min_price is not None and criteria.min_price != "":
        params.append(("minPrice", criteria.min_price))
    if criteria.max_price is not None and criteria.max_price != "":
        params.append(("maxPrice", criteria.max_price))
    return params


def to_query_string(params: QueryParams) -> str:
    return urlencode(params, doseq=True)


@dataclass(frozen=True, slots=True)
class QueryDescriptor:
    criteria: FilterCriteria
    params: tuple[tuple[str, str], ...]

    @classmethod
    def from_criteria(cls, criteria: FilterCriteria) -> "QueryDescriptor":
        return cls(criteria=criteria, params=tuple(serialize_criteria(criteria)))

    @property
    def query_string(self) -> str:
        return to_query_string(list(self.params))
