from __future__ import annotations

from camcatalog.filters import FilterCriteria
from camcatalog.query import QueryDescriptor, serialize_criteria, to_query_string


def test_status_sets_become_repeated_pairs() -> None:
    params = serialize_criteria(FilterCriteria(mechanical_status=frozenset({4, 2})))
    assert params == [("mechanicalStatus", "2"), ("mechanicalStatus", "4")]


def test_empty_price_is_omitted_but_zero_is_kept() -> None:
    assert serialize_criteria(FilterCriteria(min_price="")) == []
    assert serialize_criteria(FilterCriteria(min_price="0")) == [("minPrice", "0")]


def test_search_is_sent_verbatim_and_omitted_when_empty() -> None:
    assert serialize_criteria(FilterCriteria(search="")) == []
    assert serialize_criteria(FilterCriteria(search=" f2 ")) == [("search", " f2 ")]


def test_brand_sort_and_price_type_are_not_sent() -> None:
    criteria = FilterCriteria(brand="Nikon", sort_by="price", sort_order="asc", price_type="kamerastore")
    assert serialize_criteria(criteria) == []


def test_output_is_deterministic_for_equal_input() -> None:
    criteria = FilterCriteria(
        search="om-1",
        mechanical_status=frozenset({5, 1, 3}),
        cosmetic_status=frozenset({2}),
        min_price="10",
        max_price="abc",
    )
    first = serialize_criteria(criteria)
    for _ in range(5):
        assert serialize_criteria(criteria) == first
    assert [key for key, _ in first] == [
        "search",
        "mechanicalStatus",
        "mechanicalStatus",
        "mechanicalStatus",
        "cosmeticStatus",
        "minPrice",
        "maxPrice",
    ]
    assert ("maxPrice", "abc") in first


def test_equal_descriptors_have_equal_params() -> None:
    a = QueryDescriptor.from_criteria(FilterCriteria(search="x", cosmetic_status=frozenset({1, 2})))
    b = QueryDescriptor.from_criteria(FilterCriteria(search="x", cosmetic_status=frozenset({2, 1})))
    assert a == b
    assert a.params == b.params
    assert a.query_string == "search=x&cosmeticStatus=1&cosmeticStatus=2"


def test_query_string_encodes_values() -> None:
    assert to_query_string([("search", "a b&c")]) == "search=a+b%26c"
