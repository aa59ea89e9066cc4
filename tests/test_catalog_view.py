from __future__ import annotations

from camcatalog.catalog_view import (
    build_item_views,
    condition_label,
    display_price,
    extract_brands,
    filter_by_brand,
    format_price,
    has_active_filters,
    sort_records,
    summarize_records,
)
from camcatalog.config import CatalogSettings
from camcatalog.filters import FilterCriteria
from camcatalog.models import CameraRecord


def _records() -> list[CameraRecord]:
    return [
        CameraRecord.from_api(
            {
                "id": 1,
                "brand": "Nikon",
                "model": "F3",
                "mechanical_status": 4,
                "cosmetic_status": 3,
                "weighted_price": 320,
                "kamerastore_price": 410,
                "created_at": "2024-03-01 10:00:00",
                "image1_path": "/uploads/f3.jpg",
                "has_user_images": True,
                "image_source": "user",
            }
        ),
        CameraRecord.from_api(
            {
                "id": 2,
                "brand": "Canon",
                "model": "AE-1",
                "mechanical_status": 5,
                "cosmetic_status": 5,
                "weighted_price": 180.5,
                "created_at": "2024-05-01T08:00:00Z",
                "primary_image": "https://upload.wikimedia.org/ae1.jpg",
                "has_user_images": False,
                "image_source": "default_model",
            }
        ),
        CameraRecord.from_api(
            {
                "id": 3,
                "brand": "Leica",
                "model": "M3",
                "weighted_price": None,
                "created_at": None,
            }
        ),
        CameraRecord.from_api({"id": 4, "brand": " ", "model": "Unknown box", "weighted_price": 5}),
    ]


def test_extract_brands_is_unique_sorted_and_skips_blank() -> None:
    records = _records() + [CameraRecord(id=9, brand="Nikon", model="FM2")]
    assert extract_brands(records) == ["Canon", "Leica", "Nikon"]


def test_filter_by_brand() -> None:
    assert [r.id for r in filter_by_brand(_records(), "Canon")] == [2]
    assert len(filter_by_brand(_records(), "")) == 4


def test_sort_by_price_ascending_puts_missing_last() -> None:
    ordered = sort_records(_records(), "price", "asc")
    assert [r.id for r in ordered] == [4, 2, 1, 3]


def test_sort_by_price_descending_still_puts_missing_last() -> None:
    ordered = sort_records(_records(), "price", "desc")
    assert [r.id for r in ordered] == [1, 2, 4, 3]


def test_sort_by_kamerastore_price() -> None:
    ordered = sort_records(_records(), "price", "desc", "kamerastore")
    assert [r.id for r in ordered][:1] == [1]


def test_sort_by_date_and_name_and_condition() -> None:
    assert [r.id for r in sort_records(_records(), "date", "desc")][:2] == [2, 1]
    assert [r.id for r in sort_records(_records(), "name", "asc")] == [2, 3, 1, 4]
    assert [r.id for r in sort_records(_records(), "condition", "desc")][:2] == [2, 1]


def test_price_helpers() -> None:
    record = _records()[0]
    assert display_price(record, "weighted") == 320
    assert display_price(record, "kamerastore") == 410
    assert format_price(1234.5) == "$1,234.50"
    assert format_price(None) == "$0.00"


def test_condition_labels() -> None:
    assert condition_label(1) == "Poor"
    assert condition_label(4) == "Very Good"
    assert condition_label(None) == "Not specified"
    assert condition_label(8) == "Not specified"


def test_has_active_filters_ignores_search_and_brand() -> None:
    assert has_active_filters(FilterCriteria(search="x", brand="Nikon")) is False
    assert has_active_filters(FilterCriteria(min_price="0")) is True
    assert has_active_filters(FilterCriteria(cosmetic_status=frozenset({2}))) is True


def test_build_item_views_applies_brand_sort_and_images() -> None:
    settings = CatalogSettings(api_host="http://h")
    criteria = FilterCriteria(sort_by="price", sort_order="asc", price_type="kamerastore")
    views = build_item_views(_records(), criteria, settings)
    assert views[0].record.id == 1
    assert views[0].price_text == "$410.00"
    assert views[0].image.display_url == "http://h/uploads/f3.jpg"

    canon = build_item_views(_records(), FilterCriteria(brand="Canon"), settings)
    assert len(canon) == 1
    row = canon[0].to_row()
    assert row["badge"] == "REF"
    assert row["image_url"].startswith("http://h/api/image-proxy?url=")
    assert row["mechanical"] == "Excellent"


def test_summarize_records() -> None:
    summary = summarize_records(_records())
    assert summary["total_items"] == 4
    assert summary["total_value"] == 505.5
    assert summary["average_mechanical"] == 4.5
    assert summary["brand_count"] == 3
    assert summary["with_user_images"] == 1
