from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from camcatalog.config import CatalogSettings
from camcatalog.filters import FilterCriteria
from camcatalog.images import ResolvedImage, resolve_image
from camcatalog.models import CameraRecord

CONDITION_LABELS = {
    1: "Poor",
    2: "Fair",
    3: "Good",
    4: "Very Good",
    5: "Excellent",
}
PRICE_FIELDS = {
    "weighted": "weighted_price",
    "kamerastore": "kamerastore_price",
}


@dataclass(slots=True)
class CatalogItemView:
    record: CameraRecord
    image: ResolvedImage
    price: Optional[float]
    price_text: str
    mechanical_label: str
    cosmetic_label: str

    @property
    def title(self) -> str:
        return self.record.title

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.record.id,
            "brand": self.record.brand,
            "model": self.record.model,
            "serial": self.record.serial or "",
            "mechanical": self.mechanical_label,
            "cosmetic": self.cosmetic_label,
            "price": self.price_text,
            "image_url": self.image.display_url or "",
            "badge": self.image.badge if self.image.show_badge else "",
        }


def condition_label(rating: Any) -> str:
    return CONDITION_LABELS.get(rating, "Not specified") if isinstance(rating, int) else "Not specified"


def format_price(value: Optional[float]) -> str:
    if not value:
        return "$0.00"
    return f"${value:,.2f}"


def display_price(record: CameraRecord, price_type: str) -> Optional[float]:
    return getattr(record, PRICE_FIELDS.get(price_type, "weighted_price"))


def has_active_filters(criteria: FilterCriteria) -> bool:
    return bool(
        criteria.mechanical_status
        or criteria.cosmetic_status
        or criteria.min_price
        or criteria.max_price
    )


def extract_brands(records: Iterable[CameraRecord]) -> list[str]:
    return sorted({record.brand for record in records if record.brand and record.brand.strip()})


def filter_by_brand(records: Iterable[CameraRecord], brand: str) -> list[CameraRecord]:
    if not brand:
        return list(records)
    return [record for record in records if record.brand == brand]


def _parse_timestamp(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _condition_score(record: CameraRecord) -> Optional[float]:
    ratings = [r for r in (record.mechanical_status, record.cosmetic_status) if r is not None]
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def _sort_key(record: CameraRecord, sort_by: str, price_type: str) -> Any:
    if sort_by == "name":
        return record.title.casefold() or None
    if sort_by == "price":
        return display_price(record, price_type)
    if sort_by == "condition":
        return _condition_score(record)
    return _parse_timestamp(record.created_at)


def sort_records(
    records: Iterable[CameraRecord],
    sort_by: str,
    sort_order: str,
    price_type: str = "weighted",
) -> list[CameraRecord]:
    """Order records for display. Records without a value for the key go last either way."""
    keyed = [(_sort_key(record, sort_by, price_type), record) for record in records]
    present = [(key, record) for key, record in keyed if key is not None]
    missing = [record for key, record in keyed if key is None]
    present.sort(key=lambda pair: pair[0], reverse=sort_order == "desc")
    return [record for _, record in present] + missing


def build_item_views(
    records: Iterable[CameraRecord],
    criteria: FilterCriteria,
    settings: CatalogSettings,
) -> list[CatalogItemView]:
    shaped = sort_records(
        filter_by_brand(records, criteria.brand),
        criteria.sort_by,
        criteria.sort_order,
        criteria.price_type,
    )
    views: list[CatalogItemView] = []
    for record in shaped:
        price = display_price(record, criteria.price_type)
        views.append(
            CatalogItemView(
                record=record,
                image=resolve_image(record.image, settings),
                price=price,
                price_text=format_price(price),
                mechanical_label=condition_label(record.mechanical_status),
                cosmetic_label=condition_label(record.cosmetic_status),
            )
        )
    return views


def summarize_records(records: Iterable[CameraRecord], price_type: str = "weighted") -> dict[str, Any]:
    items = list(records)
    prices = [p for p in (display_price(record, price_type) for record in items) if p]
    mechanical = [r.mechanical_status for r in items if r.mechanical_status is not None]
    cosmetic = [r.cosmetic_status for r in items if r.cosmetic_status is not None]
    return {
        "total_items": len(items),
        "total_value": round(sum(prices), 2),
        "average_value": round(sum(prices) / len(prices), 2) if prices else 0.0,
        "average_mechanical": round(sum(mechanical) / len(mechanical), 2) if mechanical else None,
        "average_cosmetic": round(sum(cosmetic) / len(cosmetic), 2) if cosmetic else None,
        "brand_count": len(extract_brands(items)),
        "with_user_images": sum(1 for r in items if r.image.has_user_images),
    }
