from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else None


def _opt_path(value: Any) -> Optional[str]:
    # Only a missing or empty path is absent; whitespace is still a path.
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass(frozen=True, slots=True)
class DefaultImageInfo:
    source: Optional[str] = None
    attribution: Optional[str] = None
    quality: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Any) -> Optional["DefaultImageInfo"]:
        if not isinstance(payload, Mapping):
            return None
        return cls(
            source=_opt_str(payload.get("source")),
            attribution=_opt_str(payload.get("attribution")),
            quality=_opt_str(payload.get("quality")),
        )


@dataclass(frozen=True, slots=True)
class ImageCandidate:
    """Raw image fields of one record, exactly as the listing endpoint sends them."""

    primary_image: Optional[str] = None
    image1_path: Optional[str] = None
    image2_path: Optional[str] = None
    secondary_image: Optional[str] = None
    has_user_images: bool = False
    image_source: Optional[str] = None
    default_image_info: Optional[DefaultImageInfo] = None

    @classmethod
    def from_api(cls, payload: Any) -> "ImageCandidate":
        if not isinstance(payload, Mapping):
            return cls()
        source = payload.get("image_source")
        return cls(
            primary_image=_opt_path(payload.get("primary_image")),
            image1_path=_opt_path(payload.get("image1_path")),
            image2_path=_opt_path(payload.get("image2_path")),
            secondary_image=_opt_path(payload.get("secondary_image")),
            has_user_images=_as_bool(payload.get("has_user_images")),
            image_source=source.strip().lower() if isinstance(source, str) else None,
            default_image_info=DefaultImageInfo.from_api(payload.get("default_image_info")),
        )


@dataclass(slots=True)
class CameraRecord:
    id: Optional[int]
    brand: str
    model: str
    serial: Optional[str] = None
    mechanical_status: Optional[int] = None
    cosmetic_status: Optional[int] = None
    weighted_price: Optional[float] = None
    kamerastore_price: Optional[float] = None
    comment: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    image: ImageCandidate = field(default_factory=ImageCandidate)
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return f"{self.brand} {self.model}".strip()

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "CameraRecord":
        return cls(
            id=_opt_int(payload.get("id")),
            brand=_opt_str(payload.get("brand")) or "",
            model=_opt_str(payload.get("model")) or "",
            serial=_opt_str(payload.get("serial")),
            mechanical_status=_opt_int(payload.get("mechanical_status")),
            cosmetic_status=_opt_int(payload.get("cosmetic_status")),
            weighted_price=_opt_float(payload.get("weighted_price")),
            kamerastore_price=_opt_float(payload.get("kamerastore_price")),
            comment=_opt_str(payload.get("comment")),
            created_at=_opt_str(payload.get("created_at")),
            updated_at=_opt_str(payload.get("updated_at")),
            image=ImageCandidate.from_api(payload),
            raw=dict(payload),
        )
