from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

from camcatalog import get_logger
from camcatalog.config import CatalogSettings
from camcatalog.models import ImageCandidate

LOGGER = get_logger()

BADGE_REF = "REF"
BADGE_BRAND = "BRAND"
BADGE_PLACEHOLDER = "PLACEHOLDER"

SOURCE_BADGES = {
    "default_model": BADGE_REF,
    "default_brand": BADGE_BRAND,
    "placeholder": BADGE_PLACEHOLDER,
}
BADGE_LABELS = {
    BADGE_REF: "Reference",
    BADGE_BRAND: "Brand",
    BADGE_PLACEHOLDER: "Placeholder",
}


@dataclass(frozen=True, slots=True)
class ResolvedImage:
    display_url: Optional[str]
    has_image: bool
    is_default_image: bool
    badge: Optional[str] = None
    attribution: Optional[str] = None

    @property
    def badge_label(self) -> Optional[str]:
        return BADGE_LABELS.get(self.badge) if self.badge else None

    @property
    def show_badge(self) -> bool:
        return self.is_default_image and self.badge is not None


def _as_path(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def pick_display_path(candidate: ImageCandidate) -> Optional[str]:
    for value in (candidate.primary_image, candidate.image1_path, candidate.image2_path):
        path = _as_path(value)
        if path is not None:
            return path
    return None


def badge_for_source(image_source: Optional[str]) -> Optional[str]:
    if not isinstance(image_source, str):
        return None
    return SOURCE_BADGES.get(image_source)


def is_external_image(path: str, settings: CatalogSettings) -> bool:
    # TODO: prefer an explicit source kind from the server once the listing payload carries one.
    lowered = path.lower()
    return any(marker in lowered for marker in settings.external_image_hosts)


def build_image_url(path: Optional[str], settings: CatalogSettings) -> Optional[str]:
    raw = _as_path(path)
    if raw is None:
        return None
    if is_external_image(raw, settings):
        return f"{settings.proxy_endpoint}?url={quote(raw, safe='')}"
    if raw.startswith(settings.cache_prefix):
        return f"{settings.api_host}{raw}"
    # Anything unrecognised is treated as a local upload reference.
    if raw.startswith("/"):
        return f"{settings.api_host}{raw}"
    return f"{settings.api_host}/{raw}"


def resolve_image(
    candidate: Union[ImageCandidate, Mapping[str, Any]],
    settings: CatalogSettings,
) -> ResolvedImage:
    if not isinstance(candidate, ImageCandidate):
        candidate = ImageCandidate.from_api(candidate)
    display_path = pick_display_path(candidate)
    is_default = (not candidate.has_user_images) and candidate.image_source != "user"
    attribution = None
    if is_default and candidate.default_image_info is not None:
        attribution = candidate.default_image_info.attribution
    if display_path is None and (candidate.secondary_image or candidate.has_user_images):
        LOGGER.debug("Image candidate has no displayable path: %r", candidate)
    return ResolvedImage(
        display_url=build_image_url(display_path, settings),
        has_image=display_path is not None,
        is_default_image=is_default,
        badge=badge_for_source(candidate.image_source),
        attribution=attribution,
    )
