from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_API_HOST = "http://localhost:3000"
DEFAULT_API_PREFIX = "/api"
DEFAULT_IMAGE_PROXY_PATH = "/api/image-proxy"
DEFAULT_CACHE_PREFIX = "/cached-images/"
DEFAULT_EXTERNAL_IMAGE_HOSTS: tuple[str, ...] = ("wikimedia.org", "wikipedia.org")

DEFAULT_SEARCH_DEBOUNCE_MS = 300
DEFAULT_REQUEST_TIMEOUT = 20.0

SORT_FIELDS: tuple[str, ...] = ("date", "name", "price", "condition")
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")
PRICE_TYPES: tuple[str, ...] = ("weighted", "kamerastore")

DEFAULT_SORT_BY = "date"
DEFAULT_SORT_ORDER = "desc"
DEFAULT_PRICE_TYPE = "weighted"


def _env_choice(name: str, allowed: tuple[str, ...], default: str) -> str:
    value = os.getenv(name, "").strip().lower()
    return value if value in allowed else default


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _default_external_hosts() -> tuple[str, ...]:
    configured = os.getenv("CATALOG_EXTERNAL_IMAGE_HOSTS")
    if not configured:
        return DEFAULT_EXTERNAL_IMAGE_HOSTS
    values = tuple(part.strip().lower() for part in configured.split(",") if part.strip())
    return values or DEFAULT_EXTERNAL_IMAGE_HOSTS


def _normalize_host(raw: str) -> str:
    host = raw.strip().rstrip("/")
    return host or DEFAULT_API_HOST


def _normalize_path(raw: str, default: str) -> str:
    value = raw.strip()
    if not value:
        return default
    if not value.startswith("/"):
        value = "/" + value
    return value


@dataclass(slots=True)
class CatalogSettings:
    # Single source of truth for every URL the browser builds: listing calls,
    # uploaded and cached images and the image proxy all hang off api_host.
    api_host: str = DEFAULT_API_HOST
    api_prefix: str = DEFAULT_API_PREFIX
    image_proxy_path: str = DEFAULT_IMAGE_PROXY_PATH
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    external_image_hosts: tuple[str, ...] = field(default_factory=_default_external_hosts)
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    default_sort_by: str = DEFAULT_SORT_BY
    default_sort_order: str = DEFAULT_SORT_ORDER
    default_price_type: str = DEFAULT_PRICE_TYPE

    @property
    def api_base_url(self) -> str:
        return f"{self.api_host}{self.api_prefix}"

    @property
    def listing_url(self) -> str:
        return f"{self.api_base_url}/cameras"

    @property
    def proxy_endpoint(self) -> str:
        return f"{self.api_host}{self.image_proxy_path}"

    @classmethod
    def from_env(cls, **overrides: object) -> "CatalogSettings":
        kwargs: dict[str, object] = {
            "api_host": _normalize_host(os.getenv("CATALOG_API_HOST", DEFAULT_API_HOST)),
            "api_prefix": _normalize_path(os.getenv("CATALOG_API_PREFIX", ""), DEFAULT_API_PREFIX),
            "image_proxy_path": _normalize_path(
                os.getenv("CATALOG_IMAGE_PROXY_PATH", ""), DEFAULT_IMAGE_PROXY_PATH
            ),
            "cache_prefix": _normalize_path(os.getenv("CATALOG_CACHE_PREFIX", ""), DEFAULT_CACHE_PREFIX),
            "external_image_hosts": _default_external_hosts(),
            "search_debounce_ms": _env_int("CATALOG_SEARCH_DEBOUNCE_MS", DEFAULT_SEARCH_DEBOUNCE_MS),
            "request_timeout": _env_float("CATALOG_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            "default_sort_by": _env_choice("CATALOG_DEFAULT_SORT", SORT_FIELDS, DEFAULT_SORT_BY),
            "default_sort_order": _env_choice(
                "CATALOG_DEFAULT_SORT_ORDER", SORT_ORDERS, DEFAULT_SORT_ORDER
            ),
            "default_price_type": _env_choice("CATALOG_PRICE_TYPE", PRICE_TYPES, DEFAULT_PRICE_TYPE),
        }
        kwargs.update(overrides)
        return cls(**kwargs)
