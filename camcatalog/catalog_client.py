from __future__ import annotations

from typing import Any, Optional, Sequence

import requests

from camcatalog import get_logger
from camcatalog.config import CatalogSettings
from camcatalog.models import CameraRecord
from camcatalog.query import to_query_string

LOGGER = get_logger()

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "camcatalog/0.1 (+catalog browser)",
}


class CatalogApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class CatalogClient:
    """Blocking client for the catalog REST API. One attempt per call, no retries."""

    def __init__(self, settings: CatalogSettings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def _url(self, path: str) -> str:
        return f"{self.settings.api_base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Sequence[tuple[str, str]]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        if params:
            LOGGER.debug("%s %s?%s", method, url, to_query_string(list(params)))
        else:
            LOGGER.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                params=list(params) if params else None,
                json=payload,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as exc:
            raise CatalogApiError(f"Could not reach catalog API: {exc}", url=url) from exc
        if response.status_code >= 400:
            raise CatalogApiError(
                _error_message(response),
                status_code=response.status_code,
                url=url,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogApiError(
                "Catalog API returned a non-JSON body.",
                status_code=response.status_code,
                url=url,
            ) from exc

    def list_records(self, params: Optional[Sequence[tuple[str, str]]] = None) -> list[CameraRecord]:
        data = self._request("GET", "/cameras", params=params)
        if not isinstance(data, list):
            raise CatalogApiError("Listing response was not a list.", url=self._url("/cameras"))
        return [CameraRecord.from_api(item) for item in data if isinstance(item, dict)]

    def get_record(self, record_id: int | str) -> CameraRecord:
        data = self._request("GET", f"/cameras/{record_id}")
        if not isinstance(data, dict):
            raise CatalogApiError("Record response was not an object.", url=self._url(f"/cameras/{record_id}"))
        return CameraRecord.from_api(data)

    def create_record(self, payload: dict[str, Any]) -> CameraRecord:
        data = self._request("POST", "/cameras", payload=payload)
        return CameraRecord.from_api(data if isinstance(data, dict) else payload)

    def update_record(self, record_id: int | str, updates: dict[str, Any]) -> CameraRecord:
        data = self._request("PUT", f"/cameras/{record_id}", payload=updates)
        return CameraRecord.from_api(data if isinstance(data, dict) else {"id": record_id, **updates})

    def delete_record(self, record_id: int | str) -> dict[str, Any]:
        data = self._request("DELETE", f"/cameras/{record_id}")
        return data if isinstance(data, dict) else {}

    def get_summary(self) -> dict[str, Any]:
        data = self._request("GET", "/summary")
        return data if isinstance(data, dict) else {}


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    reason = getattr(response, "reason", None) or "error"
    return f"Catalog API responded {response.status_code} {reason}".strip()
