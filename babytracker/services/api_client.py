from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config import settings
from ..schemas.activity import parse_activities
from ..schemas.baby import Baby
from ..schemas.caretaker import Caretaker

logger = logging.getLogger(__name__)


class TrackerApiError(Exception):
    """Raised when the tracker backend cannot be reached or returns bad data."""


def _raise_for_status(response: httpx.Response, context: str) -> None:
    if response.status_code in {401, 403}:
        logger.warning("Tracker API rejected credentials for %s", context)
    elif response.status_code >= 500:
        logger.error("Tracker API error %s during %s", response.status_code, context)
    elif response.status_code >= 400:
        logger.error("Tracker API request error %s during %s", response.status_code, context)
    response.raise_for_status()


def _unwrap(payload: Any, context: str) -> Any:
    """Return ``data`` from a ``{success, data}`` envelope."""

    if not isinstance(payload, dict):
        raise TrackerApiError(f"Unexpected response shape for {context}")
    if not payload.get("success"):
        message = payload.get("error") or "request was not successful"
        raise TrackerApiError(f"{context}: {message}")
    return payload.get("data")


class TrackerApiClient:
    """Thin async wrapper over the tracker REST backend."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        context: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, params=params, json=json)
                _raise_for_status(response, context)
                payload = response.json()
        except httpx.HTTPError as exc:
            raise TrackerApiError(f"{context} failed: {exc}") from exc
        except ValueError as exc:
            raise TrackerApiError(f"{context} returned invalid JSON") from exc
        return _unwrap(payload, context)

    async def fetch_timeline(self, baby_id: str, limit: Optional[int] = None) -> List[Any]:
        params = {"babyId": baby_id, "limit": limit or settings.TIMELINE_LIMIT}
        data = await self._request("GET", "/api/timeline", params=params, context="timeline fetch")
        if not isinstance(data, list):
            raise TrackerApiError("timeline fetch returned no record list")
        try:
            return parse_activities(data)
        except (ValidationError, ValueError) as exc:
            raise TrackerApiError("timeline fetch returned malformed records") from exc

    async def list_caretakers(self) -> List[Caretaker]:
        data = await self._request("GET", "/api/caretaker", context="caretaker list")
        if not isinstance(data, list):
            return []
        try:
            return [Caretaker.model_validate(item) for item in data]
        except ValidationError as exc:
            raise TrackerApiError("caretaker list returned malformed records") from exc

    async def has_caretakers(self) -> bool:
        return len(await self.list_caretakers()) > 0

    async def list_babies(self) -> List[Baby]:
        data = await self._request("GET", "/api/baby", context="baby list")
        if not isinstance(data, list):
            return []
        try:
            return [Baby.model_validate(item) for item in data]
        except ValidationError as exc:
            raise TrackerApiError("baby list returned malformed records") from exc

    async def get_security_pin(self) -> str:
        data = await self._request("GET", "/api/settings", context="settings fetch")
        pin = (data or {}).get("securityPin") if isinstance(data, dict) else None
        if not pin:
            raise TrackerApiError("settings fetch returned no security PIN")
        return str(pin)

    async def update_security_pin(self, new_pin: str) -> None:
        await self._request(
            "PUT",
            "/api/settings",
            json={"securityPin": new_pin},
            context="security PIN update",
        )


@lru_cache(maxsize=1)
def get_api_client() -> TrackerApiClient:
    """FastAPI dependency returning the process-wide backend client."""

    return TrackerApiClient(
        settings.TRACKER_API_BASE_URL,
        token=settings.TRACKER_API_TOKEN,
        timeout=settings.TRACKER_API_TIMEOUT,
    )
