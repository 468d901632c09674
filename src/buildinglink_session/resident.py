from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Union
from urllib.parse import urlencode

from .models import PortalRequest
from .portal.client import PortalClient


logger = logging.getLogger(__name__)

USERS_URL = "https://users.us1.buildinglink.com/users/authenticated"


def _odata_query(params: dict[str, object]) -> str:
    # Built by hand: urlencode would escape the `$` in OData system query options.
    return "&".join(f"{k}={v}" for k, v in params.items())


def _as_datetime(value: Union[date, datetime], *, end_of_day: bool = False) -> datetime:
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if end_of_day:
        value = value.replace(hour=23, minute=59, second=59, microsecond=999000)
    return value


def _utc_iso(value: datetime) -> str:
    # Naive values are local time. The API expects UTC with a `Z` suffix and millisecond precision.
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="milliseconds") + "Z"


class ResidentApi:
    """
    Thin wrappers over the resident API. Each returns decoded JSON as-is (no schema validation).

    All calls go through `PortalClient.api()` (bearer token + subscription key), so the client must
    have logged in first (`await client.login()`).
    """

    def __init__(self, client: PortalClient) -> None:
        self.client = client

    async def _get_json(self, path: str) -> Any:
        response = await self.client.api(path)
        return response.json()

    async def _get_paged(self, path: str) -> list[dict[str, Any]]:
        # Follows `@odata.nextLink` until the last page.
        items: list[dict[str, Any]] = []
        next_url: Optional[str] = path
        pages = 0
        while next_url:
            data = await self._get_json(next_url)
            items.extend(data.get("value") or [])
            next_url = data.get("@odata.nextLink")
            pages += 1
        logger.debug("Fetched %d items in %d page(s) from %s", len(items), pages, path)
        return items

    async def get_user(self) -> dict[str, Any]:
        headers = {"x-api-key": self.client.api_key}
        token = self.client.token
        if token is not None and token.access_token:
            headers["Authorization"] = f"Bearer {token.access_token}"
        response = await self.client.fetch(USERS_URL, PortalRequest(headers=headers))
        return response.json()

    async def get_occupant(self) -> dict[str, Any]:
        return await self._get_json("Properties/AuthenticatedUser/v1/property/occupant/get")

    async def get_buildings(self) -> list[dict[str, Any]]:
        data = await self._get_json("Properties/AuthenticatedUser/v1/property/authorized-properties")
        return ((data.get("authorizedProperties") or {}).get("data")) or []

    async def get_announcements(self) -> list[dict[str, Any]]:
        return await self._get_json("ContentCreator/Resident/v1/announcements/active")

    async def get_events(self, start: Union[date, datetime], end: Union[date, datetime]) -> list[dict[str, Any]]:
        """
        Calendar events between `start` and the end of `end`'s day (23:59:59.999), sent as UTC.
        """
        params = {
            "fromDateTime": _utc_iso(_as_datetime(start)),
            "toDateTime": _utc_iso(_as_datetime(end, end_of_day=True)),
        }
        return await self._get_json(f"Calendar/Resident/v2/resident/events/filteredeventsrsvp?{urlencode(params)}")

    async def get_deliveries(self) -> list[dict[str, Any]]:
        query = _odata_query(
            {
                "$expand": "Location,Type,Authorizations",
                "$filter": "IsOpen eq true and Type/IsShownOnTenantHomePage eq true",
                "$skip": 0,
            }
        )
        return await self._get_paged(f"/EventLog/Resident/v1/Events?{query}")

    async def get_vendors(self) -> list[dict[str, Any]]:
        query = _odata_query(
            {
                "$expand": "Provider($expand%3DCategory,Properties,State)",
                "$skip": 0,
            }
        )
        items = await self._get_paged(f"ServicesAndOffers/Resident/v1/PreferredVendors?{query}")
        return [item.get("Provider") for item in items]
