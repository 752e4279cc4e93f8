from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from config.settings import Settings
from ecoshield.core.prompt import DEALER_QUERY


logger = logging.getLogger(__name__)


class SearchResult(BaseModel):
    title: str
    link: str
    snippet: str = ""


def build_dealer_query(lat: float, lng: float) -> str:
    return DEALER_QUERY.format(lat=lat, lng=lng)


def parse_search_results(raw: Any) -> List[SearchResult]:
    """Decode the proxy's ``results`` payload, falling back to an empty list."""
    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Search results are not valid JSON: %s", exc)
            return []
    if not isinstance(data, list):
        logger.warning("Search results are not a list: %s", type(data).__name__)
        return []

    results: List[SearchResult] = []
    for item in data:
        try:
            results.append(SearchResult.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed search result: %r", item)
    return results


class DealerFinder:
    """Ask the search proxy for scrap dealers around a coordinate."""

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.endpoint = base_url.rstrip("/") + "/search"
        self._client = client
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.Client] = None) -> "DealerFinder":
        return cls(settings.search_api_url, client=client, timeout=settings.search_timeout)

    def _post(self, client: httpx.Client, query: str) -> Any:
        response = client.post(self.endpoint, json={"query": query})
        response.raise_for_status()
        return response.json()

    def find_nearby(self, lat: float, lng: float) -> List[SearchResult]:
        query = build_dealer_query(lat, lng)
        try:
            if self._client is not None:
                data = self._post(self._client, query)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    data = self._post(client, query)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error searching for scrap dealers: %s", exc)
            return []

        if not isinstance(data, dict):
            logger.warning("Unexpected search proxy response: %r", data)
            return []
        return parse_search_results(data.get("results"))
