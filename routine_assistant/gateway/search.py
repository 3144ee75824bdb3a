"""Bing Web Search 适配器（网关侧，异步）。"""

from dataclasses import dataclass, field
from typing import List, Protocol

import httpx

from routine_assistant.domain.exceptions import TransportFailure, UpstreamError


@dataclass
class SearchHit:
    name: str
    snippet: str
    url: str


@dataclass
class SearchSummary:
    """一次查询及其前几条结果。"""

    query: str
    results: List[SearchHit] = field(default_factory=list)


class WebSearchClient(Protocol):
    name: str

    async def search(self, query: str, top: int = 3) -> List[SearchHit]:
        ...


class BingSearchClient:
    """调用 Bing Web Search v7，返回 webPages.value 中的前 top 条。"""

    name = "bing"

    def __init__(self, api_key: str, endpoint: str, timeout: float = 30.0):
        self._api_key = api_key
        self._endpoint = endpoint
        self._timeout = timeout

    async def search(self, query: str, top: int = 3) -> List[SearchHit]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.get(
                    self._endpoint,
                    params={"q": query},
                    headers={"Ocp-Apim-Subscription-Key": self._api_key},
                )
        except httpx.RequestError as e:
            raise TransportFailure(code="SEARCH_NETWORK_ERROR", message=str(e))
        if resp.status_code >= 400:
            raise UpstreamError(code="SEARCH_API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(code="SEARCH_BAD_RESPONSE", message=str(e), http_status=resp.status_code)

        pages = data.get("webPages") if isinstance(data, dict) else None
        values = pages.get("value") if isinstance(pages, dict) else None
        if not isinstance(values, list):
            return []
        hits: List[SearchHit] = []
        for item in values[:top]:
            if not isinstance(item, dict):
                continue
            hits.append(
                SearchHit(
                    name=str(item.get("name") or ""),
                    snippet=str(item.get("snippet") or ""),
                    url=str(item.get("url") or ""),
                )
            )
        return hits
