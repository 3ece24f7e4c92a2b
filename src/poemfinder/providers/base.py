"""Provider protocol and shared HTTP plumbing for remote poetry APIs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Protocol, runtime_checkable

import httpx

from poemfinder.errors import ProviderError
from poemfinder.models import PoetryRecord

LOGGER = logging.getLogger(__name__)

DYNASTY_CATEGORIES: Dict[str, str] = {
    "先秦": "shi",
    "两汉": "shi",
    "魏晋": "caocao",
    "南北朝": "caocao",
    "隋代": "tang",
    "唐代": "tang",
    "宋代": "song",
    "元代": "yuan",
    "明代": "ming",
    "清代": "qing",
}

PLACEHOLDER_POEM = PoetryRecord(
    title="无法获取诗词",
    author="系统提示",
    body_lines=("抱歉，无法获取诗词数据。", "请检查网络连接或稍后再试。"),
    category="tang",
)


def dynasty_to_category(dynasty: str | None) -> str:
    return DYNASTY_CATEGORIES.get(dynasty or "", "tang")


@runtime_checkable
class PoemProvider(Protocol):
    name: str

    async def get_random_poem(self) -> PoetryRecord: ...

    async def search_by_keyword(self, keyword: str) -> List[PoetryRecord]: ...


class RemoteProvider:
    """Base for providers backed by a JSON HTTP API."""

    name = "remote"
    base_url = ""

    def __init__(self, *, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(self.name, f"request to {url} failed: {exc}") from exc

    async def search_by_keyword(self, keyword: str) -> List[PoetryRecord]:
        return []
