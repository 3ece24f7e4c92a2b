"""Adapters for the public poetry APIs."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

import httpx

from poemfinder.errors import ProviderError
from poemfinder.models import PoetryRecord
from poemfinder.providers.base import RemoteProvider, dynasty_to_category

LOGGER = logging.getLogger(__name__)


class JinrishiciProvider(RemoteProvider):
    """今日诗词 v2: token-authenticated random sentence, no search."""

    name = "jinrishici"
    base_url = "https://v2.jinrishici.com/"

    def __init__(
        self,
        *,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.token = token

    async def ensure_token(self) -> str:
        if self.token:
            return self.token
        payload = await self._get_json("token")
        if not isinstance(payload, dict) or payload.get("status") != "success":
            message = payload.get("message") if isinstance(payload, dict) else payload
            raise ProviderError(self.name, f"token request rejected: {message}")
        self.token = str(payload["data"])
        LOGGER.debug("Obtained jinrishici token")
        return self.token

    async def get_random_poem(self) -> PoetryRecord:
        token = await self.ensure_token()
        payload = await self._get_json("sentence", headers={"X-User-Token": token})
        if not isinstance(payload, dict) or payload.get("status") != "success":
            message = payload.get("message") if isinstance(payload, dict) else payload
            raise ProviderError(self.name, f"sentence request rejected: {message}")

        try:
            origin = payload["data"]["origin"]
            lines = origin["content"]
            if isinstance(lines, str):
                lines = lines.splitlines()
            dynasty = origin.get("dynasty")
            return PoetryRecord(
                title=origin["title"],
                author=origin["author"],
                body_lines=tuple(lines),
                tags=(dynasty,) if dynasty else (),
                category=dynasty_to_category(dynasty),
                dynasty=dynasty,
            )
        except (KeyError, TypeError) as exc:
            raise ProviderError(self.name, f"unexpected payload: {exc}") from exc


class GushiciOneProvider(RemoteProvider):
    """古诗词·一言: themed random lines, no search."""

    name = "gushicione"
    base_url = "https://v1.jinrishici.com/"
    categories = {
        "all": "全部",
        "shuqing": "抒情",
        "siji": "四季",
        "shanshui": "山水",
        "tianqi": "天气",
        "renwu": "人物",
        "huahua": "花卉",
        "aiqing": "爱情",
        "shenghuo": "生活",
        "zheli": "哲理",
        "guanshangyuntu": "古诗词·一言",
    }

    def __init__(
        self,
        *,
        category: str = "all",
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.category = category if category in self.categories else "all"

    async def get_random_poem(self) -> PoetryRecord:
        payload = await self._get_json(self.category)
        if not isinstance(payload, dict) or not payload.get("content"):
            raise ProviderError(self.name, "response has no content")

        content = str(payload["content"])
        return PoetryRecord(
            title="古诗词一言",
            author=payload.get("author") or "佚名",
            body_lines=(content,),
            tags=(self.categories[self.category],),
            category="tang",
            extra={"origin": payload.get("origin") or ""},
        )


class GushiwenProvider(RemoteProvider):
    """古诗文网 unofficial API: random pick, keyword search and detail view."""

    name = "gushiwen"
    base_url = "https://app.gushiwen.cn/api/"

    @staticmethod
    def to_record(item: Mapping[str, Any]) -> PoetryRecord:
        dynasty = item.get("dynasty")
        content = str(item.get("content") or "")
        extra = {"id": item["id"]} if "id" in item else {}
        return PoetryRecord(
            title=str(item.get("title") or ""),
            author=str(item.get("author") or ""),
            body_lines=tuple(content.split("\n")) if content else (),
            tags=(dynasty,) if dynasty else (),
            category=dynasty_to_category(dynasty),
            dynasty=dynasty,
            notes=item.get("notes"),
            translation=item.get("translation"),
            appreciation=item.get("appreciation"),
            extra=extra,
        )

    def _result(self, payload: Any) -> Mapping[str, Any]:
        if not isinstance(payload, dict) or payload.get("status") != "success":
            raise ProviderError(self.name, "API returned an error")
        result = payload.get("result")
        if not isinstance(result, Mapping) or not result:
            raise ProviderError(self.name, f"unexpected result: {result!r}")
        return result

    async def get_random_poem(self) -> PoetryRecord:
        payload = await self._get_json("v1/docs/random")
        return self.to_record(self._result(payload))

    async def get_poem_detail(self, poem_id: str) -> PoetryRecord:
        payload = await self._get_json("v1/docs/view", params={"id": poem_id})
        return self.to_record(self._result(payload))

    async def search_by_keyword(self, keyword: str, page: int = 1) -> List[PoetryRecord]:
        payload = await self._get_json(
            "v1/docs/search", params={"keywords": keyword, "page": page}
        )
        if not isinstance(payload, dict) or payload.get("status") != "success":
            return []
        result = payload.get("result")
        if not isinstance(result, dict):
            return []
        items = result.get("list")
        if not isinstance(items, list):
            return []
        return [self.to_record(item) for item in items if isinstance(item, Mapping)]
