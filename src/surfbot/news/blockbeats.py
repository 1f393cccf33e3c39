import html
import logging
import re

import httpx

from surfbot.models import NewsItem, iso_from_timestamp
from surfbot.news.base import NewsSourceError

logger = logging.getLogger(__name__)

FLASH_URL = "https://api.theblockbeats.news/v1/open-api/open-flash"

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(text: str) -> str:
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _SPACE_RE.sub(" ", text).strip()


class BlockBeatsSource:
    """Chinese-language crypto newsflashes."""

    name = "blockbeats"

    def __init__(
        self,
        limit: int = 30,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.limit = limit
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self) -> list[NewsItem]:
        response = await self.client.get(
            FLASH_URL,
            params={"size": self.limit, "page": 1, "type": "push", "lang": "cn"},
        )
        response.raise_for_status()
        payload = response.json()

        if payload.get("status") != 0:
            raise NewsSourceError(
                f"BlockBeats returned an error: {payload.get('message') or payload.get('status')}"
            )
        entries = (payload.get("data") or {}).get("data")
        if not isinstance(entries, list):
            raise NewsSourceError("BlockBeats response has no data list")

        items = [self._to_item(raw) for raw in entries[: self.limit]]
        logger.info(f"Fetched {len(items)} items from {self.name}")
        return items

    def _to_item(self, raw: dict) -> NewsItem:
        return NewsItem(
            title=strip_html(raw.get("title") or ""),
            body=strip_html(raw.get("content") or ""),
            url=raw.get("link") or raw.get("url") or "",
            source=self.name,
            published_at=iso_from_timestamp(raw.get("create_time") or 0),
            categories="flash",
        )
