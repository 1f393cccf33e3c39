import logging

import httpx

from surfbot.models import NewsItem, iso_from_timestamp
from surfbot.news.base import NewsSourceError

logger = logging.getLogger(__name__)

NEWS_URL = "https://min-api.cryptocompare.com/data/v2/news/"
SUCCESS_TYPE = 100


class CryptoCompareSource:
    name = "cryptocompare"

    def __init__(
        self,
        api_key: str | None = None,
        limit: int = 30,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
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
        headers = {}
        if self.api_key:
            headers["authorization"] = f"Apikey {self.api_key}"

        response = await self.client.get(
            NEWS_URL, params={"lang": "EN"}, headers=headers
        )
        response.raise_for_status()
        payload = response.json()

        if payload.get("Type") != SUCCESS_TYPE or not isinstance(
            payload.get("Data"), list
        ):
            raise NewsSourceError(
                f"CryptoCompare returned an error: {payload.get('Message', 'unknown')}"
            )

        items = [self._to_item(raw) for raw in payload["Data"][: self.limit]]
        logger.info(f"Fetched {len(items)} items from {self.name}")
        return items

    def _to_item(self, raw: dict) -> NewsItem:
        source_info = raw.get("source_info") or {}
        return NewsItem(
            title=(raw.get("title") or "").strip(),
            body=(raw.get("body") or "").strip(),
            url=raw.get("url") or raw.get("guid") or "",
            source=source_info.get("name") or raw.get("source") or self.name,
            published_at=iso_from_timestamp(raw.get("published_on") or 0),
            categories=raw.get("categories") or "",
        )
