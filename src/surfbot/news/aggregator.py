import asyncio
import logging
from datetime import datetime, timezone

from common.errors import describe_error
from common.retry import RetryPolicy, Sleep, call_with_retry
from surfbot.config import NewsConfig
from surfbot.models import NewsItem
from surfbot.news.base import NewsSource
from surfbot.news.blockbeats import BlockBeatsSource
from surfbot.news.cryptocompare import CryptoCompareSource
from surfbot.news.reddit import RedditSource

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class NewsAggregationError(Exception):
    pass


def build_sources(config: NewsConfig) -> list[NewsSource]:
    sources: list[NewsSource] = [
        CryptoCompareSource(
            api_key=config.cryptocompare_api_key,
            limit=config.cryptocompare_limit,
            timeout=config.request_timeout,
        ),
        BlockBeatsSource(limit=config.blockbeats_limit, timeout=config.request_timeout),
    ]
    if config.reddit is None:
        logger.info("Reddit credentials not set; skipping the reddit source")
    else:
        sources.append(RedditSource(config.reddit))
    return sources


class NewsAggregator:
    def __init__(
        self,
        sources: list[NewsSource],
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.sources = sources
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=3, base_delay=2.0)
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: NewsConfig) -> "NewsAggregator":
        return cls(
            build_sources(config),
            RetryPolicy(
                max_attempts=config.max_attempts,
                base_delay=config.retry_delay_seconds,
            ),
        )

    async def aclose(self) -> None:
        for source in self.sources:
            close = getattr(source, "aclose", None)
            if close is not None:
                await close()

    async def collect(self) -> list[NewsItem]:
        results = await asyncio.gather(
            *(self._collect_one(source) for source in self.sources)
        )

        items = [item for batch in results for item in batch]
        if not items:
            raise NewsAggregationError(
                f"No news items from any of {len(self.sources)} sources"
            )

        items.sort(key=lambda item: item.published_datetime() or _OLDEST, reverse=True)
        logger.info(f"Aggregated {len(items)} news items from {len(self.sources)} sources")
        return items

    async def _collect_one(self, source: NewsSource) -> list[NewsItem]:
        try:
            return await call_with_retry(
                source.fetch, self.retry_policy, label=source.name, sleep=self.sleep
            )
        except Exception as e:
            logger.error(
                f"News source {source.name} failed: {describe_error(e)}",
                extra={"source": source.name},
            )
            return []
