from surfbot.news.base import NewsSource, NewsSourceError
from surfbot.news.aggregator import NewsAggregator, NewsAggregationError, build_sources
from surfbot.news.blockbeats import BlockBeatsSource
from surfbot.news.cryptocompare import CryptoCompareSource
from surfbot.news.reddit import RedditSource

__all__ = [
    "NewsSource",
    "NewsSourceError",
    "NewsAggregator",
    "NewsAggregationError",
    "build_sources",
    "BlockBeatsSource",
    "CryptoCompareSource",
    "RedditSource",
]
