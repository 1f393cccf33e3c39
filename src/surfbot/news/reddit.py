import asyncio
import logging
import re

import praw
from praw.models import Submission

from surfbot.config import RedditConfig
from surfbot.models import NewsItem, iso_from_timestamp
from surfbot.news.base import NewsSourceError

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")


def is_excluded(submission: Submission, excluded_flairs: tuple[str, ...]) -> bool:
    if getattr(submission, "stickied", False) or getattr(submission, "pinned", False):
        return True
    flair = getattr(submission, "link_flair_text", None) or ""
    words = set(_WORD_RE.findall(flair.lower()))
    return any(excluded in words for excluded in excluded_flairs)


class RedditSource:
    name = "reddit"

    def __init__(self, config: RedditConfig | None = None):
        self.config = config
        self._reddit: praw.Reddit | None = None

    @property
    def reddit(self) -> praw.Reddit:
        if self.config is None:
            raise NewsSourceError(
                "Reddit credentials not configured (REDDIT_CLIENT_ID/REDDIT_CLIENT_SECRET)"
            )
        if self._reddit is None:
            self._reddit = praw.Reddit(
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                user_agent=self.config.user_agent,
            )
            self._reddit.read_only = True
            logger.info(
                f"Reddit client initialized with user agent: {self.config.user_agent}"
            )
        return self._reddit

    async def fetch(self) -> list[NewsItem]:
        items = await asyncio.to_thread(self._fetch_hot)
        logger.info(f"Fetched {len(items)} items from {self.name}")
        return items

    def _fetch_hot(self) -> list[NewsItem]:
        subreddit = self.reddit.subreddit(self.config.subreddit)
        items: list[NewsItem] = []
        for submission in subreddit.hot(limit=self.config.limit):
            if is_excluded(submission, self.config.excluded_flairs):
                continue
            items.append(self._to_item(submission))
        return items

    def _to_item(self, submission: Submission) -> NewsItem:
        body = (submission.selftext or "").strip()[: self.config.body_limit]
        return NewsItem(
            title=submission.title,
            body=body,
            url=f"https://www.reddit.com{submission.permalink}",
            source=f"reddit/r/{self.config.subreddit}",
            published_at=iso_from_timestamp(submission.created_utc),
            categories=submission.link_flair_text or "discussion",
        )
