from typing import Protocol, runtime_checkable

from surfbot.models import NewsItem


class NewsSourceError(Exception):
    pass


@runtime_checkable
class NewsSource(Protocol):
    name: str

    async def fetch(self) -> list[NewsItem]:
        """Fetch the latest items from this source."""
        ...
