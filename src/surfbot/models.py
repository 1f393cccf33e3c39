from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

SessionType = Literal["V2", "V2_INSTANT", "V2_THINKING"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_from_timestamp(ts: float | int | str) -> str:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).isoformat()


class NewsItem(BaseModel):
    title: str
    body: str = ""
    url: str = ""
    source: str
    published_at: str
    categories: str = ""

    def published_datetime(self) -> datetime | None:
        try:
            value = datetime.fromisoformat(self.published_at.replace("Z", "+00:00"))
        except ValueError:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class RunReport(BaseModel):
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None
    question_count: int = 0
    questions: list[str] = Field(default_factory=list)
    answers: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
