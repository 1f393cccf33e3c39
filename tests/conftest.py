import io

import pytest
from rich.console import Console

from surfbot.config import LLMConfig, NewsConfig, ScheduleConfig, SurfConfig
from surfbot.models import NewsItem


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def surf_config(tmp_path) -> SurfConfig:
    return SurfConfig(
        access_token="access",
        refresh_token="refresh",
        device_id="device-1",
        session_type="V2",
        host="api.example.test",
        env_file=tmp_path / ".env",
        question_source="news",
        question_count_range=(2, 2),
        question_interval_range=(1, 1),
        news=NewsConfig(cryptocompare_api_key=None, reddit=None),
        llm=LLMConfig(api_key="sk-test-123", api_base=None, model="gpt-4o-mini"),
        schedule=ScheduleConfig(cron="0 8 * * *", timezone="Asia/Shanghai"),
    )


@pytest.fixture
def news_items() -> list[NewsItem]:
    return [
        NewsItem(
            title="Bitcoin ETF inflows hit record",
            body="Spot bitcoin ETFs saw record inflows this week. " * 20,
            url="https://example.com/btc-etf",
            source="CoinDesk",
            published_at="2026-10-19T06:30:00+00:00",
            categories="BTC|ETF",
        ),
        NewsItem(
            title="以太坊完成升级",
            body="以太坊网络今日完成升级。",
            url="https://example.com/eth",
            source="blockbeats",
            published_at="2026-10-19T05:00:00+00:00",
            categories="flash",
        ),
    ]
