import os
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

SESSION_TYPES = ("V2", "V2_INSTANT", "V2_THINKING")
QUESTION_SOURCES = ("news", "daily")
DEFAULT_ENV_FILE = ".env"
DEFAULT_SURF_HOST = "api.asksurf.ai"
DEFAULT_SCHEDULE_CRON = "0 8 * * *"
DEFAULT_SCHEDULE_TIMEZONE = "Asia/Shanghai"


class ConfigError(Exception):
    pass


def get_required_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ConfigError(f"Required environment variable {name} is not set")
    return value


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name) or default


def parse_range(value: str, name: str = "range") -> tuple[int, int]:
    """Parse ``"min,max"`` (or a single ``"n"``) into an inclusive int range."""
    parts = [p.strip() for p in value.split(",") if p.strip()]
    if len(parts) == 1:
        parts = parts * 2
    if len(parts) != 2:
        raise ConfigError(f"{name} must be 'min,max', got {value!r}")
    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise ConfigError(f"{name} must contain integers, got {value!r}") from e
    if low < 0 or high < 0:
        raise ConfigError(f"{name} must not be negative, got {value!r}")
    if low > high:
        raise ConfigError(f"{name} min must not exceed max, got {value!r}")
    return low, high


def _question_count_range() -> tuple[int, int]:
    raw = os.environ.get("QUESTION_COUNT_RANGE")
    if raw:
        return parse_range(raw, "QUESTION_COUNT_RANGE")
    legacy = os.environ.get("QUESTION_COUNT")
    if legacy:
        return parse_range(legacy, "QUESTION_COUNT")
    return (1, 1)


def _question_interval_range() -> tuple[int, int]:
    raw = os.environ.get("QUESTION_INTERVAL_RANGE")
    if raw:
        return parse_range(raw, "QUESTION_INTERVAL_RANGE")
    return (0, 0)


@dataclass
class RedditConfig:
    client_id: str = field(default_factory=lambda: get_required_env("REDDIT_CLIENT_ID"))
    client_secret: str = field(
        default_factory=lambda: get_required_env("REDDIT_CLIENT_SECRET")
    )
    user_agent: str = field(
        default_factory=lambda: get_optional_env("REDDIT_USER_AGENT", "surfbot/0.1")
    )
    subreddit: str = "CryptoCurrency"
    limit: int = 50
    body_limit: int = 500
    excluded_flairs: tuple[str, ...] = ("meme", "comedy")


@dataclass
class NewsConfig:
    cryptocompare_api_key: str | None = field(
        default_factory=lambda: os.environ.get("CRYPTOCOMPARE_API_KEY") or None
    )
    cryptocompare_limit: int = 30
    blockbeats_limit: int = 30
    reddit: RedditConfig | None = None
    max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    request_timeout: float = 30.0


@dataclass
class LLMConfig:
    api_key: str = field(default_factory=lambda: get_optional_env("LLM_API_KEY", ""))
    api_base: str | None = field(
        default_factory=lambda: os.environ.get("LLM_API_BASE_URL") or None
    )
    model: str = field(default_factory=lambda: get_optional_env("LLM_MODEL", "gpt-4o-mini"))
    temperature: float = 0.7
    max_tokens: int = 2048
    max_news_items: int = 60
    body_preview_chars: int = 300
    max_attempts: int = 3
    retry_delay_seconds: float = 3.0


@dataclass
class ScheduleConfig:
    cron: str = field(
        default_factory=lambda: get_optional_env("SCHEDULE_CRON", DEFAULT_SCHEDULE_CRON)
    )
    timezone: str = field(
        default_factory=lambda: get_optional_env(
            "SCHEDULE_TIMEZONE", DEFAULT_SCHEDULE_TIMEZONE
        )
    )


@dataclass
class SurfConfig:
    access_token: str = field(default_factory=lambda: get_optional_env("ACCESS_TOKEN", ""))
    refresh_token: str = field(
        default_factory=lambda: get_optional_env("REFRESH_TOKEN", "")
    )
    device_id: str = field(default_factory=lambda: get_optional_env("DEVICE_ID", ""))
    session_type: str = field(default_factory=lambda: get_optional_env("SESSION_TYPE", "V2"))
    host: str = field(
        default_factory=lambda: get_optional_env("SURF_API_HOST", DEFAULT_SURF_HOST)
    )
    env_file: Path = field(default_factory=lambda: Path(DEFAULT_ENV_FILE))
    question_source: str = field(
        default_factory=lambda: get_optional_env("QUESTION_SOURCE", "news")
    )
    question_count_range: tuple[int, int] = field(default_factory=_question_count_range)
    question_interval_range: tuple[int, int] = field(
        default_factory=_question_interval_range
    )
    token_refresh_buffer_seconds: int = 300
    news: NewsConfig = field(default_factory=NewsConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "SurfConfig":
        reddit_config = None
        if os.environ.get("REDDIT_CLIENT_ID") and os.environ.get("REDDIT_CLIENT_SECRET"):
            reddit_config = RedditConfig()
        else:
            logger.debug("Reddit credentials not set; reddit source will be skipped")
        return cls(
            env_file=Path(env_file or DEFAULT_ENV_FILE),
            news=NewsConfig(reddit=reddit_config),
        )

    def validate(self) -> None:
        if not self.access_token:
            raise ConfigError("ACCESS_TOKEN is not set")
        if not self.refresh_token:
            raise ConfigError("REFRESH_TOKEN is not set")
        if not self.device_id:
            raise ConfigError("DEVICE_ID is not set")
        if self.session_type not in SESSION_TYPES:
            raise ConfigError(
                f"SESSION_TYPE must be one of {', '.join(SESSION_TYPES)}, "
                f"got {self.session_type!r}"
            )
        if self.question_source not in QUESTION_SOURCES:
            raise ConfigError(
                f"QUESTION_SOURCE must be one of {', '.join(QUESTION_SOURCES)}, "
                f"got {self.question_source!r}"
            )
        if self.question_count_range[0] < 1:
            raise ConfigError(
                f"QUESTION_COUNT_RANGE min must be at least 1, got {self.question_count_range}"
            )
        if self.token_refresh_buffer_seconds < 0:
            raise ConfigError("token_refresh_buffer_seconds must be >= 0")
        if self.news.max_attempts < 1:
            raise ConfigError("news.max_attempts must be at least 1")
        if self.llm.max_attempts < 1:
            raise ConfigError("llm.max_attempts must be at least 1")
        logger.info("Configuration validated successfully")
