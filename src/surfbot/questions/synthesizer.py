import asyncio
import json
import logging
import re
from datetime import date

import httpx
import litellm

from common import llm
from common.retry import RetryPolicy, Sleep, call_with_retry
from surfbot.config import ConfigError, LLMConfig
from surfbot.models import NewsItem
from surfbot.questions.prompts import QUESTION_PROMPT

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionResetError,
    ConnectionAbortedError,
    TimeoutError,
    httpx.TimeoutException,
    litellm.Timeout,
    litellm.APIConnectionError,
)

PLACEHOLDER_API_KEYS = frozenset({
    "",
    "sk-xxx",
    "xxx",
    "changeme",
    "your_api_key",
    "your-api-key",
    "your_api_key_here",
})

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


class QuestionSynthesisError(Exception):
    pass


def is_placeholder_key(api_key: str | None) -> bool:
    if api_key is None:
        return True
    key = api_key.strip().lower()
    return key in PLACEHOLDER_API_KEYS or key.startswith("your")


def extract_questions(content: str) -> list[str]:
    match = _ARRAY_RE.search(content)
    if not match:
        raise QuestionSynthesisError("No JSON array found in LLM response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise QuestionSynthesisError(f"Invalid JSON array in LLM response: {e}") from e
    if not isinstance(data, list):
        raise QuestionSynthesisError("LLM response array is not a list")
    return [q.strip() for q in data if isinstance(q, str) and q.strip()]


def format_news(items: list[NewsItem], body_chars: int = 300) -> str:
    lines: list[str] = []
    for i, item in enumerate(items, 1):
        published = item.published_datetime()
        stamp = published.strftime("%m-%d %H:%M") if published else item.published_at[:16]
        lines.append(f"{i}. [{stamp}] [{item.source}] {item.title}")
        body = item.body.strip()
        if body:
            lines.append(f"   {body[:body_chars]}")
    return "\n".join(lines)


class QuestionSynthesizer:
    def __init__(self, config: LLMConfig, sleep: Sleep = asyncio.sleep):
        self.config = config
        self.sleep = sleep
        self.retry_policy = RetryPolicy(
            max_attempts=config.max_attempts,
            base_delay=config.retry_delay_seconds,
            linear=True,
            retry_on=TRANSIENT_ERRORS,
        )

    def build_prompt(self, items: list[NewsItem], count: int, today: date | None = None) -> str:
        selected = items[: self.config.max_news_items]
        return QUESTION_PROMPT.format(
            today=(today or date.today()).isoformat(),
            item_count=len(selected),
            news=format_news(selected, self.config.body_preview_chars),
            count=count,
        )

    async def synthesize(self, items: list[NewsItem], count: int) -> list[str]:
        if is_placeholder_key(self.config.api_key):
            raise ConfigError("LLM_API_KEY is missing or still a placeholder")
        if not items:
            raise QuestionSynthesisError("No news items to build questions from")

        prompt = self.build_prompt(items, count)

        async def request() -> str:
            response = await llm.completion(
                model=self.config.model,
                messages=[{"role": "user", "content": prompt}],
                api_key=self.config.api_key,
                api_base=self.config.api_base,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
            return llm.response_text(response)

        content = await call_with_retry(
            request, self.retry_policy, label="synthesize_questions", sleep=self.sleep
        )
        if not content:
            raise QuestionSynthesisError("Empty response from LLM")

        questions = extract_questions(content)
        if not questions:
            raise QuestionSynthesisError("LLM returned no questions")
        logger.info(f"Synthesized {len(questions)} questions (requested {count})")
        return questions
