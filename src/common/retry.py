import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from common.errors import describe_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    linear: bool = False
    retry_on: tuple[type[BaseException], ...] = (Exception,)

    def delay_for(self, attempt: int) -> float:
        """Delay after the given 1-based failed attempt."""
        if self.linear:
            return self.base_delay * attempt
        return self.base_delay


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str | None = None,
    sleep: Sleep = asyncio.sleep,
) -> T:
    name = label or getattr(func, "__name__", "anonymous")
    last_exception: BaseException | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await func()
        except policy.retry_on as e:
            last_exception = e
            if attempt == policy.max_attempts:
                logger.warning(f"[{name}] {describe_error(e)} (giving up after {attempt} attempts)")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"[{name}] {describe_error(e)} "
                f"(retry {attempt}/{policy.max_attempts - 1} after {delay:.1f}s)"
            )
            await sleep(delay)

    if last_exception:
        raise last_exception
    raise RuntimeError("Unexpected retry loop exit")
