import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from common.retry import Sleep
from surfbot.config import ConfigError

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


def normalize_cron(expression: str) -> str:
    """Accept 5-field cron, or 6-field with leading seconds (moved last for croniter)."""
    fields = expression.split()
    if len(fields) == 6:
        fields = fields[1:] + fields[:1]
    normalized = " ".join(fields)
    if len(fields) not in (5, 6) or not croniter.is_valid(normalized):
        raise ConfigError(f"Invalid cron expression: {expression!r}")
    return normalized


class CronScheduler:
    def __init__(
        self,
        job: Job,
        cron: str,
        timezone: str,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[ZoneInfo], datetime] | None = None,
    ):
        self.job = job
        self.cron = normalize_cron(cron)
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown timezone: {timezone!r}") from e
        self.sleep = sleep
        self.clock = clock or (lambda tz: datetime.now(tz))
        self._current: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._current is not None and not self._current.done()

    def next_fire(self, after: datetime | None = None) -> datetime:
        base = after or self.clock(self.tz)
        return croniter(self.cron, base).get_next(datetime)

    async def tick(self) -> None:
        try:
            await self.job()
        except Exception:
            logger.exception("Scheduled run raised; schedule continues")

    def fire(self) -> asyncio.Task | None:
        if self.running:
            logger.warning("Previous run still in progress; skipping this tick")
            return None
        self._current = asyncio.create_task(self.tick())
        return self._current

    async def run_forever(self, max_ticks: int | None = None) -> None:
        ticks = 0
        last_fire: datetime | None = None
        logger.info(f"Scheduler started: '{self.cron}' ({self.tz.key})")
        while max_ticks is None or ticks < max_ticks:
            now = self.clock(self.tz)
            # sleep may wake a little early; never fire the same slot twice
            fire_at = self.next_fire(max(now, last_fire) if last_fire else now)
            last_fire = fire_at
            delay = max(0.0, (fire_at - now).total_seconds())
            logger.info(f"Next run at {fire_at.isoformat()}")
            await self.sleep(delay)
            self.fire()
            ticks += 1

        if self._current is not None:
            await self._current
