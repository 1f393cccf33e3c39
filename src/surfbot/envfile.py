import logging
from pathlib import Path

from dotenv import set_key

logger = logging.getLogger(__name__)

ENV_TEMPLATE = """# Access token (x-access-token from the browser session)
ACCESS_TOKEN=

# Refresh token used to renew ACCESS_TOKEN
REFRESH_TOKEN=

# Device id (x-device-id from the browser session)
DEVICE_ID=

# Chat mode: V2, V2_INSTANT, V2_THINKING
SESSION_TYPE=V2

# Questions per run, inclusive range min,max
QUESTION_COUNT_RANGE=1,1

# Minutes to wait between questions, inclusive range min,max
QUESTION_INTERVAL_RANGE=0,0

# Where questions come from: news (LLM synthesis) or daily (curated list)
QUESTION_SOURCE=news

# LLM used to write questions from the news
LLM_API_KEY=
LLM_API_BASE_URL=
LLM_MODEL=gpt-4o-mini

# Optional news source credentials
CRYPTOCOMPARE_API_KEY=
REDDIT_CLIENT_ID=
REDDIT_CLIENT_SECRET=

# Cron expression and timezone for the scheduler
SCHEDULE_CRON=0 8 * * *
SCHEDULE_TIMEZONE=Asia/Shanghai
"""


def update_tokens(path: str | Path, access_token: str, refresh_token: str) -> None:
    """Rewrite the ACCESS_TOKEN and REFRESH_TOKEN lines in place."""
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Env file not found: {target}")
    set_key(target, "ACCESS_TOKEN", access_token, quote_mode="never")
    set_key(target, "REFRESH_TOKEN", refresh_token, quote_mode="never")
    logger.info(f"Persisted refreshed tokens to {target}")


def create_env_file(path: str | Path) -> bool:
    """Write the starter template; returns False when the file already exists."""
    target = Path(path)
    if target.exists():
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(ENV_TEMPLATE, encoding="utf-8")
    logger.info(f"Created {target}")
    return True
