"""Runtime configuration read from the environment (and an optional .env file)."""
import os
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Local development: values in .env next to the project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


DB_PATH: str = os.getenv("PHARMACARE_DB_PATH", ":memory:")
SESSION_DIR: str = os.getenv(
    "PHARMACARE_SESSION_DIR", ".streamlit/sessions"
)
SESSION_DURATION_DAYS: int = int(os.getenv("PHARMACARE_SESSION_DAYS", "30"))
SEED_DEMO_DATA: bool = _env_flag("PHARMACARE_SEED_DEMO", True)
LOG_LEVEL: str = os.getenv("PHARMACARE_LOG_LEVEL", "INFO").upper()
TIMEZONE = ZoneInfo(os.getenv("PHARMACARE_TIMEZONE", "UTC"))


def local_now() -> datetime:
    """Current time in the pharmacy's timezone."""
    return datetime.now(TIMEZONE)


def local_today() -> date:
    return local_now().date()
