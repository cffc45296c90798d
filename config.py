import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        default_timeframe: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.default_timeframe = default_timeframe


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINTRACK_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "fintrack.db"
    database_url = os.getenv("FINTRACK_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINTRACK_TIMEZONE", "Asia/Kolkata")
    default_timeframe = os.getenv("FINTRACK_DEFAULT_TIMEFRAME", "monthly")
    return Settings(
        database_url=database_url,
        timezone=timezone,
        default_timeframe=default_timeframe,
    )
