from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pathlib import Path
import os

load_dotenv()

def _to_int(v: str | None, default: int) -> int:
    if v is None or not v.strip():
        return default
    return int(v.strip())

def _to_float(v: str | None, default: float) -> float:
    if v is None or not v.strip():
        return default
    return float(v.strip())


DEFAULT_USER_AGENT = "gator/0.1 (command-line RSS aggregator)"


class Settings(BaseModel):
    config_path: str = Field(default=str(Path.home() / ".gatorconfig.json"))

    # used only when the config file carries no db_url
    database_url: str = Field(default="sqlite:///data/gator.db")

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/gator.log")

    fetch_timeout_seconds: float = Field(default=20.0)
    fetch_user_agent: str = Field(default=DEFAULT_USER_AGENT)

    browse_default_limit: int = Field(default=2, ge=1)

    agg_lock_file: str = Field(default="data/agg.lock")


_settings: Settings | None = None

def get_settings() -> Settings:
    global _settings
    if _settings is not None:
        return _settings

    _settings = Settings(
        config_path=os.getenv("GATOR_CONFIG_PATH", str(Path.home() / ".gatorconfig.json")),
        database_url=os.getenv("DATABASE_URL", "sqlite:///data/gator.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE", "logs/gator.log"),
        fetch_timeout_seconds=_to_float(os.getenv("FETCH_TIMEOUT_SECONDS"), 20.0),
        fetch_user_agent=os.getenv("FETCH_USER_AGENT", DEFAULT_USER_AGENT),
        browse_default_limit=_to_int(os.getenv("BROWSE_DEFAULT_LIMIT"), 2),
        agg_lock_file=os.getenv("AGG_LOCK_FILE", "data/agg.lock"),
    )
    return _settings
