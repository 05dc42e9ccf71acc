import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def load_environment() -> None:
    """Loads a .env file from the working directory (or its parents) without overriding the environment."""
    load_dotenv(find_dotenv(usecwd=True))


@dataclass
class Settings:
    """Service settings, read from the environment (and a .env file, if present)."""
    api_key: str | None = None
    passive_alert_duration: float = 2.0
    sse_keep_alive_seconds: float = 15.0
    sse_subscriber_queue_size: int = 100
    rate_limit: str = "30/minute"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


def load_settings() -> Settings:
    load_environment()
    return Settings(
        api_key=os.getenv("API_KEY") or None,
        passive_alert_duration=float(os.getenv("PASSIVE_ALERT_DURATION", "2.0")),
        sse_keep_alive_seconds=float(os.getenv("SSE_KEEP_ALIVE_SECONDS", "15.0")),
        sse_subscriber_queue_size=int(os.getenv("SSE_SUBSCRIBER_QUEUE_SIZE", "100")),
        rate_limit=os.getenv("RATE_LIMIT", "30/minute"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
