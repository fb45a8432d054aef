from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    source_url: str = "https://erbilairport.com/page.php?id=8"
    source_name: str = "Erbil Airport"
    page_layout: str = "combined"
    source_timezone: str = "Asia/Baghdad"
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: float = 15.0

    cache_ttl_minutes: int = 15

    scheduler_enabled: bool = True
    refresh_interval_minutes: int = 5

    api_prefix: str = "/api/flights"

    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("page_layout")
    @classmethod
    def _known_layout(cls, value: str) -> str:
        from flightboard.scrapers.flight_table import TABLE_LAYOUTS

        if value not in TABLE_LAYOUTS:
            raise ValueError(
                f"Unknown page layout '{value}', expected one of {sorted(TABLE_LAYOUTS)}"
            )
        return value

    @field_validator("source_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'") from e
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.source_timezone)


@lru_cache
def get_settings() -> Settings:
    return Settings()
