from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field(..., alias="BOT_TOKEN")
    database_url: str = Field(..., alias="DATABASE_URL")
    tz: str = Field("Europe/Moscow", alias="TZ")
    ledger_epsilon: Decimal = Field(Decimal("0.01"), alias="LEDGER_EPSILON", gt=0)
    currency_symbol: str = Field("$", alias="CURRENCY_SYMBOL")
    audit_interval_minutes: int = Field(30, alias="AUDIT_INTERVAL_MINUTES", ge=1)
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def zoneinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
