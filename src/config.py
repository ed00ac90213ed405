from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    database_path: Path = Path("party_fund.db")
    fairness_tolerance: int = 10
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="PARTY_FUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@cache
def config() -> AppSettings:
    return AppSettings()
