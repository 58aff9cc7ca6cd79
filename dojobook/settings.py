from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


@lru_cache()
def get_settings():
    return Settings()


class Settings(BaseSettings):
    # bearer secret required by the scheduled notification endpoint
    CRON_SECRET: Optional[str] = None
    CRON_JOB_COMMENT_PREFIX: str = "dojobook"

    model_config = SettingsConfigDict(
        env_file=[find_dotenv(".env")],
        env_file_encoding="utf-8",
        extra="ignore",
    )
