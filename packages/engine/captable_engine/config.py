from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    log_level: str = Field(default="INFO", alias="CAPTABLE_LOG_LEVEL")
    log_format: Literal["json", "plain"] = Field(default="json", alias="CAPTABLE_LOG_FORMAT")
    strict_validation: bool = Field(default=False, alias="CAPTABLE_STRICT_VALIDATION")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
