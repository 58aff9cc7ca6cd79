from functools import lru_cache

import pydantic

from dojobook.schemas.config import app
from dojobook.schemas.config.app import AppConfig


@lru_cache()
def read_app_config() -> AppConfig:
    with open(app.CONFIG_FILE) as f:
        return pydantic.TypeAdapter(app.AppConfig).validate_json(f.read())
