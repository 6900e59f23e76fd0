from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Task List API"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./tasker.db"
    database_echo: bool = False
    auto_create_schema: bool = True  # CREATE TABLE IF NOT EXISTS on startup

    cache_backend: Literal["redis", "memory", "none"] = "redis"
    redis_dsn: str = "redis://localhost:6379/0"
    redis_pool_size: int = 5
    redis_socket_timeout: float = 2.0
    memory_cache_maxsize: int = 128
    cache_namespace: str = ""
    cache_key: str = "tasks:all"
    cache_ttl_seconds: int = 5

    generate_default_count: int = 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
