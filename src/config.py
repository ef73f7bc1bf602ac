"""Application configuration via environment variables.

Default values are intended for local development only.
Production deployments should override via .env file or environment variables.

Security considerations:
- postgres_password: Override with a strong password in production
- redis_password: Set when Redis is reachable outside localhost
- api_host: Consider restricting to specific IPs in production
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "pcshop"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    # Full SQLAlchemy URL override (e.g. sqlite:///./dev.db)
    database_url: str | None = None

    # Redis (filter cache)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    redis_socket_timeout: float = 2.0

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 9019
    log_level: str = "INFO"

    # Filters
    filter_cache_ttl: int = 3600
    filter_vocabulary_scope: Literal["category", "global"] = "category"
    filter_match_mode: Literal["token", "exact"] = "token"

    # Product listing
    products_page_size: int = 30

    @property
    def postgres_url_sync(self) -> str:
        if self.database_url:
            return self.database_url
        return f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @property
    def redis_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


settings = Settings()
