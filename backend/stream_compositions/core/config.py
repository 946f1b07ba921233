"""Configuration settings for the stream compositions backend."""

import json
from typing import Annotated, List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment.

    Attributes:
    ----------
        PROJECT_NAME (str): The name of the project.
        ENVIRONMENT (str): Deployment environment (local, dev, prd, test).
        LOCAL_DEVELOPMENT (bool): Render logs for a terminal instead of a collector.
        TESTING (bool): Whether the process runs under the test suite.
        LOG_LEVEL (str): Root log level.
        POSTGRES_HOST (str): The PostgreSQL server hostname.
        POSTGRES_PORT (int): The PostgreSQL server port.
        POSTGRES_USER (str): The PostgreSQL username.
        POSTGRES_PASSWORD (str): The PostgreSQL password.
        POSTGRES_DB (str): The PostgreSQL database name.
        DATABASE_URL (Optional[str]): Full SQLAlchemy URL, overrides the POSTGRES_* fields.
        DB_POOL_SIZE (int): Connection pool size for the async engine.
        DB_ECHO (bool): Echo SQL statements.
        TRANSACTION_CHAIN_ENABLED (bool): Pull transactions after product ingestion.
        TRANSACTION_CHAIN_ASYNC (bool): Fire-and-forget the transaction pulls.
        TRANSACTION_COMPOSITION_BASE_URL (str): Base URL of the transaction composition API.
        TRANSACTION_COMPOSITION_TIMEOUT_SECONDS (float): Timeout for downstream calls.
        TRANSACTION_CHAIN_EXCLUDE_PRODUCT_TYPE_EXTERNAL_IDS (list[str]): Product types to skip.
        EVENTS_ENABLE_COMPLETED (bool): Emit a completed event on success.
        EVENTS_ENABLE_FAILED (bool): Emit a failed event on failure.
        EVENT_BUS_BACKEND (str): Which event bus to publish through (memory, svix).
        SVIX_URL (str): Svix server URL.
        SVIX_JWT_SECRET (str): Secret used to sign the Svix API token.
        SVIX_APP_UID (str): Svix application that receives product events.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "stream-compositions"
    ENVIRONMENT: Literal["local", "dev", "prd", "test"] = "local"
    LOCAL_DEVELOPMENT: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "stream_compositions"
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_ECHO: bool = False

    TRANSACTION_CHAIN_ENABLED: bool = False
    TRANSACTION_CHAIN_ASYNC: bool = False
    TRANSACTION_COMPOSITION_BASE_URL: str = "http://localhost:9004"
    TRANSACTION_COMPOSITION_TIMEOUT_SECONDS: float = 30.0
    TRANSACTION_CHAIN_EXCLUDE_PRODUCT_TYPE_EXTERNAL_IDS: Annotated[List[str], NoDecode] = []

    EVENTS_ENABLE_COMPLETED: bool = True
    EVENTS_ENABLE_FAILED: bool = True
    EVENT_BUS_BACKEND: Literal["memory", "svix"] = "memory"
    SVIX_URL: str = "http://localhost:8071"
    SVIX_JWT_SECRET: str = ""
    SVIX_APP_UID: str = "stream-compositions"

    @field_validator("TRANSACTION_CHAIN_EXCLUDE_PRODUCT_TYPE_EXTERNAL_IDS", mode="before")
    @classmethod
    def split_excluded_product_types(cls, v):
        """Accept a comma separated string as well as a JSON list."""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:
        """Async database URL, either explicit or assembled from the POSTGRES_* fields."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
