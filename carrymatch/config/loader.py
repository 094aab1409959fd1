# carrymatch/config/loader.py
"""
Project configuration loader.
config/config.json is the single source of values.
Secrets and service hosts are overridden from environment variables.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# PATHS
# =============================================================================

def get_project_root() -> Path:
    """Returns the project root directory."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Returns the path to config.json (CARRYMATCH_CONFIG overrides it)."""
    override = os.getenv("CARRYMATCH_CONFIG")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Loads config.json; a missing file yields an empty dict so defaults apply."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# SECTIONS
# =============================================================================

class SystemSettings(BaseModel):
    """System settings."""
    PROJECT_NAME: str = "carrymatch"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Where this service listens and where the Sources live."""
    MATCHING_SERVICE_HOST: str = "0.0.0.0"
    MATCHING_SERVICE_PORT: int = 8092
    DEMAND_SERVICE_URL: str = "http://demand-service:8080"
    JOURNEY_SERVICE_URL: str = "http://journey-service:8080"


class LoggingSettings(BaseModel):
    """Logging settings."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class DatabaseSettings(BaseModel):
    """PostgreSQL settings."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "carrymatch"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Takes the password from the environment when not set."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """PostgreSQL DSN."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RabbitMQSettings(BaseModel):
    """RabbitMQ settings."""
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "carrymatch.events"

    @field_validator("RABBITMQ_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """The environment password wins over config.json."""
        env_pass = os.getenv("RABBITMQ_PASSWORD", "")
        if env_pass:
            return env_pass
        return v

    @property
    def url(self) -> str:
        """AMQP connection URL."""
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class SourceSettings(BaseModel):
    """HTTP behaviour towards the Demand and Journey services."""
    SOURCE_TIMEOUT: float = 5.0
    SOURCE_RETRY_ATTEMPTS: int = 3
    SOURCE_RETRY_DELAY: float = 0.5
    ENRICHMENT_CONCURRENCY: int = 10


class MatchingSettings(BaseModel):
    """Matching rules."""
    MIN_MATCH_SCORE: float = Field(default=0.5, ge=0.0, le=1.0)
    CONFIRM_MAX_RETRIES: int = Field(default=3, ge=1)


# =============================================================================
# SETTINGS
# =============================================================================

class Settings(BaseSettings):
    """
    Application settings.
    Aggregates every configuration section.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Builds Settings from config.json.
        Secrets and hosts are overridden from environment variables.
        """
        config_data = load_config_json()

        # Keys starting with _comment_ are annotations, not values
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "carrymatch"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                MATCHING_SERVICE_HOST=os.getenv("MATCHING_SERVICE_HOST", data.get("MATCHING_SERVICE_HOST", "0.0.0.0")),
                MATCHING_SERVICE_PORT=int(os.getenv("MATCHING_SERVICE_PORT", data.get("MATCHING_SERVICE_PORT", 8092))),
                DEMAND_SERVICE_URL=os.getenv("DEMAND_SERVICE_URL", data.get("DEMAND_SERVICE_URL", "http://demand-service:8080")),
                JOURNEY_SERVICE_URL=os.getenv("JOURNEY_SERVICE_URL", data.get("JOURNEY_SERVICE_URL", "http://journey-service:8080")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "DEBUG")),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "carrymatch")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
            rabbitmq=RabbitMQSettings(
                RABBITMQ_HOST=os.getenv("RABBITMQ_HOST", data.get("RABBITMQ_HOST", "localhost")),
                RABBITMQ_PORT=int(os.getenv("RABBITMQ_PORT", data.get("RABBITMQ_PORT", 5672))),
                RABBITMQ_USER=os.getenv("RABBITMQ_USER", data.get("RABBITMQ_USER", "guest")),
                RABBITMQ_PASSWORD=os.getenv("RABBITMQ_PASSWORD", data.get("RABBITMQ_PASSWORD", "guest")),
                RABBITMQ_VHOST=data.get("RABBITMQ_VHOST", "/"),
                RABBITMQ_EXCHANGE=data.get("RABBITMQ_EXCHANGE", "carrymatch.events"),
            ),
            sources=SourceSettings(
                SOURCE_TIMEOUT=data.get("SOURCE_TIMEOUT", 5.0),
                SOURCE_RETRY_ATTEMPTS=data.get("SOURCE_RETRY_ATTEMPTS", 3),
                SOURCE_RETRY_DELAY=data.get("SOURCE_RETRY_DELAY", 0.5),
                ENRICHMENT_CONCURRENCY=data.get("ENRICHMENT_CONCURRENCY", 10),
            ),
            matching=MatchingSettings(
                MIN_MATCH_SCORE=data.get("MIN_MATCH_SCORE", 0.5),
                CONFIRM_MAX_RETRIES=data.get("CONFIRM_MAX_RETRIES", 3),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Returns the settings singleton.
    Loads .env from the project root first.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
