"""Library configuration."""

from typing import Any, Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Document store configuration."""

    uri: str = "mongodb://localhost:27017"
    name: str = "commentary"

    # Collection holding comment documents (one document per comment thread)
    collection: str = "comments"

    # Collection holding atomic sequence counters for comment ordering
    counters_collection: str = "counters"

    # How long the driver waits to find a reachable server before failing
    server_selection_timeout_ms: int = 5000

    # Extra keyword arguments passed straight to the Mongo client
    # Can be set via DATABASE__OPTIONS='{"maxPoolSize": 50}'
    options: dict[str, Any] = {}


class ObservabilitySettings(BaseModel):
    """Observability configuration for Logfire."""

    # Logfire API token (optional - if not set, logs only go to console)
    # Can be set via OBSERVABILITY__LOGFIRE_TOKEN env var
    logfire_token: str | None = None

    # Whether to send telemetry to Logfire cloud
    # If None, will auto-determine: sends if token is present, otherwise console-only
    send_to_logfire: bool | None = None


class Settings(BaseSettings):
    """Library settings.

    Values are read from the environment and an optional ``.env`` file.
    Nested settings use a double underscore:

        DATABASE__URI=mongodb://db.internal:27017
        DATABASE__NAME=forum
        DATABASE__COLLECTION=post_comments
        OBSERVABILITY__LOGFIRE_TOKEN=...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # Allows DATABASE__URI syntax
    )

    environment: Literal["test", "development", "staging", "production"] = "development"
    debug: bool = False

    # Nested settings
    database: DatabaseSettings = DatabaseSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
