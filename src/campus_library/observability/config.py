"""Configuration for Logfire observability."""

import os

from pydantic import BaseModel, Field


class ObservabilityConfig(BaseModel):
    """
    Logfire settings, read from the environment.

    Disabled by default: spans and metrics are still created but nothing
    leaves the process.
    """

    token: str = Field(default_factory=lambda: os.getenv("LOGFIRE_TOKEN", ""))
    service_name: str = "campus-library"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    enabled: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_ENABLED", "false").lower() == "true"
    )
    console_output: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_CONSOLE", "false").lower() == "true"
    )
    send_to_logfire: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_SEND", "true").lower() == "true"
    )

    # Also trace every SQL statement
    instrument_sqlalchemy: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_SQLALCHEMY", "false").lower() == "true"
    )
