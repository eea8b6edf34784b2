"""Configuration management for the Campus Library API.

Settings are loaded from environment variables prefixed with
``CAMPUS_LIBRARY_`` (or a local ``.env`` file) and validated with
Pydantic v2. The rest of the application reaches them through
``get_config()``.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Runtime configuration for the library service."""

    model_config = SettingsConfigDict(
        # Use CAMPUS_LIBRARY_ prefix for all env vars
        env_prefix="CAMPUS_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application Metadata ===

    app_name: str = Field(
        default="campus-library",
        description="Service name reported by the health endpoint",
        pattern=r"^[a-z0-9-]+$",
    )

    app_version: str = Field(
        default="0.1.0",
        description="Service version",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/library.db"),
        description="SQLite database file path",
    )

    # === HTTP Configuration ===

    http_host: str = Field(
        default="127.0.0.1",
        description="Host the API server binds to",
    )

    http_port: int = Field(
        default=5000,
        description="Port the API server listens on",
        ge=1024,  # Avoid privileged ports
        le=65535,
    )

    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API from a browser",
    )

    # === Lending Policy ===

    loan_period_days: int = Field(
        default=7,
        description="Days between issue date and due date",
        ge=1,
        le=365,
    )

    fine_per_day: int = Field(
        default=10,
        description="Fine in whole currency units per started day late",
        ge=0,
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug mode (auto-reload, verbose errors)",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Resolve the database path and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)

        if not abs_path.parent.is_dir():
            raise ValueError(f"Database directory {abs_path.parent} is not accessible")

        return abs_path

    @field_validator("http_port")
    @classmethod
    def validate_http_port(cls, v: int) -> int:
        """Reject ports commonly taken by other services."""
        reserved_ports = {3306, 5432, 6379, 27017}
        if v in reserved_ports:
            raise ValueError(f"Port {v} is commonly reserved, choose another")
        return v

    @property
    def service_info(self) -> dict[str, str]:
        """Name and version reported by the health endpoint."""
        return {
            "name": self.app_name,
            "version": self.app_version,
        }

    def get_database_url(self) -> str:
        """Get SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = AppConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
