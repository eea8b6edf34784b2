"""Logfire observability for the Campus Library API."""

import logging

import logfire
from fastapi import FastAPI
from sqlalchemy.engine import Engine

from .config import ObservabilityConfig

logger = logging.getLogger(__name__)

_config: ObservabilityConfig | None = None


def initialize_observability(
    config: ObservabilityConfig | None = None,
    app: FastAPI | None = None,
    engine: Engine | None = None,
) -> None:
    """
    Configure Logfire and instrument the app and database engine.

    When disabled, Logfire is configured to keep everything local so that
    spans and metrics created by the repositories are harmless no-ops.
    """
    global _config  # noqa: PLW0603
    _config = config or ObservabilityConfig()

    if not _config.enabled:
        logfire.configure(
            send_to_logfire=False,
            console=False,
            service_name=_config.service_name,
        )
        logger.debug("Observability disabled via configuration")
        return

    logfire.configure(
        token=_config.token or None,
        service_name=_config.service_name,
        environment=_config.environment,
        send_to_logfire=_config.send_to_logfire,
        console=None if _config.console_output else False,
    )

    if app is not None:
        logfire.instrument_fastapi(app)
    if engine is not None and _config.instrument_sqlalchemy:
        logfire.instrument_sqlalchemy(engine=engine)

    logger.info("Logfire observability enabled (%s)", _config.environment)


def get_config() -> ObservabilityConfig:
    """Get current observability configuration."""
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ObservabilityConfig()
    return _config


__all__ = [
    "ObservabilityConfig",
    "get_config",
    "initialize_observability",
]
