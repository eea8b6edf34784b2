"""Campus Library API server entry point.

Run with ``campus-library`` (console script) or
``python -m campus_library.server``. Settings come from
``CAMPUS_LIBRARY_*`` environment variables; see ``campus_library.config``.
"""

import logging
import sys

import uvicorn

from campus_library.api import create_app
from campus_library.config import get_config
from campus_library.database.session import get_db_manager
from campus_library.observability import initialize_observability

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Apply the configured level to the root logger and quiet noisy libraries."""
    logging.getLogger().setLevel(level)
    if level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def main() -> None:
    """Create the schema if needed and serve the API with uvicorn."""
    try:
        config = get_config()
        configure_logging(config.log_level)

        logger.info("=" * 60)
        logger.info("Campus Library API")
        logger.info("Version: %s", config.app_version)
        logger.info("Database: %s", config.database_path)
        logger.info("Listening on: http://%s:%d", config.http_host, config.http_port)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        db_manager = get_db_manager()
        db_manager.init_database()

        app = create_app(config)
        initialize_observability(app=app, engine=db_manager.engine)

        uvicorn.run(
            app,
            host=config.http_host,
            port=config.http_port,
            log_level=config.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start API server")
        sys.exit(1)


if __name__ == "__main__":
    main()
