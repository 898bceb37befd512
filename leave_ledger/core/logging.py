"""
Logging for the leave ledger service

Everything goes to stdout in a single line format. Loggers under
``leave_ledger`` (balance movements, conflicts, persistence failures) follow
LOG_LEVEL; uvicorn access lines and SQLAlchemy statements stay at WARNING.
"""
import logging
import sys
from leave_ledger.core.config import settings
from leave_ledger.core.constants import SERVICE_NAME

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers and the level they are capped at
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
}


def setup_logging() -> None:
    """Configure the root logger and the service loggers from settings.LOG_LEVEL"""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    logging.getLogger("leave_ledger").setLevel(log_level)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(f"{SERVICE_NAME} logging configured: level={settings.LOG_LEVEL}, env={settings.APP_ENV}")
