"""
Leave Ledger Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from leave_ledger.api.router import api_router
from leave_ledger.core.config import settings
from leave_ledger.core.constants import DEFAULT_VERSION
from leave_ledger.core.errors import (
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from leave_ledger.core.logging import setup_logging
from leave_ledger.db.session import SessionLocal
from leave_ledger.services.seed_service import import_legacy_data

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "***"
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


app = FastAPI(
    title="Leave Ledger Backend",
    description="Staff leave requests, approvals and leave balances",
    version=settings.VERSION or DEFAULT_VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Starlette's HTTPException also covers unknown routes (404) and bad methods (405)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Mounted at the root: clients call /leave-requests, /balances, ...
app.include_router(api_router)


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so it can be verified against Alembic."""
    masked = _mask_database_url(settings.DATABASE_URL)
    logger.info("DATABASE_URL (app): %s", masked)


@app.on_event("startup")
def import_legacy_documents() -> None:
    """Seed empty documents from LEGACY_DATA_DIR, if configured."""
    if not settings.LEGACY_DATA_DIR:
        return
    db = SessionLocal()
    try:
        created = import_legacy_data(db, settings.LEGACY_DATA_DIR)
        if created:
            logger.info("Legacy data imported: %s", ", ".join(created))
    finally:
        db.close()
