"""DocGate FastAPI application.

Startup builds the two things every access decision shares: the rank tables
and the set of provisioned grant-source tables. Both live on ``app.state``
and are read by ``api.guards.get_access_engine`` on each request.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__, models  # noqa: F401  (models registers tables on Base.metadata)
from .api import documents_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import redact, setup_logging
from .core.ranks import RankTables
from .database import engine, Base, get_db, is_postgresql, DATABASE_URL
from .exceptions import DocGateException
from .middleware.exception_handler import docgate_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories import GRANT_SOURCE_TABLES, probe_grant_sources

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

VERSION = __version__
_started_at = time.monotonic()


def _check_settings() -> None:
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical("Startup refused: %s", e)
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and settings.uses_default_secret:
        logger.warning("JWT_SECRET_KEY is the built-in default; any caller can mint tokens")


def _probe_stores(app: FastAPI) -> None:
    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)
        logger.info("create_all finished")

    try:
        app.state.provisioned_sources = probe_grant_sources(engine)
    except SQLAlchemyError as e:
        logger.critical("Cannot inspect database %s: %s", redact(DATABASE_URL), e)
        raise SystemExit(1) from e


@asynccontextmanager
async def lifespan(app: FastAPI):
    _check_settings()
    app.state.ranks = RankTables.default()
    _probe_stores(app)

    logger.info(
        "DocGate %s ready (env=%s, db=%s, grant sources %d/%d)",
        VERSION,
        settings.environment.value,
        "postgresql" if is_postgresql() else "sqlite",
        len(app.state.provisioned_sources),
        len(GRANT_SOURCE_TABLES),
        extra={"grant_sources": sorted(app.state.provisioned_sources)},
    )
    yield


app = FastAPI(
    title="DocGate API",
    description=(
        "Access decisions for shared, group-owned documents. Combines ownership, "
        "group membership, group-document links, per-document ACL entries and "
        "time-bounded shared links into a single allow/deny.\n\n"
        "**Authentication:** every document endpoint requires a `Bearer` token "
        "in the `Authorization` header."
    ),
    version=VERSION,
    license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    lifespan=lifespan,
)

# Added last runs first: CORS wraps the request context.
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_exception_handler(DocGateException, docgate_exception_handler)
app.include_router(documents_router)


@app.get("/")
def root():
    return {"name": "DocGate API", "version": VERSION, "status": "running"}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus which grant sources are provisioned.

    Always 200; a failed database ping reports ``degraded``.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "error"

    provisioned = getattr(app.state, "provisioned_sources", frozenset())
    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _started_at),
        "version": VERSION,
        "grant_sources": {table: table in provisioned for table in sorted(GRANT_SOURCE_TABLES)},
    }
