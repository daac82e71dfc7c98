import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .catalog_loader import load_catalog_file
from .config import Settings, get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import create_schema, dispose_engine, get_engine, session_scope
from .logging_config import configure_logging
from .schedule_routes import router as schedule_router

SERVICE_NAME = "MCAT Study Schedule Planner"

configure_logging()
logger = logging.getLogger(__name__)


def prepare_database() -> None:
    settings = get_settings()
    logger.info("Planner starting; database configured: %s", bool(settings.database_url))
    if not settings.database_url:
        return
    if settings.create_schema:
        create_schema()
    if settings.catalog_path:
        with session_scope() as session:
            counts = load_catalog_file(session, settings.catalog_path)
        logger.info("Catalog loaded from %s: %s", settings.catalog_path, counts)


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    prepare_database()
    try:
        yield
    finally:
        logger.info("Planner shutting down")
        dispose_engine()


app = FastAPI(title=SERVICE_NAME, version="0.1.0", lifespan=_lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(schedule_router)


@app.get("/health")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }


@app.get("/healthz/database")
def database_health() -> Dict[str, Any]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "pool": get_pool_snapshot(engine)}
