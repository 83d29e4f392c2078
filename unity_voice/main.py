import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .config import Settings, get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import get_engine
from .developer_routes import router as developer_router
from .logging_config import configure_logging
from .progress_routes import router as progress_router
from .task_routes import router as task_router
from .word_routes import router as word_router


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="Unity Voice Backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(progress_router)
app.include_router(task_router)
app.include_router(word_router)
app.include_router(developer_router)

settings_snapshot = get_settings()
logger.info("Backend starting with database configured: %s", bool(settings_snapshot.database_url))
logger.info("Progression ceiling: level %s", settings_snapshot.max_level)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "max_level": str(settings.max_level)}


@app.get("/healthz/database")
def database_health() -> Dict[str, Any]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {
        "status": "ok",
        "dialect": engine.dialect.name,
        "pool": get_pool_snapshot(engine),
    }
