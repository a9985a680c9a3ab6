"""specdash FastAPI backend: main application entry point."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from specdash import config
from specdash.db.connection import Database
from specdash.db.file_watcher import FileWatcher
from specdash.db.repositories import SqliteProjectRepository
from specdash.db.sync_engine import SyncEngine
from specdash.models import FileChangeEvent
from specdash.routers.features import features_router
from specdash.routers.projects import projects_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("specdash")


async def _register_configured_project(db) -> tuple[int, Path] | None:
    if not config.PROJECT_ROOT:
        return None
    root = Path(config.PROJECT_ROOT).expanduser().resolve()
    if not root.is_dir():
        logger.warning(f"Configured project root does not exist: {root}")
        return None
    project_id = await SqliteProjectRepository(db).create(root.name, str(root))
    return project_id, root


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("specdash backend starting up")

    # 1. Open DB (runs migrations)
    database = Database(config.DB_PATH)
    await database.init()
    app.state.db = database

    # 2. Sync engine and watcher
    sync = SyncEngine(database.conn)
    app.state.sync_engine = sync
    watcher = FileWatcher(debounce_ms=config.WATCH_DEBOUNCE_MS)
    app.state.file_watcher = watcher

    # 3. Configured project: delayed startup sync, then watch
    registered = await _register_configured_project(database.conn)
    if registered:
        project_id, root = registered

        async def _run_startup_sync() -> None:
            delay = max(0, config.STARTUP_SYNC_DELAY_SECONDS)
            if delay > 0:
                await asyncio.sleep(delay)
            result = await sync.sync_project_features(project_id, root)
            for error in result.errors:
                logger.warning(f"Startup sync: {error}")

        app.state.sync_task = asyncio.create_task(_run_startup_sync())

        if config.WATCH_ENABLED:
            async def _on_change(event: FileChangeEvent) -> None:
                synced = await sync.sync_feature_by_path(project_id, event.path)
                if synced:
                    logger.info(f"Re-synced after {event.eventKind}: {event.path}")

            watcher.subscribe(_on_change)
            await watcher.start(root / name for name in config.WATCH_DIR_NAMES)

    yield

    logger.info("specdash backend shutting down")

    if hasattr(app.state, "sync_task"):
        app.state.sync_task.cancel()
        try:
            await app.state.sync_task
        except asyncio.CancelledError:
            pass

    await watcher.stop()
    await database.close()


app = FastAPI(
    title="specdash API",
    description="Structured mirror of spec-driven feature documents",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router)
app.include_router(features_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    database = getattr(app.state, "db", None)
    watcher = getattr(app.state, "file_watcher", None)
    return {
        "status": "ok",
        "db": "connected" if database and database.is_open else "disconnected",
        "watcher": "running" if watcher and watcher.is_running else "stopped",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("specdash.main:app", host=config.HOST, port=config.PORT, reload=False)
