"""Focus Flow FastAPI application entry point."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from focusflow.db.connection import Database
from focusflow.importer.router import get_import_service
from focusflow.importer.router import router as import_router
from focusflow.importer.service import ImportService
from focusflow.tasks.router import get_task_store
from focusflow.tasks.router import router as tasks_router
from focusflow.tasks.store import TaskStore

# Load .env from backend/ directory before reading configuration
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

VERSION = "0.1.0"


def _cors_origins() -> list[str]:
    raw = os.environ.get("FOCUSFLOW_CORS_ORIGINS", "http://localhost:8081")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    db = await Database.connect(os.environ.get("FOCUSFLOW_DB_PATH", "focusflow.db"))

    # Task store
    store = TaskStore(db)
    app.dependency_overrides[get_task_store] = lambda: store

    # Import service
    import_svc = ImportService(store)
    app.dependency_overrides[get_import_service] = lambda: import_svc

    app.state.db = db
    yield

    await db.close()


app = FastAPI(
    title="Focus Flow",
    description="Personal task and project manager with OmniFocus archive import",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tasks_router)
app.include_router(import_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}
