import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from taskmanager.core.config import Settings
from taskmanager.core.database import build_engine, build_session_factory, init_db
from taskmanager.core.errors import register_exception_handlers
from taskmanager.core.logging import setup_logging
from taskmanager.services.auth_service import AuthService
from taskmanager.services.task_service import TaskService
from taskmanager.api.routes import auth, tasks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: create tables if they don't exist
    Shutdown: release pooled database connections
    """
    init_db(app.state.engine)
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API around an explicit Settings object.

    The engine, session factory and services are created here and kept on
    app.state; request dependencies read them from there.

    Serve with: uvicorn taskmanager.main:create_app --factory
    """
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL)

    if settings.uses_default_secret():
        logger.warning("JWT_SECRET is not set; tokens are signed with the default development secret")

    app = FastAPI(
        title="Task Manager API",
        description="Task CRUD behind bearer-token authentication",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = build_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.auth_service = AuthService(settings)
    app.state.task_service = TaskService()

    register_exception_handlers(app)

    # All routes are prefixed with /api for consistency
    app.include_router(auth.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app
