import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import auth, dashboard, health, invitations, provisioning, tasks, users
from taskboard.config import settings
from taskboard.db import init_db
from taskboard.errors import TaskboardError
from taskboard.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    setup_logging(settings.log_level, log_file=settings.log_file)
    logger.info("Starting application...")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Error during startup: {e}")

    logger.info(f"Identity backend: {settings.auth_backend}")

    yield

    logger.info("Application shutdown complete")


async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Task Management Backend",
        description="Role-based task management: assignments, comments, invitations and email notifications",
        version="1.0.0",
        lifespan=app_lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Session-Token"],
    )

    app.add_exception_handler(TaskboardError, taskboard_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(provisioning.router)
    app.include_router(tasks.router)
    app.include_router(users.router)
    app.include_router(invitations.router)
    app.include_router(dashboard.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
