from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from aiprofessor.app import App
from aiprofessor.config import Config
from aiprofessor.core.modules.artifact.storage import FILES_URL_PREFIX
from aiprofessor.errors import UserError
from aiprofessor.web.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    user_error_handler,
)
from aiprofessor.web.middleware import register_desktop_client_gate
from aiprofessor.web.openapi import set_custom_openapi
from aiprofessor.web.routers import auth_router, documents_router


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="AI Professor API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )

    register_desktop_client_gate(app, config)

    # Add CORS middleware for the desktop and web clients
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api")
    app.include_router(documents_router, prefix="/api")

    # Generated and uploaded PDFs, downloadable without authentication
    Path(config.files_path).mkdir(parents=True, exist_ok=True)
    app.mount(f"/{FILES_URL_PREFIX}", StaticFiles(directory=config.files_path), name=FILES_URL_PREFIX)

    register_error_handlers(app)
    set_custom_openapi(app)

    return app
