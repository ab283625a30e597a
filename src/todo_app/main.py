from __future__ import annotations

import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import AppError, InternalError
from .logging_config import configure_logging
from .repositories import get_repository
from .routers import admin as admin_router
from .routers import auth as auth_router
from .routers import todos as todos_router
from .services.account_service import seed_default_users
from .sessions import get_session_store
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, login/logout and the current user."},
    {"name": "todos", "description": "CRUD operations on the logged-in user's Todo items."},
    {"name": "admin", "description": "Admin-only user management and all-users todo listing."},
]


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Map domain errors to ``{"error", "message"}`` with the error's status code."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder(
                {
                    "error": "ValidationError",
                    "message": "Validation failed",
                    "detail": exc.errors(),
                }
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path, "method": request.method})
        err = InternalError()
        return JSONResponse(status_code=err.status_code, content={"error": err.error, "message": err.message})


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The repository and session store are chosen from ``settings`` (environment by
    default) and kept on ``app.state`` for the request dependencies in ``auth``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Todo Backend",
        description="Multi-user todo API with session login and admin role management.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    app.state.settings = settings
    app.state.repository = get_repository(settings)
    app.state.session_store = get_session_store(settings)
    if settings.seed_default_users:
        seed_default_users(app.state.repository)

    # Configure CORS from CORS_ALLOW_ORIGINS; '*' is mirrored per origin since cookies need credentials
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    if allow_all:
        # Any origin may then make credentialed requests with the session cookie
        logger.warning(
            "CORS allows every origin with credentials; set CORS_ALLOW_ORIGINS to the frontend origin in production"
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all else settings.cors_allow_origins,
        allow_origin_regex=".*" if allow_all else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(todos_router.router)
    app.include_router(admin_router.router)

    logger.info("Application created", extra={"backend": settings.persistence_backend})
    return app


app = create_app()


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the application with uvicorn (``todo-backend`` console script)."""
    uvicorn.run(
        "todo_app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
