"""
FastAPI application entry point.

Sets up the app, lifespan (storage connect/disconnect), CORS, logging,
error rendering, and includes API routers. Services are built once at
startup and kept on app.state; routes reach them through dependencies.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from omnipost.api import auth, compose, posts
from omnipost.config import Settings, get_settings
from omnipost.database import connect_backend
from omnipost.exceptions import OmniPostError
from omnipost.services.ai_service import AIEnhancementClient
from omnipost.services.auth_service import AuthService
from omnipost.services.credentials import get_credential_strategy
from omnipost.services.local_store import LocalStore
from omnipost.services.post_service import PostService

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Single place for log format and level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: runs on startup and shutdown.
    Connects the storage backend and wires the services on top of it.
    """
    settings: Settings = app.state.settings
    backend = await connect_backend(settings)
    store = LocalStore(
        backend,
        prefix=settings.storage_key_prefix,
        quota=settings.storage_quota_bytes,
    )
    app.state.store = store
    app.state.auth_service = AuthService(
        store,
        credentials=get_credential_strategy(settings.password_scheme),
        avatar_base_url=settings.avatar_base_url,
    )
    app.state.post_service = PostService(store)
    app.state.ai_client = AIEnhancementClient(
        api_key=settings.groq_api_key,
        model=settings.llm_model,
    )

    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not set. AI polish will return drafts unchanged.")
    if settings.password_scheme == "plain":
        logger.warning("PASSWORD_SCHEME=plain stores passwords as plain text. Use 'hashed' outside demos.")
    yield
    await backend.close()


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OmniPostError)
    async def omnipost_exception_handler(request: Request, exc: OmniPostError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "code": exc.code, "details": exc.details},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Input validation failed",
                "code": "VALIDATION_ERROR",
                "details": jsonable_errors(exc),
            },
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Factory for the FastAPI app. Tests pass their own Settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        description="Social feed with AI-assisted posting.",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS - the web client is served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
    app.include_router(compose.router, prefix="/api/compose", tags=["compose"])

    return app


app = create_application()
