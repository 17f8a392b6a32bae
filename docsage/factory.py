"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.database import init_db, close_db
from .core.locks import close_locks
from .exceptions import (
    DocSageError,
    ExtractionFailed,
    GenerationFailed,
    InvalidInput,
    NotFoundOrForbidden,
    NotYetSummarized,
)
from .api.router import router

logger = logging.getLogger(__name__)

# Transport mapping for the lifecycle's error kinds
ERROR_STATUS = {
    InvalidInput: 400,
    NotFoundOrForbidden: 404,
    NotYetSummarized: 409,
    ExtractionFailed: 422,
    GenerationFailed: 502,
}


def status_for(exc: DocSageError) -> int:
    for exc_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="DocSage",
        description="Upload documents, summarize them once, ask them anything",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ───────────────────────────────────────────────────
    @app.exception_handler(DocSageError)
    async def docsage_error_handler(request: Request, exc: DocSageError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": exc.code},
        )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting DocSage (env=%s)", settings.env)

        await init_db()

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: auth0=%s s3=%s redis=%s ocr=%s llm=%s",
            flags.use_auth0, flags.use_s3, flags.use_redis,
            flags.use_ocr, flags.llm_provider,
        )

        logger.info("DocSage is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        from .services.llm import close_client
        await close_client()
        await close_locks()
        await close_db()
        logger.info("DocSage shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
