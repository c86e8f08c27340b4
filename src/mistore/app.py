"""FastAPI application factory for Mi Store."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mistore.common.config import get_settings
from mistore.common.logging import setup_logging
from mistore.common.schemas import HealthResponse

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from mistore.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from mistore.accounts.router import router as accounts_router
    from mistore.catalog.router import router as catalog_router
    from mistore.payments.router import router as payments_router
    from mistore.reviews.router import router as reviews_router
    from mistore.storefront.router import admin_router, router as storefront_router

    prefix = settings.api_prefix
    app.include_router(accounts_router, prefix=prefix, tags=["accounts"])
    app.include_router(catalog_router, prefix=prefix, tags=["catalog"])
    app.include_router(storefront_router, prefix=prefix, tags=["storefront"])
    app.include_router(admin_router, prefix=prefix, tags=["admin"])
    app.include_router(reviews_router, prefix=prefix, tags=["reviews"])
    app.include_router(payments_router, prefix=prefix, tags=["payments"])

    return app
