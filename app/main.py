"""
DocScan - FastAPI Application
Legal document intelligence: classify an upload, check its fields, score
its validity and answer questions about the result.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, get_settings
from app.core.database import close_db, init_db
from app.core.dependencies import install_services
from app.core.logging_config import setup_logging
from app.routers import health, learning, qa, rules, scan


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed rules on startup, release connections on shutdown."""
    settings: Settings = app.state.settings
    logger = logging.getLogger(__name__)

    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    try:
        await init_db(seed=settings.seed_default_rules)
        logger.info("Database ready")
    except Exception as e:
        # Analysis works without the database; rules/search/sql learning do not
        logger.warning("Database initialization failed: %s", e)

    yield

    await close_db()
    logger.info("%s stopped", settings.app_name)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    setup_logging(
        level=settings.log_level,
        json_format=settings.log_json_format,
        log_file=Path(settings.log_file) if settings.log_file else None,
    )

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.enable_docs else None,
        redoc_url="/api/redoc" if settings.enable_docs else None,
        openapi_url="/api/openapi.json" if settings.enable_docs else None,
    )
    app.state.settings = settings
    install_services(app.state, settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        import uuid
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    app.include_router(health.router)
    app.include_router(scan.router)
    app.include_router(qa.router)
    app.include_router(rules.router)
    app.include_router(learning.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
