"""FastAPI application factory and entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from kerzenwelt import __version__
from kerzenwelt.config import config
from kerzenwelt.database import close_db, init_db
from kerzenwelt.exceptions import create_exception_handlers

log_level = logging.DEBUG if config.is_development else getattr(logging, config.app_log_level.upper())
logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,  # Override any existing configuration
)
logger = logging.getLogger(__name__)
logger.info(f"Logging configured at level: {logging.getLevelName(log_level)}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(f"Starting {config.app_name} in {config.app_env} mode")
        if config.database_auto_create:
            await init_db()
        yield
        logger.info(f"Shutting down {config.app_name}")
        await close_db()

    app = FastAPI(
        title=config.app_name,
        description="Settings API for the Kerzenwelt candle shop",
        version=__version__,
        docs_url="/api/docs" if config.app_debug else None,
        redoc_url="/api/redoc" if config.app_debug else None,
        openapi_url="/api/openapi.json" if config.app_debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if config.is_development else [config.app_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    exception_handlers = create_exception_handlers()
    for exc_class, handler in exception_handlers.items():
        app.add_exception_handler(exc_class, handler)

    register_routers(app)

    return app


def register_routers(app: FastAPI):
    """Register API routers."""
    from kerzenwelt.api import api_router

    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {"status": "healthy", "app": config.app_name, "env": config.app_env}


# Create the app instance
app = create_app()


def main():
    """Entry point for running the application."""
    import uvicorn

    uvicorn.run(
        "kerzenwelt.main:app",
        host="0.0.0.0",
        port=8000,
        reload=config.is_development,
        log_level=config.app_log_level.lower(),
    )


if __name__ == "__main__":
    main()
