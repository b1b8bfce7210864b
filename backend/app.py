"""
FastAPI application for the changelog generator.

The AppContext is built once in the lifespan handler (or passed in by
tests) and stored on app.state; routes read it from there.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.context import AppContext
from backend.routes import CORRELATION_HEADER, router
from utils.config_loader import load_config
from utils.logger import setup_logger


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        context: Prebuilt context. When None, configuration is loaded from
            the environment at startup.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if context is None:
            config = load_config()
            logger = setup_logger(config.log_level)
            app.state.context = AppContext.from_config(config)
            logger.info("FastAPI app initialized")
        else:
            app.state.context = context
        try:
            yield
        finally:
            app.state.context.close()

    app = FastAPI(
        title="Changelog Generator API",
        description="Stream changelogs for GitHub repositories and collect feedback",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Enable CORS for local development; the correlation header must be
    # readable by the browser client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )

    app.include_router(router)

    return app


# Entry point for `uvicorn backend.app:app`
app = create_app()
