from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from notecards.core.container import cleanup_dependencies, init_dependencies
from notecards.core.logging import setup_logging

from .routes import document_routes, flashcard_routes, health_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_dependencies()
    yield
    # Shutdown
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Notecards Block Sync API",
        description="Flashcard parsing and block synchronization for editor documents",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(flashcard_routes.router)
    app.include_router(document_routes.router)
    app.include_router(health_routes.router)

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    uvicorn.run("notecards.api.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
