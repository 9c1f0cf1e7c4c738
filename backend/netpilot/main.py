import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api.routes import router
from .config import Settings, get_settings
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application"""
    settings = settings or get_settings()

    app = FastAPI(
        title="NetPilot QoS API",
        description="Apply, inspect and remove tc queueing disciplines on network interfaces",
        version=__version__
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": f"Invalid request body: {exc.errors()}"}
        )

    @app.get("/health")
    async def health():
        """Health check"""
        return {"status": "healthy"}

    app.include_router(router, prefix="/api", tags=["api"])

    # Frontend build, when present, is served from the root
    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.debug(f"Static directory {settings.static_dir!r} not found, serving API only")

    return app


app = create_app()


def run() -> None:
    """Entry point: run the API server under uvicorn"""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger.info(f"NetPilot API server is running on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
