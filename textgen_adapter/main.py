"""
Adapter Application Entry Point

FastAPI application main entry, including router registration and error handling.
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from textgen_adapter import __version__
from textgen_adapter.api import router
from textgen_adapter.common.errors import AdapterError
from textgen_adapter.config import get_settings
from textgen_adapter.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Initialize logging configuration
setup_logging()

settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="Canonical chat/tool-calling protocol adapter for a text-generation backend",
    version=__version__,
)


# Global Exception Handler
@app.exception_handler(AdapterError)
async def adapter_error_handler(request: Request, exc: AdapterError):
    """
    Handle adapter exceptions

    Conversion and input errors are the caller's; upstream errors carry the backend's detail.
    """
    if exc.status_code >= 500:
        logger.error("Request to %s failed: %s %s", request.url.path, exc.code, exc.details)
    else:
        logger.warning("Rejected request to %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions

    In production mode, stack traces are logged but not returned to clients.
    """
    logger.error(
        "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
        str(exc),
        request.url.path,
        traceback.format_exc(),
    )

    if get_settings().DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": str(exc),
                    "type": type(exc).__name__,
                    "code": "internal_error",
                    "traceback": traceback.format_exc().split("\n"),
                }
            },
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Internal server error",
                "type": "internal_error",
                "code": "internal_error",
            }
        },
    )


# Health Check Endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health Check

    Used for service liveness checks.
    """
    return {"status": "healthy"}


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "textgen_adapter.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
