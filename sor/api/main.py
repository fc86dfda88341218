"""FastAPI application for the smart order router.

Note: Rate limiting is not implemented at the application level; it belongs
to the reverse proxy in front of the service.
"""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sor import __version__
from sor.api.endpoints import router
from sor.logging_config import configure_logging

# Configuration from environment variables
HOST = os.environ.get("SOR_HOST", "0.0.0.0")
PORT = int(os.environ.get("SOR_PORT", "8000"))
DEBUG = os.environ.get("SOR_DEBUG", "false").lower() in ("true", "1", "yes")

# Snapshots travel with every request, so allow larger bodies (25 MB)
MAX_REQUEST_SIZE = 25 * 1024 * 1024

app = FastAPI(
    title="Smart Order Router",
    description="Multi-path swap routing over Balancer-style pools",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the router API server.

    Configuration via environment variables:
    - SOR_HOST: Host to bind to (default: 0.0.0.0)
    - SOR_PORT: Port to bind to (default: 8000)
    - SOR_DEBUG: Debug logging and reload mode (default: false)
    """
    configure_logging("DEBUG" if DEBUG else "INFO")
    uvicorn.run(
        "sor.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
