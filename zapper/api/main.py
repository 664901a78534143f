"""FastAPI application for the zap engine.

Bundles are composed locally and never need the network; quotes and
simulations call out to the aggregator, the RPC node and the simulation
backend. Rate limiting is left to the reverse proxy in front of the service.
"""

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from zapper import __version__
from zapper.api.endpoints import router
from zapper.config import DEBUG, HOST, PORT
from zapper.constants import CHAIN_ID

logger = structlog.get_logger()

# Zap requests are a few hundred bytes; anything near 1 MB is abuse
MAX_REQUEST_SIZE = 1024 * 1024

app = FastAPI(
    title="Zap Engine",
    description="Bundle composition and advisory quotes for single-transaction vault zaps",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject bodies declared larger than MAX_REQUEST_SIZE before reading them."""
    declared = request.headers.get("content-length")
    if declared is not None:
        if not declared.isdigit():
            return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length"})
        if int(declared) > MAX_REQUEST_SIZE:
            logger.warning("request_too_large", path=request.url.path, size=int(declared))
            return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    return {"status": "ok", "version": __version__, "chainId": CHAIN_ID}


def run() -> None:
    """Serve the API with uvicorn (ZAPPER_HOST, ZAPPER_PORT, ZAPPER_DEBUG for reload)."""
    logger.info("zap_engine_starting", host=HOST, port=PORT, version=__version__)
    uvicorn.run("zapper.api.main:app", host=HOST, port=PORT, reload=DEBUG)


if __name__ == "__main__":
    run()
