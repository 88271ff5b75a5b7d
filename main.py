"""
Slack ↔ reactor bridge — application entry point.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from api.dependencies import get_cipher, get_relay
from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router
from config.settings import config

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load the key pair now so a bad key or passphrase stops start-up
    get_cipher()
    logger.info("Bridge ready; reactor at %s", config.reactor_api_prefix)
    yield
    relay = get_relay()
    if relay.pending:
        logger.info("Waiting for %d in-flight forward(s)…", relay.pending)
        await relay.drain()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Slack Reactor Bridge",
        version="1.0.0",
        description="Relays messages and files between Slack and a reactor backend.",
        lifespan=lifespan,
    )

    register_middleware(app, max_body_bytes=config.upload_limit_bytes)
    register_exception_handlers(app)
    app.include_router(router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
