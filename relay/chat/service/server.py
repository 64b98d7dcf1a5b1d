"""Aggregate app: bridge, agent endpoint and password gate in one process."""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from relay import __version__
from relay.chat.service.agent_transport import router as agent_router
from relay.chat.service.bridge import close_upstream_client
from relay.chat.service.bridge import router as bridge_router
from relay.common.error_envelope import register_error_handlers
from relay.config import runtime_config
from relay.identity.routes_auth import router as auth_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=runtime_config.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    await close_upstream_client()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Agent Chat Relay", version=__version__, lifespan=_lifespan)
    register_error_handlers(app)
    app.include_router(bridge_router)
    app.include_router(auth_router)
    app.include_router(agent_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "runtime": runtime_config.get_agent_runtime_name()}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting relay on %s:%d", host, port)
    uvicorn.run("relay.chat.service.server:app", host=host, port=port)


if __name__ == "__main__":
    main()
