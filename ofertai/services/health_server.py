# ofertai/services/health_server.py

"""Liveness endpoint for hosting-platform health checks."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from ofertai.config.settings import Settings

logger = logging.getLogger("ofertai.health")

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(body: str | None = None) -> FastAPI:
    """Build an app that answers 200 with a fixed body on every path."""
    text = Settings.HEALTH_BODY if body is None else body
    app = FastAPI(
        title="OfertAi health",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=_ALL_METHODS)
    async def health(path: str) -> PlainTextResponse:
        return PlainTextResponse(
            text, media_type="text/plain; charset=utf-8"
        )

    return app


class HealthServer:
    """Runs :func:`create_app` under uvicorn inside the bot's event loop."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        self.host = host or Settings.HEALTH_HOST
        self.port = port or Settings.PORT
        self._server = uvicorn.Server(
            uvicorn.Config(
                create_app(),
                host=self.host,
                port=self.port,
                log_config=None,
                log_level="warning",
                access_log=False,
            )
        )

    async def serve(self) -> None:
        logger.info(
            "Health server listening on %s:%d", self.host, self.port
        )
        await self._server.serve()

    def stop(self) -> None:
        self._server.should_exit = True
