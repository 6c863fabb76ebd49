"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from api.handlers import handle_request
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import RouteTable
from services.dispatcher import Dispatcher
from services.static_files import StaticFileServer
from services.token_minter import TokenMinter
from services.upstream import UpstreamClient

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    # Built eagerly so a bad route table fails before the server binds
    routes = RouteTable.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        client = httpx.AsyncClient(
            timeout=config.limits.upstream_timeout,
            limits=limits,
            headers={"Accept-Encoding": "identity"},
            transport=transport,
        )
        header_builder = HeaderBuilder()
        upstream = UpstreamClient(
            client,
            header_builder,
            logger,
            config.limits,
            debug=config.proxy.debug,
        )
        app.state.dispatcher = Dispatcher(
            routes=routes,
            upstream=upstream,
            token_minter=TokenMinter(config.token, upstream, logger),
            static_files=StaticFileServer(config.proxy.static_root),
            header_builder=header_builder,
            logger=logger,
            token_path=config.token.path,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="Browser API Gateway",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_api_route("/{path:path}", handle_request, methods=ALL_METHODS, include_in_schema=False)

    return app
