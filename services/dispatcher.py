"""Request dispatch - preflight, token minting, proxy routes, static files."""

from fastapi import Request, Response

from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import RouteTable
from services.static_files import StaticFileServer
from services.token_minter import TokenMinter
from services.upstream import UpstreamClient, raw_path, raw_query


class Dispatcher:
    """Pick the component that answers an inbound request.

    Order matters: preflight first, then the internal token path, then the
    route table, then static files.
    """

    def __init__(
        self,
        routes: RouteTable,
        upstream: UpstreamClient,
        token_minter: TokenMinter,
        static_files: StaticFileServer,
        header_builder: HeaderBuilder,
        logger: RequestLogger,
        token_path: str,
    ) -> None:
        self._routes = routes
        self._upstream = upstream
        self._token_minter = token_minter
        self._static = static_files
        self._headers = header_builder
        self._logger = logger
        self._token_path = token_path

    async def dispatch(self, request: Request) -> Response:
        method = request.method.upper()
        path = raw_path(request)

        if method == "OPTIONS":
            return Response(status_code=204, headers=self._headers.preflight_headers())

        if path == self._token_path and method == "POST":
            self._logger.log_info("internal", "tenant-token request")
            return await self._token_minter.mint()

        match = self._routes.resolve(path)
        if match is not None:
            self._logger.log_proxy(method, path, match.target_url(raw_query(request)))
            return await self._upstream.forward(request, match)

        return self._static.serve(request.url.path)
