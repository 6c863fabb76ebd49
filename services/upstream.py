"""HTTP forwarding to upstream services with full-buffer relaying."""

import asyncio
import contextlib
import time
from collections.abc import Awaitable

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from core.config import LimitsSettings
from core.exceptions import (
    RequestTooLarge,
    UpstreamCancelled,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.headers import CORS_HEADERS, HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import PreparedRequest
from core.router import RouteMatch
from ui.log_utils import body_preview, redact_headers

BODYLESS_METHODS = frozenset({"GET", "HEAD"})
ERROR_BODY_PREVIEW = 1000
DISCONNECT_POLL_INTERVAL = 0.5

# Not a real HTTP status; recorded when the browser went away mid-relay
CLIENT_CLOSED_REQUEST = 499


async def read_body(request: Request, max_size: int) -> bytes:
    """Drain the inbound body, refusing anything over ``max_size`` bytes."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_size:
            raise RequestTooLarge(f"Request body exceeds {max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def raw_path(request: Request) -> str:
    """The path exactly as the client sent it, percent-escapes intact."""
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.split(b"?", 1)[0].decode("latin-1")


def raw_query(request: Request) -> str:
    """The query string exactly as the client sent it."""
    return request.scope.get("query_string", b"").decode("latin-1")


class UpstreamClient:
    """Forward requests to upstream services, buffering both directions."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder,
        logger: RequestLogger,
        limits: LimitsSettings,
        *,
        debug: bool = False,
    ) -> None:
        self._client = client
        self._headers = header_builder
        self._logger = logger
        self._limits = limits
        self._debug = debug

    async def forward(self, request: Request, match: RouteMatch) -> Response:
        """Relay one inbound request to the matched route and return the reply."""
        try:
            body = await read_body(request, self._limits.max_body_size)
        except RequestTooLarge as e:
            self._logger.log_error(match.route.name, 413, str(e))
            return JSONResponse(
                {"error": "Request body too large"},
                status_code=413,
                headers=CORS_HEADERS,
            )
        except ClientDisconnect:
            self._logger.log_error(match.route.name, CLIENT_CLOSED_REQUEST, "Client disconnected during upload")
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        prepared = self.prepare(
            request.method,
            match,
            request.headers.items(),
            body,
            raw_query(request),
        )
        return await self.relay(prepared, request)

    def prepare(
        self,
        method: str,
        match: RouteMatch,
        headers: list[tuple[str, str]],
        body: bytes,
        query: str = "",
    ) -> PreparedRequest:
        """Compute the target URL and outbound headers for a matched route."""
        target_url = match.target_url(query)
        target_host = httpx.URL(target_url).netloc.decode("ascii")
        upstream_body = None if method.upper() in BODYLESS_METHODS else body
        secret_header = match.route.secret_header
        upstream_headers = self._headers.build_upstream_headers(
            headers,
            target_host,
            secret_header=secret_header,
            body=upstream_body,
        )
        return PreparedRequest(
            route_name=match.route.name,
            method=method,
            target_url=target_url,
            headers=upstream_headers,
            body=upstream_body,
            secret_header_name=secret_header[0] if secret_header else None,
        )

    async def relay(self, prepared: PreparedRequest, request: Request | None = None) -> Response:
        """Send a prepared request and relay the buffered upstream reply."""
        if self._debug:
            secret_names = {prepared.secret_header_name} if prepared.secret_header_name else None
            headers = redact_headers(prepared.headers, secret_names)
            self._logger.log_info("upstream-headers", f"{prepared.method} {prepared.target_url} {headers}")

        start = time.monotonic()
        try:
            response, content = await self.fetch(prepared, request)
        except UpstreamCancelled as e:
            self._logger.log_error(
                prepared.route_name,
                CLIENT_CLOSED_REQUEST,
                f"{e} -> {prepared.target_url}",
            )
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except UpstreamError as e:
            elapsed_ms = _elapsed_ms(start)
            self._logger.log_error(
                prepared.route_name,
                502,
                f"{elapsed_ms}ms {e} -> {prepared.target_url}",
            )
            return proxy_error_response(e)

        elapsed_ms = _elapsed_ms(start)
        self._logger.log_response(prepared.route_name, response.status_code, elapsed_ms, prepared.target_url)
        if response.status_code >= 400:
            self._logger.log_error(
                prepared.route_name,
                response.status_code,
                body_preview(content, ERROR_BODY_PREVIEW),
            )

        return Response(
            content=content,
            status_code=response.status_code,
            headers=self._headers.build_client_headers(
                response.headers,
                len(content),
                response.status_code,
            ),
        )

    async def fetch(
        self,
        prepared: PreparedRequest,
        request: Request | None = None,
    ) -> tuple[httpx.Response, bytes]:
        """Perform one upstream exchange and return the response with its raw body.

        When ``request`` is given, the exchange is cancelled if that client
        disconnects first.
        """
        exchange = self._exchange(prepared)
        if request is None:
            return await exchange
        return await self._cancel_on_disconnect(exchange, request, prepared.target_url)

    async def _exchange(self, prepared: PreparedRequest) -> tuple[httpx.Response, bytes]:
        deadline = self._limits.upstream_timeout
        req = self._client.build_request(
            prepared.method,
            prepared.target_url,
            headers=prepared.headers,
            content=prepared.body,
            timeout=deadline,
        )
        # httpx limits each phase separately; this bounds the whole exchange
        try:
            async with asyncio.timeout(deadline):
                response = await self._client.send(req, stream=True)
                try:
                    content = await _read_raw(response)
                finally:
                    await response.aclose()
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(_describe(e), prepared.target_url) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(_describe(e), prepared.target_url) from e
        except TimeoutError as e:
            raise UpstreamTimeoutError(
                f"Upstream did not complete within {deadline}s",
                prepared.target_url,
            ) from e
        return response, content

    async def _cancel_on_disconnect(
        self,
        exchange: Awaitable[tuple[httpx.Response, bytes]],
        request: Request,
        target_url: str,
    ) -> tuple[httpx.Response, bytes]:
        upstream = asyncio.ensure_future(exchange)
        watcher = asyncio.ensure_future(_wait_for_disconnect(request))
        try:
            await asyncio.wait({upstream, watcher}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            upstream.cancel()
            raise
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

        if upstream.done():
            return upstream.result()

        upstream.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await upstream
        raise UpstreamCancelled("Client disconnected", target_url)


def proxy_error_response(error: UpstreamError) -> JSONResponse:
    """502 envelope for a failed upstream call."""
    return JSONResponse(
        {"error": f"Proxy error: {error}"},
        status_code=502,
        headers=CORS_HEADERS,
    )


async def _read_raw(response: httpx.Response) -> bytes:
    """Undecoded body bytes, so content-encoding can be relayed as-is."""
    if response.is_stream_consumed:
        # Responses built in memory (e.g. by a mock transport) are pre-read
        return response.content
    return b"".join([chunk async for chunk in response.aiter_raw()])


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)


def _describe(error: Exception) -> str:
    return str(error) or error.__class__.__name__


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
