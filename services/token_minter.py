"""Server-side tenant access token minting."""

import json
import time

import httpx
from fastapi import Response
from fastapi.responses import JSONResponse

from core.config import TokenSettings
from core.exceptions import UpstreamError
from core.protocols import RequestLogger
from core.request_types import PreparedRequest
from services.upstream import UpstreamClient
from ui.log_utils import body_preview

ROUTE_NAME = "tenant-token"
MISSING_CREDENTIALS_MSG = "FEISHU_APP_ID / FEISHU_APP_SECRET not configured on the server"
ERROR_BODY_PREVIEW = 500

_REPLY_HEADERS = {"Access-Control-Allow-Origin": "*"}


class TokenMinter:
    """Exchange the stored app credentials for a tenant access token.

    The credentials are only ever sent upstream; the browser receives the
    upstream's token response and nothing else.
    """

    def __init__(
        self,
        settings: TokenSettings,
        upstream: UpstreamClient,
        logger: RequestLogger,
    ) -> None:
        self._settings = settings
        self._upstream = upstream
        self._logger = logger

    @property
    def configured(self) -> bool:
        return bool(self._settings.app_id and self._settings.app_secret)

    async def mint(self) -> Response:
        """Mint a token and relay the upstream reply."""
        if not self.configured:
            self._logger.log_error(ROUTE_NAME, 500, MISSING_CREDENTIALS_MSG)
            return JSONResponse(
                {"code": -1, "msg": MISSING_CREDENTIALS_MSG},
                status_code=500,
                headers=_REPLY_HEADERS,
            )

        prepared = self._prepare()
        start = time.monotonic()
        try:
            response, content = await self._upstream.fetch(prepared)
        except UpstreamError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            self._logger.log_error(ROUTE_NAME, 502, f"{elapsed_ms}ms {e}")
            return JSONResponse(
                {"code": -1, "msg": f"Proxy error: {e}"},
                status_code=502,
                headers=_REPLY_HEADERS,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        self._logger.log_response(ROUTE_NAME, response.status_code, elapsed_ms, self._settings.url)
        if response.status_code >= 400:
            self._logger.log_error(
                ROUTE_NAME,
                response.status_code,
                body_preview(content, ERROR_BODY_PREVIEW),
            )

        headers = dict(_REPLY_HEADERS)
        # The body is relayed undecoded, so its encoding must travel with it
        if "content-encoding" in response.headers:
            headers["Content-Encoding"] = response.headers["content-encoding"]
        return Response(
            content=content,
            status_code=response.status_code,
            media_type="application/json",
            headers=headers,
        )

    def _prepare(self) -> PreparedRequest:
        body = json.dumps(
            {"app_id": self._settings.app_id, "app_secret": self._settings.app_secret}
        ).encode("utf-8")
        headers = [
            ("host", httpx.URL(self._settings.url).netloc.decode("ascii")),
            ("content-type", "application/json; charset=utf-8"),
            ("content-length", str(len(body))),
        ]
        return PreparedRequest(
            route_name=ROUTE_NAME,
            method="POST",
            target_url=self._settings.url,
            headers=headers,
            body=body,
        )
