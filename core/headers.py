"""Header construction for upstream requests and client responses."""

from collections.abc import Iterable, Mapping

# Never forwarded upstream. host/content-length are recomputed,
# origin/referer would identify the browser page, accept-encoding is
# dropped so the upstream body can be relayed without decompression.
REQUEST_DENY = frozenset(
    {
        "host",
        "origin",
        "referer",
        "connection",
        "transfer-encoding",
        "accept-encoding",
        "content-length",
        "keep-alive",
        "proxy-connection",
        "te",
        "trailer",
        "upgrade",
    }
)

RESPONSE_ALLOW = ("content-type", "content-encoding", "content-disposition")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}

PREFLIGHT_MAX_AGE = "86400"

# Statuses that never carry a body, so no content-length either
_BODYLESS_STATUSES = frozenset({204, 304})


class HeaderBuilder:
    """Build outbound headers for upstream calls and replies to the browser."""

    def build_upstream_headers(
        self,
        headers: Iterable[tuple[str, str]],
        target_host: str,
        secret_header: tuple[str, str] | None = None,
        body: bytes | None = None,
    ) -> list[tuple[str, str]]:
        """Filter client headers, set host, inject the route secret, set content-length."""
        secret_name = secret_header[0].lower() if secret_header else None
        upstream: list[tuple[str, str]] = []
        for key, value in headers:
            key_lower = key.lower()
            if key_lower in REQUEST_DENY or key_lower == secret_name:
                continue
            upstream.append((key, value))

        upstream.append(("host", target_host))
        if secret_header:
            upstream.append(secret_header)
        if body is not None:
            upstream.append(("content-length", str(len(body))))
        return upstream

    def build_client_headers(
        self,
        upstream_headers: Mapping[str, str],
        body_length: int,
        status_code: int,
    ) -> dict[str, str]:
        """CORS headers, the upstream allowlist and a recomputed content-length."""
        client = dict(CORS_HEADERS)
        for key in RESPONSE_ALLOW:
            value = upstream_headers.get(key)
            if value is not None:
                client[key] = value
        if status_code >= 200 and status_code not in _BODYLESS_STATUSES:
            client["content-length"] = str(body_length)
        return client

    def preflight_headers(self) -> dict[str, str]:
        """Headers for a CORS preflight reply."""
        return {**CORS_HEADERS, "Access-Control-Max-Age": PREFLIGHT_MAX_AGE}
