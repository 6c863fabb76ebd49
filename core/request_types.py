"""Shared request data types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    route_name: str
    method: str
    target_url: str
    headers: list[tuple[str, str]]
    body: bytes | None
    secret_header_name: str | None = None

    def __repr__(self) -> str:
        # Header values may hold injected secrets
        return (
            f"PreparedRequest(route_name={self.route_name!r}, method={self.method!r}, "
            f"target_url={self.target_url!r}, body_length={len(self.body or b'')})"
        )
