"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard / ConsoleLogger)."""

    def log_proxy(self, method: str, path: str, target_url: str) -> None: ...
    def log_response(
        self,
        route: str,
        status: int,
        elapsed_ms: int,
        target_url: str,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
    def log_info(self, tag: str, message: str) -> None: ...
