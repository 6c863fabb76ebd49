"""Shared logging utilities."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "gateway.log"


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path = CLI_LOG_FILE,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a", encoding="utf-8") as f:
        f.write(line)


def clear_logs(log_file: Path = CLI_LOG_FILE) -> None:
    """Truncate the CLI log file from a previous run."""
    if log_file.exists():
        log_file.write_text("")


def body_preview(body: bytes, limit: int) -> str:
    """Decode the first ``limit`` bytes of a body for logging."""
    return body[:limit].decode("utf-8", errors="replace")


def redact_headers(
    headers: list[tuple[str, str]],
    secret_names: set[str] | None = None,
) -> list[tuple[str, str]]:
    """Mask credential-looking headers and any explicitly named secret headers."""
    names = {n.lower() for n in secret_names or set()}
    redacted = []
    for key, value in headers:
        key_lower = key.lower()
        if key_lower in names:
            redacted.append((key, "***"))
        elif "key" in key_lower or "authorization" in key_lower:
            redacted.append((key, mask(value)))
        else:
            redacted.append((key, value))
    return redacted


def mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]
