"""Plain console logging and startup output."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from core.config import Config
from ui.log_utils import CLI_LOG_FILE, write_cli_log

console = Console()


class ConsoleLogger:
    """Print one line per event and mirror it to the CLI log file."""

    def __init__(self, out: Console = console, log_file: Path = CLI_LOG_FILE):
        self._console = out
        self._log_file = log_file

    def log_proxy(self, method: str, path: str, target_url: str) -> None:
        self._console.print(
            f"[cyan]\\[proxy][/cyan] {method} {escape(path)} -> {escape(target_url)}",
            highlight=False,
        )
        write_cli_log("PROXY", f"{method} {path}", log_file=self._log_file, target=target_url)

    def log_response(self, route: str, status: int, elapsed_ms: int, target_url: str) -> None:
        style = "red" if status >= 400 else "green"
        self._console.print(
            f"[{style}]\\[resp][/{style}] {status} {elapsed_ms}ms {escape(target_url)}",
            highlight=False,
        )
        write_cli_log(
            "RESPONSE",
            target_url,
            log_file=self._log_file,
            route=route,
            status=status,
            elapsed_ms=elapsed_ms,
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        self._console.print(f"[red]\\[error][/red] {route} {status}: {escape(message)}", highlight=False)
        write_cli_log("ERROR", message[:1000], log_file=self._log_file, route=route, status=status)

    def log_info(self, tag: str, message: str) -> None:
        self._console.print(f"[dim]\\[{tag}][/dim] {escape(message)}", highlight=False)
        write_cli_log("INFO", message, log_file=self._log_file, tag=tag)


def secret_status(config: Config) -> dict[str, bool]:
    """Which credentials are configured, keyed by their environment name."""
    status = {
        "FEISHU_APP_ID": bool(config.token.app_id),
        "FEISHU_APP_SECRET": bool(config.token.app_secret),
    }
    for name, value in config.secrets.items():
        status[name.upper()] = bool(value)
    return status


def build_status_table(config: Config) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column()
    table.add_column()
    for name, configured in secret_status(config).items():
        mark = "[green]configured[/green]" if configured else "[red]not configured[/red]"
        table.add_row(name, mark)
    return table


def print_startup_banner(config: Config, out: Console = console) -> None:
    """Print the listen address, routes and credential status."""
    grid = Table.grid(padding=(0, 2))
    grid.add_column()
    grid.add_column()
    grid.add_row("[bold]Address:[/bold]", f"http://localhost:{config.proxy.port}")
    for route in config.routes:
        injected = f"  (+{route.inject_header})" if route.inject_header else ""
        grid.add_row(f"[bold]{route.prefix}[/bold]", f"{route.upstream_base}{injected}")
    grid.add_row("[bold]Secrets:[/bold]", build_status_table(config))
    out.print(Panel(grid, title="[cyan]Browser API Gateway[/cyan]", border_style="cyan"))
