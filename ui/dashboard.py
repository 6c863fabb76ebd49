"""Real-time CLI dashboard for gateway monitoring."""

from collections import Counter
from datetime import datetime
from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.console import build_status_table
from ui.log_utils import CLI_LOG_FILE, write_cli_log

console = Console()


class RequestInfo:
    """Info about a single relayed request."""

    def __init__(self, route: str, status: int, elapsed_ms: int, target_url: str, timestamp: datetime):
        self.route = route
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.target_url = target_url[:80] + "..." if len(target_url) > 80 else target_url
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing per-route counters, recent requests and errors."""

    def __init__(self, config: Config, log_file: Path = CLI_LOG_FILE):
        self.config = config
        self._log_file = log_file
        self._lock = Lock()
        self._requests: list[RequestInfo] = []
        self._max_requests = 10
        self._request_count: Counter[str] = Counter()
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_proxy(self, method: str, path: str, target_url: str) -> None:
        write_cli_log("PROXY", f"{method} {path}", log_file=self._log_file, target=target_url)

    def log_response(self, route: str, status: int, elapsed_ms: int, target_url: str) -> None:
        """Record a completed upstream exchange."""
        with self._lock:
            self._request_count[route] += 1
            info = RequestInfo(route, status, elapsed_ms, target_url, datetime.now())
            self._requests.insert(0, info)
            self._requests = self._requests[: self._max_requests]
            self._refresh()
            write_cli_log(
                "RESPONSE",
                target_url,
                log_file=self._log_file,
                route=route,
                status=status,
                elapsed_ms=elapsed_ms,
            )

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            flat = message.replace("\n", " ")
            truncated = flat[:60] + "..." if len(flat) > 60 else flat
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:1000], log_file=self._log_file, route=route, status=status)

    def log_info(self, tag: str, message: str) -> None:
        write_cli_log("INFO", message, log_file=self._log_file, tag=tag)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["body"].split_row(
            Layout(name="secrets", ratio=1),
            Layout(name="requests", ratio=3),
        )

        layout["header"].update(self._build_header())
        layout["secrets"].update(
            Panel(build_status_table(self.config), title="[blue]Secrets[/blue]", border_style="blue")
        )
        layout["requests"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with per-route counters."""
        stats = Text()
        stats.append("Browser API Gateway", style="bold cyan")
        for route, count in sorted(self._request_count.items()):
            stats.append("  |  ")
            stats.append(f"{route}: {count}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._requests:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Route", width=14)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")
            table.add_column("Target", ratio=1)

            for req in self._requests:
                style = "red" if req.status >= 400 else "green"
                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.route,
                    f"[{style}]{req.status}[/{style}]",
                    str(req.elapsed_ms),
                    escape(req.target_url),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[magenta]Recent requests[/magenta]", border_style="magenta")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Open http://localhost:{self.config.proxy.port} in the browser",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
