"""CLI entry point for browser-api-gateway."""

import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, ENV_FILE, load_config
from core.exceptions import ConfigurationError
from ui.console import ConsoleLogger, build_status_table, print_startup_banner
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    args = sys.argv[1:]

    if any(arg in ("--help", "-h") for arg in args):
        _print_help()
        return

    config_file = CONFIG_FILE
    if "--config-file" in args:
        index = args.index("--config-file")
        if index + 1 >= len(args):
            console.print("[red][ERROR][/red] --config-file needs a path")
            sys.exit(2)
        config_file = Path(args[index + 1])

    try:
        config = load_config(config_file=config_file)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    if "--config" in args:
        console.print(f"[bold]Config:[/bold] {config_file}")
        console.print(f"[bold]Env:[/bold]    {ENV_FILE}")
        console.print(f"[bold]Log:[/bold]    {CLI_LOG_FILE}")
        return

    if "--check" in args:
        console.print(build_status_table(config))
        return

    plain = "--plain" in args
    if plain:
        logger = ConsoleLogger()
    else:
        logger = Dashboard(config)

    try:
        app = create_app(config, logger)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    import uvicorn

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    clear_logs()
    print_startup_banner(config)
    if not plain:
        logger.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Gateway started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Gateway stopped", duration=str(duration))
        if not plain:
            logger.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Browser API Gateway[/bold cyan]

Serves the front end and forwards /api/* calls to Feishu and AIHub,
keeping credentials on the server.

[bold]Usage:[/bold]
    browser-api-gateway                      Start with live dashboard
    browser-api-gateway --plain              Start with one log line per event
    browser-api-gateway --check              Show which secrets are configured
    browser-api-gateway --config             Show config, .env and log locations
    browser-api-gateway --config-file PATH   Use another JSON config file
    browser-api-gateway --help               Show this help

[bold]Secrets:[/bold]
    Set FEISHU_APP_ID, FEISHU_APP_SECRET and GEMINI_API_KEY in the
    environment or in a .env file in the working directory.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
