"""CLI entry point for dynserv-gateway."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--check":
            print_config_status(config)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    # A shared secret is required for all server modes
    if not config.auth.shared_secret:
        console.print("[red][ERROR][/red] Shared secret not configured!")
        console.print(f"[dim]Edit {CONFIG_FILE} and set auth.shared_secret[/dim]")
        sys.exit(1)

    if config.auth.shared_secret == "testing":
        console.print("[yellow]Warning:[/yellow] Using the development key 'testing'")

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Gateway started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Gateway stopped", duration=str(duration))
        dashboard.stop()


def print_config_status(config: Config) -> bool:
    """Print whether the gateway is ready to serve."""
    backend = config.backend
    ready = bool(config.auth.shared_secret)
    if ready:
        console.print("[green]Shared secret configured[/green]")
    else:
        console.print("[red]Shared secret missing[/red]")
        console.print(f"\n[dim]Set auth.shared_secret in[/dim] {CONFIG_FILE}")
    console.print(f"[bold]Listen:[/bold] {config.proxy.host}:{config.proxy.port}")
    console.print(f"[bold]Default port:[/bold] {backend.default_port}")
    console.print(
        f"[bold]Timeouts:[/bold] connect {backend.connect_timeout}s, "
        f"first byte {backend.first_byte_timeout}s, between bytes {backend.between_bytes_timeout}s"
    )
    console.print(f"[bold]TLS:[/bold] {backend.tls_min_version} - {backend.tls_max_version}")
    return ready


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Dynserv Gateway[/bold cyan]

Forwards ?url=https://... requests to public https origins.

[bold]Usage:[/bold]
    dynserv-gateway              Start with live dashboard
    dynserv-gateway --check      Check configuration status
    dynserv-gateway --config     Show config and log locations
    dynserv-gateway --help       Show this help

[bold]Requests:[/bold]
    GET /?key=<shared secret>&url=https%3A%2F%2Fexample.com%2Fpath
    Method, headers and (for POST/PUT/PATCH) body are forwarded.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
