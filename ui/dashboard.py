"""Real-time CLI dashboard for gateway monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import redact_url, write_cli_log, write_forward_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, target: str, backend: str, status: int, timestamp: datetime):
        self.method = method
        self.target = target[:60] + "..." if len(target) > 60 else target
        self.backend = backend
        self.status = status
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing forwarded and rejected requests."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._forwards: list[ForwardInfo] = []
        self._max_forwards = 8
        self._request_count = {"forwarded": 0, "rejected": 0, "failed": 0}
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

    def log_forward(
        self,
        method: str,
        target: str,
        backend: str,
        status: int,
        *,
        path: str,
    ) -> None:
        """Log a request forwarded to its origin."""
        with self._lock:
            self._request_count["forwarded"] += 1
            info = ForwardInfo(method, target, backend, status, datetime.now())
            self._forwards.insert(0, info)
            self._forwards = self._forwards[: self._max_forwards]

            if self.config.proxy.debug:
                write_forward_log(method, target, backend, status, path=path)
            write_cli_log("FORWARD", f"{method} {target}", backend=backend, status=status)

            self._refresh()

    def log_rejection(self, kind: str, status: int, message: str) -> None:
        """Log a request rejected before anything was sent."""
        with self._lock:
            self._request_count["rejected"] += 1
            self._push_error(f"{kind} {status}: {message}")
            self._refresh()
            write_cli_log("REJECT", message[:200], kind=kind, status=status)

    def log_error(self, target: str, status: int, message: str) -> None:
        """Log a transport failure."""
        with self._lock:
            self._request_count["failed"] += 1
            self._push_error(f"{redact_url(target)} {status}: {message}")
            self._refresh()
            write_cli_log("ERROR", message[:200], target=target, status=status)

    def _push_error(self, line: str) -> None:
        truncated = line[:70] + "..." if len(line) > 70 else line
        self._errors.insert(0, truncated)
        self._errors = self._errors[:3]

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

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_forwards_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Dynserv Gateway", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._request_count['forwarded']}", style="green")
        stats.append("  |  ")
        stats.append(f"Rejected: {self._request_count['rejected']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Failed: {self._request_count['failed']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_forwards_panel(self) -> Panel:
        """Build recent forwards panel."""
        if self._forwards:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("Target", ratio=3)
            table.add_column("Backend", ratio=2, style="dim")

            for fw in self._forwards:
                status_style = "green" if fw.status < 400 else "yellow" if fw.status < 500 else "red"
                table.add_row(
                    fw.timestamp.strftime("%H:%M:%S"),
                    fw.method,
                    Text(str(fw.status), style=status_style),
                    fw.target,
                    fw.backend,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[green]Recent Forwards[/green]", border_style="green")

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
                f"Try http://localhost:{self.config.proxy.port}/?key=<secret>&url=https://example.com/",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
