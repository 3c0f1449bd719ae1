"""Rich-based logger with avsforge theming.

Deployment runs produce a lot of output: which artifact is being deployed,
where it landed, what failed and what was skipped. This logger keeps it
readable with:
- Semantic colors (cyan=info, green=success, amber=warning, red=error)
- Structured output (tables, key-value pairs)
- Deployment-specific helpers for per-artifact results and run summaries
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

if TYPE_CHECKING:
    from avsforge.deploy.report import ArtifactResult, DeploymentReport


AVSFORGE_THEME = Theme(
    {
        "info": "bold #7dcfff",
        "success": "bold #9ece6a",
        "warning": "bold #e0af68",
        "error": "bold #f7768e",
        "highlight": "bold #bb9af7",
        "muted": "dim #565f89",
        "metric": "#7aa2f7",
        "path": "italic #73daca",
        "step": "#ff9e64",
    }
)

# Style per artifact status in summaries
STATUS_STYLES: dict[str, str] = {
    "deployed": "success",
    "applied": "success",
    "failed": "error",
    "skipped": "warning",
    "cancelled": "muted",
}


class Logger:
    """Unified logging interface with rich console output."""

    def __init__(self) -> None:
        self.console = Console(theme=AVSFORGE_THEME)

    # ─────────────────────────────────────────────────────────────────────
    # Basic Logging
    # ─────────────────────────────────────────────────────────────────────

    def info(self, message: str) -> None:
        """Log an informational message (cyan ℹ)."""
        self.console.print(f"[info]ℹ[/info] {message}")

    def success(self, message: str) -> None:
        """Log a success message (green ✓)."""
        self.console.print(f"[success]✓[/success] {message}")

    def warning(self, message: str) -> None:
        """Log a warning message (amber ⚠)."""
        self.console.print(f"[warning]⚠[/warning] {message}")

    def error(self, message: str) -> None:
        """Log an error message (red ✗)."""
        self.console.print(f"[error]✗[/error] {message}")

    # ─────────────────────────────────────────────────────────────────────
    # Structured Output
    # ─────────────────────────────────────────────────────────────────────

    def header(self, title: str, subtitle: str | None = None) -> None:
        """Print a prominent section header, e.g. "Deploying" or "Preview"."""
        header_text = Text()
        header_text.append("━" * 3 + " ", style="muted")
        header_text.append(title, style="highlight")
        if subtitle:
            header_text.append(f" • {subtitle}", style="muted")
        header_text.append(" " + "━" * 40, style="muted")
        self.console.print()
        self.console.print(header_text)
        self.console.print()

    def json(self, data: object) -> None:
        """Pretty-print a JSON-serializable record (IRs, reports)."""
        self.console.print_json(data=data)

    def table(
        self,
        title: str | None = None,
        columns: list[str] | None = None,
        rows: list[list[str]] | None = None,
    ) -> Table:
        """Create and optionally populate a styled table.

        If columns and rows are provided, prints immediately. Otherwise
        returns the Table for manual population.
        """
        table = Table(
            title=title,
            title_style="highlight",
            header_style="info",
            border_style="muted",
            row_styles=["", "dim"],
        )

        if columns and rows:
            for col in columns:
                table.add_column(col)
            for row in rows:
                table.add_row(*row)
            self.console.print(table)

        return table

    def key_value(self, data: dict[str, Any], title: str | None = None) -> None:
        """Display key-value pairs in a clean format."""
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="muted")
        table.add_column("Value", style="metric")

        for key, value in data.items():
            table.add_row(f"{key}:", str(value))

        if title:
            self.console.print(f"[muted]──[/muted] [highlight]{title}[/highlight]")
        self.console.print(table)

    def step(self, current: int, total: int | None = None, message: str = "") -> None:
        """Display a step indicator for multi-phase operations."""
        if total:
            prefix = f"[step][{current}/{total}][/step]"
        else:
            prefix = f"[step][{current}][/step]"
        self.console.print(f"{prefix} {message}")

    def path(self, filepath: str, label: str = "") -> None:
        """Display a file path with optional label."""
        if label:
            self.console.print(f"  [muted]{label}:[/muted] [path]{filepath}[/path]")
        else:
            self.console.print(f"  [path]{filepath}[/path]")

    # ─────────────────────────────────────────────────────────────────────
    # Deployment-Specific Helpers
    # ─────────────────────────────────────────────────────────────────────

    def artifact_result(self, result: "ArtifactResult") -> None:
        """Log one artifact's outcome with consistent formatting."""
        style = STATUS_STYLES.get(result.status.value, "info")
        detail = result.address or result.applied_state or result.error or ""
        self.console.print(
            f"  [{style}]{result.status.value:>9}[/{style}] "
            f"[muted]{result.artifact_class.value}[/muted] "
            f"[highlight]{result.artifact_id}[/highlight] [metric]{detail}[/metric]"
        )
        for warning in result.warnings:
            self.warning(f"{result.artifact_id}: {warning}")

    def report_summary(self, report: "DeploymentReport") -> None:
        """Display a deployment report as a table plus a one-line verdict."""
        rows = [
            [
                r.artifact_id,
                r.artifact_class.value,
                r.status.value,
                r.address or r.applied_state or r.error or "",
            ]
            for r in report.results
        ]
        self.table(
            title=f"{report.network_id} / {report.environment}",
            columns=["artifact", "class", "status", "detail"],
            rows=rows,
        )
        counts = report.counts()
        summary = ", ".join(f"{k}={v}" for k, v in counts.items() if v)
        if report.ok:
            self.success(f"Deployment complete ({summary or 'nothing to deploy'})")
        else:
            self.error(f"Deployment finished with problems ({summary})")


# ─────────────────────────────────────────────────────────────────────────────
# Module-Level Singleton
# ─────────────────────────────────────────────────────────────────────────────

_logger: Logger | None = None


def get_logger() -> Logger:
    """Get or create the singleton Logger instance.

    Using a singleton ensures consistent theming and avoids creating
    multiple Console instances.
    """
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger
