"""
Console output helpers for wachturm.

Progress lines go to the terminal through rich; diagnostics go through
logging.
"""

from rich.console import Console
from rich.panel import Panel

VERSION = "0.1.0"

console = Console()

_STATUS_STYLES = {
    "info": ("cyan", "•"),
    "success": ("green", "✓"),
    "warning": ("yellow", "!"),
    "error": ("red", "✗"),
}


def wt_print(message: str, status: str = "info") -> None:
    """Print a status line prefixed with an icon for the given status."""
    style, icon = _STATUS_STYLES.get(status, _STATUS_STYLES["info"])
    console.print(f"[{style}]{icon}[/{style}] {message}")


def wt_header(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(Panel(f"[bold]{title}[/bold]", border_style="blue", expand=False))
