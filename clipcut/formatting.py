"""Rich-based console output for cuts and their clips"""

from pathlib import Path

from rich.console import Console
from rich.text import Text

from .projector import Region, ViewState
from .utils import format_size

console = Console()

# Marker and style per kind of line
_MARKS = {
    "error": ("✗", "bold red"),
    "done": ("✓", "green"),
    "step": ("›", "blue"),
}


def _print_line(kind: str, message: str) -> None:
    mark, style = _MARKS[kind]
    console.print(Text(f"{mark} ", style=style) + Text(message, style=style))


def print_banner(version: str) -> None:
    """Print the run banner as a rule across the terminal."""
    console.rule(Text(f"clipcut v{version}", style="bold blue"), style="blue")


def print_input(path: Path, size_bytes: int) -> None:
    _print_line("step", f"Input: {path} ({format_size(size_bytes)})")


def print_saved_clip(path: Path, size_bytes: int) -> None:
    """One row per saved clip: name left, size right-aligned."""
    row = Text("  ") + Text(path.name, style="bold") + Text(f"  {format_size(size_bytes):>10}", style="dim")
    console.print(row)


def render_view(view: ViewState) -> None:
    """Print the single visible region of a projected view."""
    if Region.ERROR in view.visible:
        _print_line("error", view.error_message or view.message)
    elif Region.DOWNLOAD in view.visible:
        _print_line("done", view.message or "Clips ready for download")
    elif Region.PROGRESS in view.visible and view.message:
        _print_line("step", f"[{view.progress:3d}%] {view.message}")


def print_summary(count: int, directory: Path) -> None:
    _print_line("done", f"Saved {count} clip(s) to {directory}")
