"""Centralized Rich Console management.

Provides a singleton Rich Console instance shared by the REPL and the
command handlers, plus the renderables used for status and playlist views.
"""

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from playdeck.domain.playback.orchestrator import PlayerStatus

_console: Console | None = None

STATE_STYLES = {
    "playing": "bold green",
    "paused": "yellow",
    "loading": "cyan",
    "stopped": "red",
    "ended": "magenta",
    "idle": "dim",
}


def get_console() -> Console:
    """Get or create the global Rich Console instance.

    Returns:
        Console: The global Rich Console instance
    """
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling."""
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def format_time(seconds: float) -> str:
    """Format time in seconds to MM:SS format."""
    if seconds < 0:
        return "00:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def progress_bar(position: float, duration: float, width: int = 20) -> str:
    if duration <= 0:
        return "░" * width
    filled = min(int(position / duration * width), width)
    return "▓" * filled + "░" * (width - filled)


def render_status(status: "PlayerStatus") -> Table:
    """Two-column table describing the player status."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="bold")
    table.add_column()

    state = status.state.value
    table.add_row("♪ Player", f"[{STATE_STYLES.get(state, '')}]{state.capitalize()}[/]")

    if status.current_track is None:
        table.add_row("♫ Track", "None")
    else:
        table.add_row(
            "♫ Track",
            f"{status.current_track} ({status.current_index + 1}/{status.total_tracks})",
        )
        if status.duration > 0:
            table.add_row(
                "⏱  Progress",
                f"[{progress_bar(status.current_time, status.duration)}] "
                f"{format_time(status.current_time)} / {format_time(status.duration)}",
            )

    table.add_row("🔊 Volume", f"{status.volume:.0%}")
    table.add_row(
        "🔁 Modes",
        f"loop {'on' if status.loop else 'off'}, shuffle {'on' if status.shuffle else 'off'}",
    )
    return table


def render_playlist(
    names: list[str], current_index: Optional[int], durations: Optional[list[int]] = None
) -> Table:
    """Numbered track list with the current track highlighted."""
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Track")
    table.add_column("Length", justify="right", style="dim")

    for i, name in enumerate(names):
        length = ""
        if durations and durations[i]:
            length = format_time(durations[i])
        marker = "▶ " if i == current_index else "  "
        style = "bold green" if i == current_index else None
        table.add_row(str(i + 1), f"{marker}{name}", length, style=style)

    return table
