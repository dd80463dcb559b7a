"""Rich terminal formatting helpers."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table
from rich.text import Text

from studysync.models import (
    Achievement,
    LeaderboardEntry,
    LevelProgress,
    Priority,
    Task,
    UserRecord,
)

console = Console()

_PRIORITY_STYLE: dict[Priority, str] = {
    Priority.LOW: "green",
    Priority.MEDIUM: "yellow",
    Priority.HIGH: "red",
}


def print_task_list(tasks: list[Task], title: str = "Tasks") -> None:
    """Print a list of tasks in a panel."""
    if not tasks:
        console.print(Panel("No tasks.", title=title, border_style="dim"))
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("status", width=3)
    table.add_column("id", width=5)
    table.add_column("title")
    table.add_column("subject")
    table.add_column("due")
    table.add_column("points", justify="right")

    for task in tasks:
        style = "dim" if task.completed else _PRIORITY_STYLE[task.priority]
        table.add_row(
            "[x]" if task.completed else "[ ]",
            f"#{task.id}",
            task.title,
            task.subject,
            task.due_date.isoformat() if task.due_date else "",
            f"+{task.points}",
            style=style,
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_profile(user: UserRecord, progress: LevelProgress, rank: int) -> None:
    """Print the profile dashboard."""
    lines: list[str] = [
        f"[bold]{user.full_name}[/bold]  ({user.email})",
        f"{user.grade}  {', '.join(user.subjects)}".strip(),
        "",
        f"Level {progress.level}: {progress.points}/{progress.next_level_points} points"
        f" ({progress.percent:.0f}%)",
        f"Rank: #{rank}" if rank else "Rank: -",
        "",
        f"Focus sessions: {user.focus_sessions}",
        f"Study time: {user.total_study_time:g} h",
        f"Tasks completed: {user.tasks_completed}",
        f"Streak: {user.streak} day{'s' if user.streak != 1 else ''}",
    ]
    console.print(Panel("\n".join(lines), title="Profile", border_style="green"))


def print_leaderboard(entries: list[LeaderboardEntry], current_user_id: str = "") -> None:
    """Print the global leaderboard, highlighting the current user."""
    table = Table(title="Global Leaderboard")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Level", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Streak", justify="right")
    for entry in entries:
        style = "bold cyan" if entry.user_id == current_user_id else None
        table.add_row(
            str(entry.rank),
            entry.full_name,
            str(entry.level),
            str(entry.points),
            str(entry.streak),
            style=style,
        )
    console.print(table)


def print_achievements(achievements: list[Achievement]) -> None:
    """Print unlocked and locked badges."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("icon", width=3)
    table.add_column("name")
    table.add_column("description")
    for a in achievements:
        table.add_row(a.icon, a.name, a.description, style=None if a.unlocked else "dim")
    unlocked = sum(1 for a in achievements if a.unlocked)
    console.print(
        Panel(table, title=f"Achievements {unlocked}/{len(achievements)}", border_style="magenta")
    )


def print_nudge(message: str) -> None:
    """Print an encouragement message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def create_timer_progress() -> Progress:
    """Create a Rich progress bar for the timer."""
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeRemainingColumn(),
        console=console,
    )
