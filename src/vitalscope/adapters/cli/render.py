"""
adapters.cli.render - Rich renderables for profiles, results and history.
"""

from __future__ import annotations

from datetime import datetime

from rich import box
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vitalscope.domain.models import AnalysisResult, HistoryEntry, Profile

_GENDER_LABELS = {"male": "Male", "female": "Female", "other": "Other", "": "—"}


def profile_panel(profile: Profile) -> Panel:
    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="bold")
    t.add_column("Value")
    t.add_row("Age", profile.age or "[dim]—[/dim]")
    t.add_row("Gender", _GENDER_LABELS[profile.gender.value])
    t.add_row("Health context", profile.health_context or "[dim]—[/dim]")
    status = (
        "[green]configured[/green]" if profile.is_configured
        else "[red]incomplete, scanning is locked[/red]"
    )
    return Panel(t, title="Your Profile", subtitle=status, border_style="blue")


def unclear_panel(result: AnalysisResult) -> Panel:
    reason = result.image_quality_check.reason or "The product could not be identified."
    return Panel(
        f"[bold yellow]The image is unclear.[/bold yellow]\n{reason}\n\n"
        "Retake the photo with the label or package clearly visible.",
        title="Please try again",
        border_style="yellow",
    )


def result_panel(result: AnalysisResult) -> Panel:
    parts: list = [Text(result.summary or "(no summary)", style="bold")]

    calories = result.calorie_analysis
    if calories is not None:
        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Product", f"{calories.product_calories} kcal")
        t.add_row("Your daily need", f"{calories.user_daily_need} kcal")
        t.add_row("Share of daily need", f"{calories.percentage}%")
        if calories.note:
            t.add_row("Note", calories.note)
        parts.append(Panel(t, title="Calories", border_style="yellow"))

    if result.pros:
        parts.append(Text("Pros", style="bold green"))
        parts.extend(Text(f"  + {p}", style="green") for p in result.pros)
    if result.cons:
        parts.append(Text("Cons", style="bold red"))
        parts.extend(Text(f"  - {c}", style="red") for c in result.cons)

    if result.recommendations:
        t = Table(box=box.SIMPLE, padding=(0, 1))
        t.add_column("Recommended product", style="bold cyan")
        t.add_column("Why")
        for rec in result.recommendations:
            t.add_row(rec.name, rec.reason)
        parts.append(t)

    return Panel(Group(*parts), title="Analysis", border_style="green")


def history_table(entries: list[HistoryEntry]) -> Table:
    t = Table(box=box.SIMPLE_HEAD, padding=(0, 1))
    t.add_column("ID", style="dim")
    t.add_column("Date")
    t.add_column("kcal", justify="right")
    t.add_column("Summary")
    for entry in entries:
        calories = entry.result.calorie_analysis
        t.add_row(
            entry.id,
            format_timestamp(entry.timestamp),
            str(calories.product_calories) if calories else "—",
            _truncate(entry.result.summary, 60),
        )
    return t


def format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"
