"""
adapters.cli.main - CLI adapter for VitalScope.

Mirrors src/vitalscope/adapters/rest/ but for terminal use. Uses the same
ServiceFactory, stores and ScanOrchestrator as the REST API so all
behaviour (profile gate, history bound, storage fallback) is identical.

Commands
--------
  onboard          First-time profile setup (with consent)
  profile show     Display the stored profile
  profile edit     Edit the stored profile
  scan IMAGE...    Analyze one product from one or more photos
  history list     List past scans (newest first)
  history show ID  Show one past result
  history clear    Delete all history

Usage
-----
  vitalscope onboard
  vitalscope scan label.jpg package.png
  vitalscope history list
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from vitalscope import __version__
from vitalscope.adapters.cli import render
from vitalscope.application.services.onboarding import OnboardingForm
from vitalscope.domain.exceptions import (
    ConsentRequiredError,
    NoImagesSelectedError,
    ProfileIncompleteError,
    ProfileNotConfiguredError,
)
from vitalscope.domain.models import Gender, ScanState, is_configured
from vitalscope.factory import ServiceFactory
from vitalscope.infrastructure.config import Settings

console = Console()
app = typer.Typer(
    help="VitalScope: personalized product health checks",
    add_completion=False,
    no_args_is_help=True,
)
profile_app = typer.Typer(help="View or edit your health profile.", no_args_is_help=True)
history_app = typer.Typer(help="Browse past scans.", no_args_is_help=True)
app.add_typer(profile_app, name="profile")
app.add_typer(history_app, name="history")

_INTRO = (
    "VitalScope analyzes everyday products against [bold]your[/bold] health profile.\n"
    "• Pros and cons are judged against your concerns and goals, so a profile is required.\n"
    "• Everything you enter is stored [bold]only on this device[/bold]; "
    "it is sent to the analysis service only when you scan."
)
_CONSENT = (
    "I understand that results are personalized from my profile, "
    "and that I can change the profile later."
)
_GENDER_CHOICES = [g.value for g in Gender if g is not Gender.UNSET]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    factory = ServiceFactory(Settings.from_env())
    await factory.initialize()
    return factory


def _run(coro_fn) -> None:
    """Run an async command body with a fresh factory and a clean shutdown."""
    async def _main() -> None:
        factory = await _make_factory()
        try:
            await coro_fn(factory)
        finally:
            await factory.shutdown()

    asyncio.run(_main())


def _ask(label: str, current: str, **kwargs) -> str:
    """Prompt for one field, offering the current value as the default."""
    if current:
        kwargs["default"] = current
    return Prompt.ask(label, **kwargs).strip()


async def _fill_profile_form(form: OnboardingForm) -> bool:
    """Prompt for every profile field and consent. Returns True once saved."""
    draft = form.draft
    if not form.is_editing:
        console.print(Panel(_INTRO, title="Welcome to VitalScope", border_style="cyan"))

    age = _ask("[bold]Age[/bold]", draft.age)
    gender = _ask("[bold]Gender[/bold]", draft.gender.value, choices=_GENDER_CHOICES)
    health = _ask(
        "[bold]Health condition, concerns and goals[/bold]\n"
        "[dim](e.g. 'high blood pressure, cutting salt; shellfish allergy; desk job')[/dim]",
        draft.health_context,
    )
    form.update(age=age, gender=gender or Gender.UNSET, health_context=health)

    if not form.consented:
        form.consented = Confirm.ask(f"[bold]{_CONSENT}[/bold]", default=False)

    try:
        await form.submit()
    except ProfileIncompleteError:
        console.print("[bold red]Age, gender and health context are all required.[/bold red]")
        return False
    except ConsentRequiredError:
        console.print("[bold red]Consent is required to use VitalScope.[/bold red]")
        return False

    console.print("[green]Profile saved.[/green]")
    return True


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"vitalscope v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Profile
# ---------------------------------------------------------------------------

@app.command()
def onboard() -> None:
    """First-time setup: enter your profile and agree to personalization."""
    async def _body(factory: ServiceFactory) -> None:
        form = await factory.open_profile_form()
        if not await _fill_profile_form(form):
            raise typer.Exit(code=1)

    _run(_body)


@profile_app.command("show")
def profile_show() -> None:
    """Show the stored profile."""
    async def _body(factory: ServiceFactory) -> None:
        profile = await factory.profile_store.load()
        console.print(render.profile_panel(profile))

    _run(_body)


@profile_app.command("edit")
def profile_edit() -> None:
    """Edit the stored profile."""
    async def _body(factory: ServiceFactory) -> None:
        form = await factory.open_profile_form()
        if not await _fill_profile_form(form):
            raise typer.Exit(code=1)
        console.print(render.profile_panel(form.draft))

    _run(_body)


# ---------------------------------------------------------------------------
# Commands: Scan
# ---------------------------------------------------------------------------

@app.command()
def scan(
    images: list[Path] = typer.Argument(
        ..., help="Photos of the product (label, package). Order is kept.",
    ),
) -> None:
    """Analyze a product from one or more photos."""
    async def _body(factory: ServiceFactory) -> None:
        profile = await factory.profile_store.load()
        if not is_configured(profile):
            console.print(Panel(
                "[bold]Setup required.[/bold]\n"
                "VitalScope needs your age, gender and health context before it can "
                "judge a product for you. Scanning stays locked until setup is done.",
                border_style="red",
            ))
            form = await factory.open_profile_form()
            if not await _fill_profile_form(form):
                raise typer.Exit(code=1)

        orchestrator = factory.scan_orchestrator
        with console.status("[bold cyan]Reading images…", spinner="dots"):
            accepted = await orchestrator.ingestor.add_files(images)
        skipped = len(images) - len(accepted)
        if skipped:
            console.print(f"[yellow]Skipped {skipped} file(s) that are not readable images.[/yellow]")

        while True:
            try:
                with console.status("[bold cyan]Analyzing…", spinner="dots"):
                    snapshot = await orchestrator.start_scan()
            except NoImagesSelectedError:
                console.print("[bold red]No usable images to analyze.[/bold red]")
                raise typer.Exit(code=1)
            except ProfileNotConfiguredError as e:
                console.print(f"[bold red]{e}[/bold red]")
                raise typer.Exit(code=1)

            if snapshot.state is ScanState.RESOLVED_SUCCESS:
                console.print(render.result_panel(snapshot.result))
                return
            if snapshot.state is ScanState.RESOLVED_UNCLEAR:
                console.print(render.unclear_panel(snapshot.result))
                orchestrator.retry()
                raise typer.Exit(code=2)

            console.print(Panel(
                f"[bold red]{snapshot.error_message}[/bold red]",
                title="Analysis failed",
                border_style="red",
            ))
            if not Confirm.ask("Retry with the same images?", default=True):
                raise typer.Exit(code=1)
            orchestrator.retry()

    _run(_body)


# ---------------------------------------------------------------------------
# Commands: History
# ---------------------------------------------------------------------------

@history_app.command("list")
def history_list() -> None:
    """List past scans, newest first."""
    async def _body(factory: ServiceFactory) -> None:
        entries = factory.history_store.entries
        if not entries:
            console.print("[dim]No history yet.[/dim]")
            return
        console.print(render.history_table(entries))

    _run(_body)


@history_app.command("show")
def history_show(entry_id: str = typer.Argument(..., help="ID from 'history list'.")) -> None:
    """Show one past result."""
    async def _body(factory: ServiceFactory) -> None:
        entry = factory.history_store.get(entry_id)
        if entry is None:
            console.print(f"[bold red]No history entry '{entry_id}'.[/bold red]")
            raise typer.Exit(code=1)
        snapshot = factory.scan_orchestrator.open_history_entry(entry)
        console.print(f"[dim]{render.format_timestamp(entry.timestamp)}[/dim]")
        console.print(render.result_panel(snapshot.result))

    _run(_body)


@history_app.command("clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete all history."""
    async def _body(factory: ServiceFactory) -> None:
        if not yes and not Confirm.ask("Delete all history?", default=False):
            return
        await factory.history_store.clear()
        console.print("[green]History cleared.[/green]")

    _run(_body)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output."),
) -> None:
    """VitalScope CLI"""
    level = "DEBUG" if verbose else Settings.from_env().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
