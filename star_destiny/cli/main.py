"""CLI entry point for Star Destiny.

Provides the main `star-destiny` command with global options and subcommands.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer

import star_destiny.logging
from star_destiny import __version__
from star_destiny.cli import output
from star_destiny.cli.profile import load_config, resolve_enrichment
from star_destiny.config import Settings, get_settings, warn_if_sinks_unconfigured
from star_destiny.exceptions import InvalidDateError
from star_destiny.models import Enrichment
from star_destiny.service import DestinyService, Revelation, build_service

app = typer.Typer(
    name="star-destiny",
    help="Star Destiny - find your lunar mansion (二十八宿) from your birth date.",
    no_args_is_help=True,
)


class State:
    """Global state container for CLI context."""

    settings: Settings
    config: dict
    verbose: bool = False
    quiet: bool = False

    def service(self) -> DestinyService:
        return build_service(self.settings)


state = State()


def version_callback(value: bool) -> None:
    """Handle --version flag."""
    if value:
        print(f"star-destiny {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    state_file: Annotated[
        Path | None,
        typer.Option(
            "--state-file",
            envvar="STAR_DESTINY_STATE_PATH",
            help="Local state file (default: ~/.star_destiny/state.json).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose logging to stderr.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Star Destiny - find your lunar mansion from your birth date.

    Your result is remembered on this device; running `reveal` again shows
    the saved mansion until you `forget` it or pass --retest.

    Configuration can be provided via:

        - CLI options (--state-file, --name, ...)
        - Environment variables (STAR_DESTINY_*)
        - Config file (~/.star_destiny/config.yaml)

    Examples:

        # Reveal your mansion
        star-destiny reveal 1990-02-28

        # List all 28 mansions
        star-destiny catalog
    """
    star_destiny.logging.configure(
        "cli",
        stream=sys.stderr,
        default_level="DEBUG" if verbose else "WARNING",
        default_format="console",
        cache_loggers=False,
    )

    settings = get_settings()
    if state_file is not None:
        settings = settings.model_copy(update={"state_path": state_file})

    state.settings = settings
    state.config = load_config()
    state.verbose = verbose
    state.quiet = quiet


@app.command()
def reveal(
    birth_date: Annotated[
        str,
        typer.Argument(help="Birth date as YYYY-MM-DD."),
    ],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Your name, sent with the submission."),
    ] = None,
    units: Annotated[
        list[str] | None,
        typer.Option("--unit", "-u", help="Organization unit (repeatable)."),
    ] = None,
    role: Annotated[
        str | None,
        typer.Option("--role", help="Your role or position."),
    ] = None,
    retest: Annotated[
        bool,
        typer.Option("--retest", help="Discard the saved result and resolve again."),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Reveal the lunar mansion for a birth date."""
    service = state.service()

    if not retest:
        saved = service.restore()
        if saved is not None:
            if not state.quiet and not as_json:
                output.error_console.print(
                    "[dim]Showing your saved result. Use --retest to start over.[/dim]"
                )
            output.output_revelation(saved, as_json=as_json, restored=True)
            return

    enrichment = resolve_enrichment(state.config, name=name, units=units, role=role)
    warn_if_sinks_unconfigured(state.settings)

    try:
        revelation = asyncio.run(_reveal_and_deliver(service, birth_date, enrichment))
    except InvalidDateError as e:
        output.output_error(str(e))
        raise typer.Exit(code=1) from None

    output.output_revelation(revelation, as_json=as_json)


async def _reveal_and_deliver(
    service: DestinyService, birth_date: str, enrichment: Enrichment | None
) -> Revelation:
    revelation = service.reveal(birth_date, enrichment=enrichment)
    # The process is about to exit; let started deliveries finish
    await service.pipeline.drain()
    return revelation


@app.command()
def show(
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show the saved result for this device."""
    saved = state.service().restore()
    if saved is None:
        if as_json:
            output.console.print_json(data=None)
        else:
            output.console.print("No saved result. Run 'star-destiny reveal YYYY-MM-DD'.")
        return
    output.output_revelation(saved, as_json=as_json, restored=True)


@app.command()
def forget() -> None:
    """Forget the saved result so the next reveal starts over."""
    state.service().forget()
    if not state.quiet:
        output.console.print("Saved result cleared.")


@app.command()
def catalog(
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List the 28 mansions and their birth-date ranges."""
    output.output_catalog(state.service().catalog, as_json=as_json)


@app.command()
def device(
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show this device's identity and unique-submission status."""
    identity = state.service().identity
    output.output_device(
        identity.get_device_id(),
        identity.dedup_key,
        identity.has_unique_submission(),
        as_json=as_json,
    )


def cli() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    cli()
