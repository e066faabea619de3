"""
CLI entry point for flashdeck.
"""

# Standard library imports
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.table import Table

# Local application imports
from flashdeck.cli._draft_logic import DeckFileError, load_draft_from_yaml
from flashdeck.config import settings
from flashdeck.db.client import DuckDBPersistenceClient
from flashdeck.exceptions import (
    DatabaseError,
    DeckNotFoundError,
    DraftValidationError,
    PartialAggregateFailure,
    UnauthenticatedError,
)
from flashdeck.identity import IdentitySession
from flashdeck.loaders import PageNotFoundError, load_deck_page
from flashdeck.models import Card, Deck
from flashdeck.repository import DeckRepository


console = Console()

app = typer.Typer(
    name="flashdeck",
    help="Flashdeck: term/definition decks stored in DuckDB.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# Common typer options reused across commands
_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    "Falls back to FLASHDECK_DB_PATH.",
)

_user_option = typer.Option(  # noqa: B008
    None,
    "--user",
    "-u",
    help="Identity to act as. Falls back to FLASHDECK_USER_ID.",
)


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(  # noqa: B008
        None, "--log-level", help="Logging level (default from settings)."
    ),
):
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    return db if db is not None else settings.db_path


def _open_client(
    db: Optional[Path], user: Optional[str] = None, read_only: bool = False
) -> DuckDBPersistenceClient:
    return DuckDBPersistenceClient(
        db_path=_resolve_db_path(db),
        identity=IdentitySession(user or settings.user_id),
        read_only=read_only,
    )


def _require_database(db: Optional[Path]) -> None:
    """Exit unless the database file exists; only `init` and `create` make one."""
    db_path = _resolve_db_path(db)
    if str(db_path) != ":memory:" and not Path(db_path).exists():
        console.print(
            f"[bold red]Error: No database at {db_path}. "
            "Run 'flashdeck init' first.[/bold red]"
        )
        raise typer.Exit(code=1)


def _describe_error(error: Exception) -> str:
    """Turn a repository error into a one-line message for the console."""
    if isinstance(error, UnauthenticatedError):
        return "You must be signed in (pass --user or set FLASHDECK_USER_ID)."
    if isinstance(error, DeckNotFoundError):
        return f"Deck {error.deck_id!r} was not found."
    if isinstance(error, DraftValidationError):
        return str(error)
    if isinstance(error, PartialAggregateFailure):
        return (
            f"{error} Completed steps: {', '.join(error.completed_steps)}. "
            f"Deck {error.deck_id} needs manual cleanup."
        )
    return f"A database error occurred: {error}"


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error: {_describe_error(error)}[/bold red]")
    raise typer.Exit(code=1)


def _display_deck(deck: Deck, cards: List[Card]) -> None:
    visibility = "public" if deck.is_public else "private"
    console.print(f"[bold cyan]{deck.name}[/bold cyan] [dim]({visibility})[/dim]")
    if deck.description:
        console.print(deck.description)
    console.print(
        f"[dim]id {deck.id}, owner {deck.user_id}, "
        f"created {deck.created_at:%Y-%m-%d %H:%M}[/dim]"
    )

    if not cards:
        console.print("[yellow]This deck has no cards.[/yellow]")
        return
    table = Table(title=f"{len(cards)} card(s)")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Term", style="cyan")
    table.add_column("Definition", style="magenta")
    for card in cards:
        table.add_row(str(card.position), card.term, card.definition)
    console.print(table)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    db: Optional[Path] = _db_option,
):
    """Create the deck tables if they do not exist yet."""
    db_path = _resolve_db_path(db)
    try:
        with _open_client(db) as client:
            client.initialize_schema()
    except DatabaseError as e:
        console.print(f"[bold red]A database error occurred: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]Database ready at {db_path}[/bold green]")


@app.command()
def create(
    deck_file: Path = typer.Argument(  # noqa: B008
        ...,
        help="YAML file with name, description, public and cards.",
        exists=True,
        dir_okay=False,
    ),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Create a deck from a YAML definition file."""
    try:
        draft = load_draft_from_yaml(deck_file)
    except DeckFileError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    with _open_client(db, user) as client:
        result = asyncio.run(DeckRepository(client).create(draft))
    if not result.ok:
        _fail(result.error)
    console.print(
        f"[bold green]Created deck '{draft.name}' "
        f"with {len(draft.filled_cards())} card(s).[/bold green]"
    )
    console.print(result.id)


@app.command()
def show(
    deck_id: str = typer.Argument(..., help="Identifier of the deck."),
    db: Optional[Path] = _db_option,
):
    """Show a deck and its cards in order."""
    # Opened read-only without entering the client: a missing file is not
    # created, the failed connect surfaces as a store error and so as a 404.
    client = _open_client(db, read_only=True)
    try:
        page = asyncio.run(load_deck_page(DeckRepository(client), deck_id))
    except PageNotFoundError as e:
        console.print(
            f"[bold red]{e.status_code}: deck {deck_id!r} "
            "not found.[/bold red]"
        )
        raise typer.Exit(code=1) from e
    finally:
        client.close_connection()
    _display_deck(page.deck, page.cards)


@app.command("list")
def list_decks(
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
    mine: bool = typer.Option(
        False, "--mine", help="Only list decks owned by --user."
    ),
):
    """List decks, newest first."""
    owner = (user or settings.user_id) if mine else None
    if mine and not owner:
        _fail(UnauthenticatedError("No user given for --mine."))

    _require_database(db)
    with _open_client(db, user, read_only=True) as client:
        result = asyncio.run(DeckRepository(client).list_decks(user_id=owner))
    if not result.ok:
        _fail(result.error)
    if not result.decks:
        console.print("[yellow]No decks found.[/yellow]")
        return

    table = Table(title="Decks")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Owner", style="magenta")
    table.add_column("Visibility")
    table.add_column("Created", style="yellow")
    for deck in result.decks:
        table.add_row(
            deck.id,
            deck.name,
            deck.user_id,
            "public" if deck.is_public else "private",
            f"{deck.created_at:%Y-%m-%d %H:%M}",
        )
    console.print(table)


@app.command()
def copy(
    deck_id: str = typer.Argument(..., help="Identifier of the deck to copy."),
    db: Optional[Path] = _db_option,
    user: Optional[str] = _user_option,
):
    """Copy a deck and its cards into a new deck you own."""
    _require_database(db)
    with _open_client(db, user) as client:
        result = asyncio.run(DeckRepository(client).copy(deck_id))
    if not result.ok:
        _fail(result.error)
    console.print("[bold green]Deck copied.[/bold green]")
    console.print(result.id)


@app.command()
def delete(
    deck_id: str = typer.Argument(..., help="Identifier of the deck to delete."),
    db: Optional[Path] = _db_option,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Bypass confirmation prompt."
    ),
):
    """Delete a deck and all of its cards."""
    _require_database(db)
    if not yes:
        confirmed = typer.confirm(
            f"Are you sure you want to delete deck {deck_id} and its cards?"
        )
        if not confirmed:
            console.print("Delete operation cancelled.")
            raise typer.Exit()

    with _open_client(db) as client:
        error = asyncio.run(DeckRepository(client).delete(deck_id))
    if error is not None:
        _fail(error)
    console.print(f"[bold green]Deck {deck_id} deleted.[/bold green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the CLI application, exiting with status 1 on unexpected errors."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
