"""Command-line interface for transcript-reconcile.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from transcript_reconcile import __version__
from transcript_reconcile.config import AppConfig, get_app_home, load_config
from transcript_reconcile.diff import build_final_text, count_changes, diff_texts, set_all_choices
from transcript_reconcile.dictionary import SmartDictionary
from transcript_reconcile.errors import ReconcileError, format_error_for_display
from transcript_reconcile.logging import LogLevel, configure_logging, enable_file_logging, set_verbosity
from transcript_reconcile.storage import FileBlobBackend, atomic_write, read_text

# Load environment variables from .env files
# Priority: local .env > <app home>/.env
_user_env = get_app_home() / ".env"
if _user_env.exists():
    load_dotenv(_user_env)
load_dotenv()

app = typer.Typer(
    name="transcript-reconcile",
    help="Review machine corrections of transcripts and manage the smart dictionary.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"transcript-reconcile version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}")
    raise typer.Exit(1)


def _load_config_or_exit() -> AppConfig:
    try:
        return load_config()
    except ReconcileError as e:
        _fail(e)


def _open_dictionary(path: Path | None) -> SmartDictionary:
    dictionary_path = path or _load_config_or_exit().dictionary_path
    return SmartDictionary(FileBlobBackend(dictionary_path))


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show informational log messages."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Show debug log messages."),
    ] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also write debug logs to this file."),
    ] = None,
) -> None:
    """Transcript Reconcile - merge machine corrections into human transcripts.

    [bold]diff[/bold]: compare an original and a corrected text and build the merged result.

    [bold]dict[/bold]: manage the smart dictionary of recurring correction rules.
    """
    config = _load_config_or_exit()
    configure_logging(config.to_log_config())

    if debug:
        set_verbosity(LogLevel.DEBUG)
    elif verbose:
        set_verbosity(LogLevel.VERBOSE)

    if log_file:
        enable_file_logging(log_file)


# =============================================================================
# Diff Command
# =============================================================================


@app.command()
def diff(
    original: Annotated[str, typer.Argument(help="Original (human) text")],
    corrected: Annotated[str, typer.Argument(help="Corrected (machine) text")],
    from_file: Annotated[
        bool,
        typer.Option("--file", "-f", help="Treat both arguments as UTF-8 text file paths"),
    ] = False,
    reject_all: Annotated[
        bool,
        typer.Option("--reject-all", help="Keep the original side of every change"),
    ] = False,
    show_table: Annotated[
        bool,
        typer.Option("--table", "-t", help="Show the diff groups as a table"),
    ] = False,
) -> None:
    """Diff two texts and print the merged result.

    By default every change is accepted, so the output equals the
    corrected text. Use --reject-all to get the original back, or
    --table to inspect each change.
    """
    if from_file:
        try:
            original = read_text(Path(original))
            corrected = read_text(Path(corrected))
        except ReconcileError as e:
            _fail(e)

    groups = diff_texts(original, corrected)
    if reject_all:
        set_all_choices(groups, use_new=False)

    if show_table:
        table = Table(title=f"Diff ({count_changes(groups)} changes)")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Kind", style="white")
        table.add_column("Original", style="red")
        table.add_column("Corrected", style="green")
        table.add_column("Use", style="yellow")

        for group in groups:
            use = "" if not group.is_change else ("new" if group.use_new else "old")
            table.add_row(
                str(group.id),
                group.kind.value,
                escape(repr(group.original_text)),
                escape(repr(group.corrected_text)),
                use,
            )
        console.print(table)
        return

    typer.echo(build_final_text(groups))


# =============================================================================
# Smart Dictionary Commands
# =============================================================================

dict_app = typer.Typer(
    name="dict",
    help="Manage the smart dictionary of correction rules.",
)
app.add_typer(dict_app, name="dict")

DictionaryOption = Annotated[
    Optional[Path],
    typer.Option("--dictionary", "-d", help="Dictionary file (defaults to the configured path)"),
]


@dict_app.command("add")
def dict_add(
    correct: Annotated[str, typer.Argument(help="Correct spelling")],
    variants: Annotated[
        Optional[list[str]],
        typer.Argument(help="Known wrong spellings"),
    ] = None,
    dictionary: DictionaryOption = None,
) -> None:
    """Add a correction rule, or merge variants into an existing one."""
    store = _open_dictionary(dictionary)
    existed = store.find_by_correct(correct.strip()) is not None

    entry = store.add_manual(correct, variants or [])
    if entry is None:
        err_console.print("[red]Error:[/red] The correct value must not be blank.")
        raise typer.Exit(1)

    verb = "Updated" if existed else "Added"
    console.print(f"[green]{verb}:[/green] {escape(entry.correct)} [dim]({escape(entry.id)})[/dim]")
    if entry.variants:
        console.print(f"  Variants: {escape(', '.join(entry.variants))}")


@dict_app.command("list")
def dict_list(dictionary: DictionaryOption = None) -> None:
    """List all correction rules in application order."""
    store = _open_dictionary(dictionary)

    if not store.total_count:
        console.print("[green]Dictionary is empty.[/green]")
        return

    table = Table(title=f"Smart Dictionary ({store.total_count} entries)")
    table.add_column("ID", style="dim")
    table.add_column("Correct", style="cyan")
    table.add_column("Variants", style="yellow")
    table.add_column("Uses", style="green", justify="right")

    for entry in store.entries:
        table.add_row(
            escape(entry.id),
            escape(entry.correct),
            escape("\n".join(entry.variants)),
            str(entry.use_count),
        )

    console.print(table)


@dict_app.command("remove")
def dict_remove(
    entry_id: Annotated[str, typer.Argument(help="Entry ID to remove")],
    dictionary: DictionaryOption = None,
) -> None:
    """Remove a correction rule."""
    store = _open_dictionary(dictionary)
    if not store.remove_entry(entry_id):
        err_console.print(f"[red]Error:[/red] Entry '{escape(entry_id)}' not found.")
        raise typer.Exit(1)
    console.print(f"[green]Removed:[/green] {escape(entry_id)}")


@dict_app.command("add-variant")
def dict_add_variant(
    entry_id: Annotated[str, typer.Argument(help="Entry ID")],
    variant: Annotated[str, typer.Argument(help="Variant to add")],
    dictionary: DictionaryOption = None,
) -> None:
    """Add a variant to an existing rule."""
    store = _open_dictionary(dictionary)
    if store.get(entry_id) is None:
        err_console.print(f"[red]Error:[/red] Entry '{escape(entry_id)}' not found.")
        raise typer.Exit(1)

    if store.add_variant(entry_id, variant):
        console.print(f"[green]Added variant:[/green] {escape(variant.strip())}")
    else:
        console.print("[yellow]Variant is blank or already present.[/yellow]")


@dict_app.command("remove-variant")
def dict_remove_variant(
    entry_id: Annotated[str, typer.Argument(help="Entry ID")],
    variant: Annotated[str, typer.Argument(help="Variant to remove")],
    dictionary: DictionaryOption = None,
) -> None:
    """Remove a variant from a rule."""
    store = _open_dictionary(dictionary)
    if not store.remove_variant(entry_id, variant):
        err_console.print(f"[red]Error:[/red] Variant '{escape(variant)}' not found on entry '{escape(entry_id)}'.")
        raise typer.Exit(1)
    console.print(f"[green]Removed variant:[/green] {escape(variant)}")


@dict_app.command("apply")
def dict_apply(
    text: Annotated[str, typer.Argument(help="Text to correct")],
    from_file: Annotated[
        bool,
        typer.Option("--file", "-f", help="Treat the argument as a UTF-8 text file path"),
    ] = False,
    dictionary: DictionaryOption = None,
) -> None:
    """Apply every rule to a text and print the result."""
    if from_file:
        try:
            text = read_text(Path(text))
        except ReconcileError as e:
            _fail(e)

    store = _open_dictionary(dictionary)
    outcome = store.apply_dictionary(text)

    typer.echo(outcome.result)
    for replacement in outcome.replacements:
        err_console.print(f"[dim]{escape(replacement.from_text)} -> {escape(replacement.to_text)}[/dim]")


@dict_app.command("export")
def dict_export(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    dictionary: DictionaryOption = None,
) -> None:
    """Export the dictionary as JSON."""
    store = _open_dictionary(dictionary)
    blob = store.export_dictionary()

    if output is None:
        typer.echo(blob)
        return

    try:
        atomic_write(output, blob)
    except ReconcileError as e:
        _fail(e)
    console.print(f"[green]Exported {store.total_count} entries to[/green] {escape(str(output))}")


@dict_app.command("import")
def dict_import(
    path: Annotated[Path, typer.Argument(help="JSON file to import")],
    dictionary: DictionaryOption = None,
) -> None:
    """Merge entries from an exported dictionary file."""
    try:
        payload = read_text(path)
    except ReconcileError as e:
        _fail(e)

    store = _open_dictionary(dictionary)
    before = store.total_count
    if not store.import_dictionary(payload):
        err_console.print(f"[red]Error:[/red] Not a valid dictionary export: {escape(str(path))}")
        raise typer.Exit(1)

    console.print(
        f"[green]Imported:[/green] {store.total_count - before} new entries "
        f"({store.total_count} total)"
    )


@dict_app.command("clear")
def dict_clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation"),
    ] = False,
    dictionary: DictionaryOption = None,
) -> None:
    """Remove every rule from the dictionary.

    This cannot be undone.
    """
    store = _open_dictionary(dictionary)
    count = store.total_count

    if count == 0:
        console.print("[green]Dictionary is already empty.[/green]")
        return

    if not yes:
        if not typer.confirm(f"Clear {count} entries from the dictionary?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

    removed = store.clear_all()
    console.print(f"[green]Cleared {removed} entries.[/green]")


if __name__ == "__main__":
    app()
