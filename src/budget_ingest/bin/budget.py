"""bin/budget — Budget ingest pipeline.

Reads new CSV exports from <files_path>/new/, stores the transactions,
collects metadata for descriptions never seen before, and prints totals.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from budget_ingest.lib.config import Settings
from budget_ingest.lib.csv_normalizer import TransactionRecord, read_budget_file
from budget_ingest.lib.descriptions import DescriptionNormalizer
from budget_ingest.lib.errors import BudgetError, ParseError, StorageError, UnrecognizedOriginError
from budget_ingest.lib.logging_setup import configure_logging, get_logger
from budget_ingest.lib.metadata import DescriptionMetadata, Prompt, collect_metadata
from budget_ingest.lib.reconcile import reconcile, unique_descriptions
from budget_ingest.lib.state import BudgetStore
from budget_ingest.lib.summary import Totals, aggregate

console = Console()
logger = get_logger("budget_ingest.bin.budget")


def load_settings(root: str | None) -> Settings:
    try:
        return Settings.load(Path(root) if root else None)
    except BudgetError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def load_normalizer(settings: Settings) -> DescriptionNormalizer:
    try:
        return DescriptionNormalizer.from_yaml(settings.descriptions_path)
    except BudgetError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


def find_new_files(new_dir: Path) -> list[Path]:
    """Regular files waiting in the drop folder, in name order."""
    if not new_dir.is_dir():
        click.echo(f"Error: There is no 'new/' directory at {new_dir.parent}", err=True)
        raise SystemExit(1)
    return sorted(p for p in new_dir.iterdir() if p.is_file())


def read_files(files: list[Path], normalizer: DescriptionNormalizer) -> list[TransactionRecord]:
    """Parse every file; unreadable or unrecognized files are reported and skipped."""
    records: list[TransactionRecord] = []
    for path in files:
        try:
            file_records = read_budget_file(path, normalizer)
        except UnrecognizedOriginError as exc:
            logger.warning("Skipping %s: unknown header type, first header: %r", path.name, exc.first_header)
            continue
        except (ParseError, OSError) as exc:
            click.echo(f"There was an error reading budget file {path}. Error: {exc}", err=True)
            continue
        records.extend(file_records)
    return records


def render_records(records: list[TransactionRecord]) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date", width=12)
    table.add_column("Card", width=12)
    table.add_column("Description", width=30)
    table.add_column("Amount", width=12, justify="right")

    for record in records:
        style = "green" if record.amount >= 0 else ""
        table.add_row(
            record.date.isoformat(),
            record.card.value,
            escape(record.description),
            Totals.format(record.amount),
            style=style,
        )
    console.print(table)


def render_totals(totals: Totals) -> None:
    table = Table(show_header=False)
    table.add_column("Total", style="bold")
    table.add_column("Amount", justify="right")
    for label, amount in totals.lines():
        table.add_row(label, amount)
    console.print(table)


def gather_metadata(store: BudgetStore, records: list[TransactionRecord], prompt: Prompt) -> list[DescriptionMetadata]:
    """Reconcile the batch against stored metadata and prompt for the rest."""
    current = unique_descriptions(records)
    console.print(f"Unique descriptions: {len(current)}")
    pending = reconcile(current, store.select_all_description_metadata())
    console.print(f"Descriptions without information: {len(pending)}")
    if not pending:
        return []
    return collect_metadata(sorted(pending), prompt)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: $BUDGET_LOG_LEVEL or INFO)")
def main(log_level: str | None) -> None:
    """budget — ingest bank exports and track spending."""
    configure_logging(log_level)


@main.command()
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
@click.option("--store-records/--no-store-records", default=True,
              help="Insert parsed transactions into the database")
@click.option("--prompt/--no-prompt", "ask", default=True,
              help="Ask for information on new descriptions")
def run(root: str | None, store_records: bool, ask: bool) -> None:
    """Process new budget files end to end."""
    settings = load_settings(root)
    console.print(f"Root: {settings.project_root} | File Path: {settings.files_path}")

    files = find_new_files(settings.new_files_dir)
    if not files:
        console.print("There are no new budget files to process.")
        return
    console.print(f"Found {len(files)} new budget file(s) to process: " + escape(", ".join(p.name for p in files)))

    normalizer = load_normalizer(settings)
    records = read_files(files, normalizer)
    console.print(f"Found total budget records: {len(records)}")

    try:
        with BudgetStore(settings.db_path) as store:
            if store_records:
                store.insert_transactions(records)

            if ask:
                from budget_ingest.lib.term_prompt import INSTRUCTIONS, TerminalPrompt

                console.print(INSTRUCTIONS)
                uploads = gather_metadata(store, records, TerminalPrompt())
                store.insert_description_metadata(uploads)
                console.print(f"Uploaded information for {len(uploads)} description(s)")
    except StorageError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    render_totals(aggregate(records))


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def parse(files: tuple[str, ...], root: str | None) -> None:
    """Parse CSV files and show the records without storing them."""
    settings = load_settings(root)
    normalizer = load_normalizer(settings)
    records = read_files([Path(f) for f in files], normalizer)
    if not records:
        console.print("[yellow]No budget records found.[/yellow]")
        return
    render_records(records)
    render_totals(aggregate(records))


@main.command()
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def descriptions(root: str | None) -> None:
    """List stored description information."""
    settings = load_settings(root)
    try:
        with BudgetStore(settings.db_path) as store:
            rows = store.select_all_description_metadata()
    except StorageError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    if not rows:
        console.print("[green]No description information stored yet.[/green]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Description", width=24)
    table.add_column("Primary")
    table.add_column("Secondary")
    table.add_column("Tertiary")
    table.add_column("Additional")
    for row in rows:
        table.add_row(
            escape(row.description),
            row.primary or "",
            row.secondary or "",
            row.tertiary or "",
            row.additional or "",
        )
    console.print(table)


@main.command("export-rules")
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
@click.option("--force", is_flag=True, help="Overwrite an existing rules file")
def export_rules(root: str | None, force: bool) -> None:
    """Write the built-in description table to YAML for editing."""
    settings = load_settings(root)
    path = settings.descriptions_path
    if path.exists() and not force:
        click.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
        raise SystemExit(1)
    DescriptionNormalizer().save(path)
    click.echo(f"Wrote {path}")


if __name__ == "__main__":
    main()
