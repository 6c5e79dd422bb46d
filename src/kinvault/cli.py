"""CLI interface for kinvault."""

import asyncio
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from kinvault.errors import KinvaultError
from kinvault.logging import configure_logging

app = typer.Typer(
    name="kinvault",
    help="Family record graph over a Markdown vault",
    add_completion=False,
)
console = Console()

VaultOption = typer.Option(
    None, "--vault", "-V", help="Vault directory (default: $KINVAULT_VAULT or current directory)"
)
ConfigOption = typer.Option(None, "--config", "-c", help="YAML config file")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Load .env and set up logging before any command runs."""
    from dotenv import load_dotenv

    load_dotenv()
    if verbose:
        configure_logging("DEBUG", json=False)
    else:
        configure_logging("WARNING")


def open_vault(vault: Path | None, config_file: Path | None):
    """Load configuration and open the vault store."""
    from kinvault.config import load_config
    from kinvault.store.vault import MarkdownVault

    try:
        config = load_config(config_file)
    except KinvaultError as e:
        console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1)

    root = vault or Path(os.getenv("KINVAULT_VAULT", "."))
    if not root.is_dir():
        console.print(f"[red]Error: Vault not found: {root}[/red]")
        raise typer.Exit(1)
    return config, MarkdownVault(root, people_folder=config.vault.people_folder)


def _read_gedcom(file_path: Path) -> str:
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {file_path}[/red]")
        raise typer.Exit(1)
    return file_path.read_text(encoding="utf-8-sig")


def _print_report(report) -> None:
    table = Table(title="GEDCOM Validation")
    table.add_column("Severity")
    table.add_column("Line", justify="right")
    table.add_column("Message")
    for issue in report.issues:
        style = "red" if issue.severity.value == "error" else "yellow"
        table.add_row(f"[{style}]{issue.severity.value}[/{style}]", str(issue.line or ""), issue.message)
    if report.issues:
        console.print(table)

    s = report.stats
    console.print(
        f"Individuals: {s.individuals}  Families: {s.families}  Version: {s.version or 'unknown'}"
    )


@app.command()
def validate(
    file_path: Path = typer.Argument(..., help="Path to GEDCOM file"),
):
    """Check a GEDCOM file before importing it."""
    from kinvault.gedcom.validator import GedcomValidator

    report = GedcomValidator().validate(_read_gedcom(file_path))
    _print_report(report)
    if not report.valid:
        console.print("[red]Invalid GEDCOM file[/red]")
        raise typer.Exit(1)
    console.print("[green]GEDCOM file is valid[/green]")


@app.command("import")
def import_gedcom(
    file_path: Path = typer.Argument(..., help="Path to GEDCOM file"),
    folder: str = typer.Option(None, "--folder", "-f", help="Vault folder for new notes"),
    collection: str = typer.Option(None, "--collection", help="Collection label for imported people"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Import a GEDCOM file as person notes."""
    from kinvault.errors import GedcomParseError
    from kinvault.gedcom.importer import GedcomImporter
    from kinvault.gedcom.parser import GedcomParser
    from kinvault.gedcom.validator import GedcomValidator
    from kinvault.graph.cache import FamilyGraph

    config, store = open_vault(vault, config_file)
    text = _read_gedcom(file_path)

    report = GedcomValidator().validate(text)
    if not report.valid:
        _print_report(report)
        raise typer.Exit(1)
    for warning in report.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    try:
        data = GedcomParser().parse(text, path=str(file_path))
    except GedcomParseError as e:
        console.print(f"[red]Parse error: {e}[/red]")
        raise typer.Exit(1)

    existing = set(FamilyGraph(store, config.vault).ensure_loaded())
    importer = GedcomImporter(store, config.vault, existing_ids=existing)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Importing {len(data.individuals)} individuals...", total=None)
        result = asyncio.run(importer.import_data(data, folder=folder, collection=collection))
        progress.update(task, completed=True)

    console.print(f"[green]Created {result.created} person notes from {file_path.name}[/green]")
    for error in result.errors:
        console.print(f"[red]{error}[/red]")
    if not result.ok:
        raise typer.Exit(1)


@app.command("export")
def export_gedcom(
    out_file: Path = typer.Argument(..., help="GEDCOM file to write"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Export every person in the vault to GEDCOM 5.5."""
    from kinvault.gedcom.exporter import GedcomExporter
    from kinvault.graph.cache import FamilyGraph

    config, store = open_vault(vault, config_file)
    graph = FamilyGraph(store, config.vault)
    path = GedcomExporter(graph).export(out_file)
    console.print(f"[green]Exported {len(graph)} individuals to {path}[/green]")


@app.command()
def duplicates(
    min_confidence: float = typer.Option(None, "--min-confidence", "-m", help="Minimum confidence (0-100)"),
    same_collection: bool = typer.Option(None, "--same-collection/--any-collection", help="Only compare within a collection"),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum rows to show"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """List likely duplicate people, most confident first."""
    from dataclasses import replace

    from kinvault.duplicates.matcher import DuplicateMatcher
    from kinvault.graph.cache import FamilyGraph

    config, store = open_vault(vault, config_file)
    options = config.duplicates
    try:
        if min_confidence is not None:
            options = replace(options, min_confidence=min_confidence)
        if same_collection is not None:
            options = replace(options, same_collection_only=same_collection)
    except KinvaultError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    matcher = DuplicateMatcher(FamilyGraph(store, config.vault), options)
    matches = matcher.find_duplicates()
    summary = matcher.summarize(matches)

    table = Table(title="Possible Duplicates")
    table.add_column("Confidence", justify="right")
    table.add_column("Person A")
    table.add_column("Person B")
    table.add_column("Name", justify="right")
    table.add_column("Dates", justify="right")
    table.add_column("Reasons")
    for m in matches[:limit]:
        table.add_row(
            f"{m.confidence}%",
            f"{m.person_a.name} [dim]{m.person_a.id}[/dim]",
            f"{m.person_b.name} [dim]{m.person_b.id}[/dim]",
            str(m.name_similarity),
            str(m.date_proximity),
            "; ".join(m.reasons),
        )
    console.print(table)
    console.print(
        f"[dim]{summary.total} matches: {summary.high} high, {summary.medium} medium, {summary.low} low[/dim]"
    )


@app.command()
def ahnentafel(
    root_id: str = typer.Argument(..., help="Person id of the root"),
    generations: int = typer.Option(None, "--generations", "-g", help="Generations to number"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Number a person's ancestors (Sosa-Stradonitz)."""
    from kinvault.ancestry.ahnentafel import AncestorNumberer, generation_label, generation_of
    from kinvault.graph.cache import FamilyGraph

    config, store = open_vault(vault, config_file)
    numberer = AncestorNumberer(FamilyGraph(store, config.vault), config.ancestry)
    try:
        result = numberer.generate(root_id, generations)
    except (KinvaultError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Ahnentafel of {result.root.name}")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Born")
    table.add_column("Died")
    table.add_column("Generation")
    for number, person in sorted(result.ancestors.items()):
        table.add_row(
            str(number),
            person.name,
            person.birth_date or "",
            person.death_date or "",
            generation_label(generation_of(number)),
        )
    console.print(table)

    for row in result.completeness_table():
        console.print(f"Generation {row.generation}: {row.found}/{row.expected} ({row.percent}%)")


@app.command()
def stats(
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Show statistics about the vault's family graph."""
    from kinvault.graph.cache import FamilyGraph

    config, store = open_vault(vault, config_file)
    s = FamilyGraph(store, config.vault).stats()

    table = Table(title="Family Graph")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for key, value in s.to_dict().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)


@app.command()
def link(
    relation: str = typer.Argument(..., help="parent, spouse or child"),
    first: Path = typer.Argument(..., help="Child note (parent), person note (spouse) or parent note (child)"),
    second: Path = typer.Argument(..., help="Parent note (parent), spouse note (spouse) or child note (child)"),
    role: str = typer.Option("father", "--role", "-r", help="father or mother (parent only)"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Link two person notes on both sides."""
    from kinvault.models.person import ParentRole
    from kinvault.relationships.mutator import RelationshipMutator

    config, store = open_vault(vault, config_file)
    mutator = RelationshipMutator(store, vault_config=config.vault)
    try:
        a = store.handle_for(first)
        b = store.handle_for(second)
        if relation == "parent":
            result = asyncio.run(mutator.add_parent(a, b, ParentRole(role.lower())))
        elif relation == "spouse":
            result = asyncio.run(mutator.add_spouse(a, b))
        elif relation == "child":
            result = asyncio.run(mutator.add_child(a, b))
        else:
            console.print("[red]Relation must be one of: parent, spouse, child[/red]")
            raise typer.Exit(1)
    except (KinvaultError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    for failure in result.failures:
        console.print(f"[red]Write failed: {failure.path}: {failure.error}[/red]")
    if not result.ok:
        raise typer.Exit(1)
    console.print(f"[green]Updated {len(result.written)} note(s)[/green]")


@app.command()
def rename(
    person_id: str = typer.Argument(..., help="Id of the renamed person"),
    old_name: str = typer.Argument(..., help="Previous display name"),
    new_name: str = typer.Argument(..., help="New display name"),
    new_path: Path = typer.Argument(..., help="Note path after the rename"),
    vault: Path = VaultOption,
    config_file: Path = ConfigOption,
):
    """Rewrite links to a renamed person in every other note."""
    from kinvault.relationships.mutator import RelationshipMutator

    config, store = open_vault(vault, config_file)
    mutator = RelationshipMutator(store, vault_config=config.vault)
    try:
        handle = store.handle_for(new_path)
    except KinvaultError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    result = asyncio.run(mutator.propagate_rename(person_id, old_name, new_name, handle))
    for failure in result.failures:
        console.print(f"[red]Write failed: {failure.path}: {failure.error}[/red]")

    console.print(Panel(
        "\n".join(result.written) or "No links needed updating",
        title=f"{old_name} -> {new_name}",
    ))
    if not result.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
