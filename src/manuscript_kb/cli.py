"""Command-line interface for manuscript-kb."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from manuscript_kb import __version__

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _open_store():
    from manuscript_kb.store import open_store

    return open_store()


def _require_project(store, project_id: int):
    project = store.get_project(project_id)
    if project is None:
        console.print(f"[red]Project {project_id} not found[/red]")
        raise click.exceptions.Exit(1)
    return project


def _require_manuscript(store, project_id: int, manuscript_id: int):
    manuscript = store.get_manuscript(manuscript_id)
    if manuscript is None or manuscript.project_id != project_id:
        console.print(f"[red]Manuscript {manuscript_id} not found in project {project_id}[/red]")
        raise click.exceptions.Exit(1)
    return manuscript


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """manuscript-kb - Track entities across the books of a fiction series."""
    from manuscript_kb.config import get_settings

    _configure_logging("DEBUG" if verbose else get_settings().log_level)


@main.command()
def status() -> None:
    """Check system status (store backend, LLM availability)."""
    from manuscript_kb.config import get_settings
    from manuscript_kb.llm import LLMClient

    settings = get_settings()
    console.print("[bold]manuscript-kb Status[/bold]\n")
    console.print(f"Store backend: {settings.store_backend}")

    if settings.store_backend == "neo4j":
        console.print(f"Neo4j URI: {settings.neo4j_uri}")
        try:
            with _open_store() as store:
                connected = store.check_connection()
        except ConnectionError:
            connected = False
        if connected:
            console.print("[green]✓[/green] Neo4j connected")
        else:
            console.print("[red]✗[/red] Neo4j not reachable")
    else:
        console.print(f"SQLite database: {settings.sqlite_path}")
        with _open_store() as store:
            console.print(f"[green]✓[/green] {len(store.list_projects())} project(s)")

    client = LLMClient()
    console.print(f"LLM: {client.provider} / {client.model}")
    if client.is_available:
        console.print("[green]✓[/green] LLM available")
    else:
        console.print("[yellow]![/yellow] LLM not available (extraction runs without it)")


# ============================================================================
# Project Commands
# ============================================================================

@main.group()
def project() -> None:
    """Project commands."""
    pass


@project.command(name="create")
@click.argument("name")
@click.option("--path", "-p", default="", help="Project folder on disk")
def project_create(name: str, path: str) -> None:
    """Create a new project."""
    with _open_store() as store:
        created = store.create_project(name, path)
    console.print(f"[green]✓[/green] Created project {created.id}: {created.name}")


@project.command(name="list")
def project_list() -> None:
    """List projects."""
    with _open_store() as store:
        projects = store.list_projects()
        rows = [(p, store.list_manuscripts(p.id)) for p in projects]

    if not rows:
        console.print("[yellow]No projects yet[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Manuscripts", justify="right")
    for p, manuscripts in rows:
        table.add_row(str(p.id), p.name, str(len(manuscripts)))
    console.print(table)


# ============================================================================
# Import
# ============================================================================

@main.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
@click.option("--title", "-t", help="Manuscript title (inferred from filename if not provided)")
def import_manuscript(path: str, project_id: int, title: str | None) -> None:
    """Import a .txt or .md manuscript, then link known entities into it."""
    from manuscript_kb.detect import EntityDetector
    from manuscript_kb.ingest import load_text, split_manuscript

    file_path = Path(path)
    book_title = title or file_path.stem.replace("_", " ").replace("-", " ").title()

    with _open_store() as store:
        _require_project(store, project_id)

        console.print(f"[bold]Importing:[/bold] {book_title}")
        console.print(f"[dim]Source: {file_path}[/dim]\n")

        try:
            text = load_text(file_path)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise click.exceptions.Exit(1)

        chapters = split_manuscript(text, file_path.suffix)
        manuscript = store.create_manuscript(project_id, book_title, str(file_path))
        for chapter in chapters:
            store.add_chapter(manuscript.id, chapter.title, chapter.order_index, chapter.body)

        console.print(
            f"[green]✓[/green] Manuscript {manuscript.id}: {len(chapters)} chapters, {len(text):,} characters"
        )

        with console.status("Detecting known entities..."):
            summary = EntityDetector(store).detect(project_id, manuscript.id)

    _print_detection(summary)


# ============================================================================
# Entity Commands
# ============================================================================

ENTITY_TYPES = ["character", "location", "organization", "artifact", "concept", "event"]


@main.group()
def entity() -> None:
    """Entity catalogue commands."""
    pass


@entity.command(name="add")
@click.argument("name")
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
@click.option("--type", "-t", "entity_type", type=click.Choice(ENTITY_TYPES), default="character")
@click.option("--alias", "-a", "aliases", multiple=True, help="Alternative name (repeatable)")
def entity_add(name: str, project_id: int, entity_type: str, aliases: tuple[str, ...]) -> None:
    """Add an entity to a project's catalogue."""
    metadata = {"aliases": list(aliases)} if aliases else {}
    with _open_store() as store:
        _require_project(store, project_id)
        created = store.create_entity(project_id, name, entity_type, metadata)
    console.print(f"[green]✓[/green] Added {created.type.value} {created.id}: {created.name}")


@entity.command(name="list")
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
def entity_list(project_id: int) -> None:
    """List catalogued entities."""
    from manuscript_kb.detect import parse_aliases

    with _open_store() as store:
        _require_project(store, project_id)
        entities = store.list_entities(project_id)

    if not entities:
        console.print("[yellow]No entities catalogued[/yellow]")
        return

    table = Table(title=f"Entities ({len(entities)})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Type")
    table.add_column("Name", style="green")
    table.add_column("Aliases", style="dim")
    for e in entities:
        table.add_row(str(e.id), e.type.value, e.name, ", ".join(parse_aliases(e.metadata)))
    console.print(table)


# ============================================================================
# Extraction
# ============================================================================

@main.command()
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
@click.option("--manuscript", "-m", "manuscript_id", type=int, help="Restrict to one manuscript")
@click.option("--limit", "-l", type=int, help="Maximum candidates")
@click.option("--llm", "use_llm", is_flag=True, help="Send low-confidence candidates to the LLM")
@click.option("--genre", "-g", default="Fiction", help="Genre hint for the LLM")
@click.option("--output", "-o", type=click.Path(), help="Output file for results (JSON)")
def extract(
    project_id: int,
    manuscript_id: int | None,
    limit: int | None,
    use_llm: bool,
    genre: str,
    output: str | None,
) -> None:
    """Discover candidate entities that are not catalogued yet."""
    from manuscript_kb.config import get_settings
    from manuscript_kb.extract import CandidateExtractor, refine_candidates, to_extraction_result

    settings = get_settings()

    with _open_store() as store:
        project_record = _require_project(store, project_id)
        book_title = project_record.name
        if manuscript_id is not None:
            book_title = _require_manuscript(store, project_id, manuscript_id).title
            total_chapters = len(store.list_chapters(manuscript_id))
        else:
            total_chapters = len(store.list_project_chapters(project_id))

        with console.status("Scanning chapters..."):
            result = CandidateExtractor(store).extract(project_id, manuscript_id, limit=limit)

    with console.status("Refining candidates..."):
        refined = refine_candidates(
            result,
            total_chapters,
            use_llm=use_llm,
            review_threshold=settings.review_threshold,
            book_title=book_title,
            genre=genre,
        )

    if not refined.entities:
        console.print("[yellow]No candidates found[/yellow]")
    else:
        review_names = {c.name for c in refined.needs_review}
        table = Table(title=f"Candidates ({len(refined.entities)})")
        table.add_column("Name", style="green")
        table.add_column("Type")
        table.add_column("Conf.", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Hits", justify="right")
        table.add_column("Chapters", justify="right")
        table.add_column("Related", style="dim")
        for c in refined.entities[:50]:
            name = f"{c.name} [yellow]?[/yellow]" if c.name in review_names else c.name
            table.add_row(
                name,
                c.type.value,
                str(c.confidence),
                f"{c.score:.1f}",
                str(c.frequency),
                str(c.chapter_spread),
                ", ".join(c.related_names),
            )
        console.print(table)

    stats = refined.stats
    console.print(
        f"\n[bold]{stats.total_candidates}[/bold] candidates, "
        f"{stats.filtered_as_noise} filtered, {stats.needs_review} need review"
        + (f", {stats.llm_enhanced} LLM-enhanced" if use_llm else "")
    )

    if output:
        output_path = Path(output)
        output_data = to_extraction_result(refined, result.existing_entities).to_dict()
        output_data["needs_review"] = [c.name for c in refined.needs_review]
        output_data["stats"] = stats.to_dict()
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(output_data, f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]✓[/green] Results saved to {output_path}")


# ============================================================================
# Detection
# ============================================================================

def _print_detection(summary) -> None:
    console.print(
        f"[green]✓[/green] {summary.total_matches} matches, "
        f"{summary.new_appearances} new appearances"
    )
    if summary.cross_book_entities:
        table = Table(title="Cross-book entities")
        table.add_column("Entity", style="green")
        table.add_column("Type")
        table.add_column("Already in", style="dim")
        table.add_column("Now in", style="cyan")
        for e in summary.cross_book_entities:
            table.add_row(e.entity_name, e.entity_type.value, ", ".join(e.existing_books), ", ".join(e.new_books))
        console.print(table)


@main.command()
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
@click.option("--manuscript", "-m", "manuscript_id", type=int, help="Scan one manuscript (default: all)")
def detect(project_id: int, manuscript_id: int | None) -> None:
    """Link catalogued entities into manuscript chapters."""
    from manuscript_kb.detect import EntityDetector

    with _open_store() as store:
        _require_project(store, project_id)
        detector = EntityDetector(store)
        with console.status("Detecting known entities..."):
            if manuscript_id is not None:
                _require_manuscript(store, project_id, manuscript_id)
                summary = detector.detect(project_id, manuscript_id)
            else:
                summary = detector.detect_full_project(project_id)

    _print_detection(summary)


@main.command()
@click.option("--project", "-p", "project_id", type=int, required=True, help="Project ID")
@click.option("--output", "-o", type=click.Path(), help="Output file for results (JSON)")
def presence(project_id: int, output: str | None) -> None:
    """Show which manuscripts each entity appears in."""
    from manuscript_kb.detect import cross_book_presence

    with _open_store() as store:
        _require_project(store, project_id)
        rows = cross_book_presence(store, project_id)
        manuscripts = store.list_manuscripts(project_id)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in rows], f, indent=2, ensure_ascii=False)
        console.print(f"[green]✓[/green] Results saved to {output}")
        return

    if not rows:
        console.print("[yellow]No entities catalogued[/yellow]")
        return

    table = Table(title="Cross-book presence (chapters per manuscript)")
    table.add_column("Entity", style="green")
    table.add_column("Type")
    for ms in manuscripts:
        table.add_column(ms.title, justify="right")
    for r in rows:
        counts = {m.id: m.chapter_count for m in r.manuscripts}
        table.add_row(
            r.entity_name,
            r.entity_type.value,
            *(str(counts.get(ms.id, "-")) for ms in manuscripts),
        )
    console.print(table)


if __name__ == "__main__":
    main()
