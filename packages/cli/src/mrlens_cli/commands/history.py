"""history command — list reviews kept in the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mrlens_store.models import ReviewRecord

console = Console()


@click.command("history")
@click.option("--project", "project_path", default=None, help="Filter by project path (group/project).")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def history_cmd(ctx, project_path: str | None, limit: int):
    """Show past reviews from the configured store.

    Needs a persistent store; add `store: sqlite` to .mrlens.yml or run
    `mrlens init`.
    """
    from mrlens_store.memory import MemoryStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, MemoryStore):
        raise click.UsageError(
            "No persistent store configured. Add 'store: sqlite' to .mrlens.yml, or run `mrlens init`."
        )

    records = [ReviewRecord.from_dict(d) for d in store.list_records(project_path)]
    if not records:
        console.print("[yellow]No review records found.[/yellow]")
        return

    # Most recent first, capped at --limit.
    records = list(reversed(records))[:limit]

    title = f"Review History — {project_path}" if project_path else "Review History"
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Review ID", style="bold")
    table.add_column("MR", width=8)
    table.add_column("Title", max_width=40)
    table.add_column("Status", width=16)
    table.add_column("Issues", justify="right", width=8)
    table.add_column("Fetched At", width=20)

    _status_style = {"completed": "green", "notified": "green", "pending": "yellow"}

    for r in records:
        style = _status_style.get(r.status, "red")
        table.add_row(
            r.review_id,
            f"!{r.mr_iid}",
            r.mr_title[:40],
            f"[{style}]{r.status}[/{style}]",
            str(r.issues_found),
            r.timestamp[:19].replace("T", " "),
        )

    console.print(table)
