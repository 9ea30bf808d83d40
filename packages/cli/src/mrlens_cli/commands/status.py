"""status command — show the stored state of one review."""

from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel

from mrlens_store.models import ReviewRecord

console = Console()

_STATUS_STYLE = {
    "completed": "green",
    "notified": "green",
    "pending": "yellow",
    "failed": "red",
    "ai-review-failed": "red",
    "notify-failed": "red",
}


@click.command("status")
@click.argument("review_id")
@click.pass_context
def status_cmd(ctx, review_id: str):
    """Show the state of a review by its id."""
    data = ctx.obj["store"].get(review_id)
    if data is None:
        raise click.UsageError(f"No review with id {review_id!r} in the configured store.")

    record = ReviewRecord.from_dict(data)
    style = _STATUS_STYLE.get(record.status, "white")
    lines = [
        f"[bold]MR:[/bold] {record.mr_url}",
        f"[bold]Title:[/bold] {record.mr_title}",
        f"[bold]Status:[/bold] [{style}]{record.status}[/{style}]",
        f"[bold]Files changed:[/bold] {record.files_changed}",
        f"[bold]Issues found:[/bold] {record.issues_found}",
    ]
    if record.error:
        lines.append(f"[bold red]Error:[/bold red] {record.error}")
    if record.summary:
        lines.append(f"\n{record.summary}")
    console.print(Panel("\n".join(lines), title=record.review_id))
