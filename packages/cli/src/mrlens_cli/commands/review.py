"""review command — run the whole pipeline for one merge request."""

from __future__ import annotations

import click
from rich.console import Console

from mrlens_core.errors import MRLensError
from mrlens_core.reviewer import ReviewPipeline
from mrlens_store.models import ReviewRecord

console = Console()


def _print_outcome(record: ReviewRecord) -> None:
    color = "green" if record.status in ("completed", "notified") else "red"
    console.print(f"\n[bold]{record.mr_title or record.mr_url}[/bold]")
    console.print(f"  Review ID: {record.review_id}")
    console.print(f"  Status:    [{color}]{record.status}[/{color}]")
    console.print(f"  Files:     {record.files_changed}")
    console.print(f"  Issues:    {record.issues_found}")
    if record.error:
        console.print(f"  [red]Error: {record.error}[/red]")


def _print_message(text: str) -> None:
    console.print("\n[bold]Slack message (not posted)[/bold]\n")
    console.print(text, markup=False)


@click.command("review")
@click.argument("mr_url")
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model name. Overrides config file and AI_MODEL.")
@click.option(
    "--guidelines",
    "guidelines_path",
    default=None,
    help="Path to a Markdown guidelines file appended to the coding standard.",
)
@click.option(
    "--no-notify",
    "no_notify",
    is_flag=True,
    help="Print the Slack message instead of posting it.",
)
@click.pass_context
def review_cmd(
    ctx,
    mr_url: str,
    provider: str | None,
    model: str | None,
    guidelines_path: str | None,
    no_notify: bool,
):
    """Review a GitLab merge request and post the result to Slack.

    \b
    Environment variables:
      GITLAB_TOKEN         GitLab personal access token (or use glab CLI)
      AI_API_KEY           Chat endpoint key (falls back to OPENAI_API_KEY / ANTHROPIC_API_KEY)
      AI_BASE_URL          OpenAI-compatible endpoint base URL (optional)
      AI_MODEL             Model name (optional)
      SLACK_WEBHOOK_URL    Slack webhook to post the summary to
    """
    from mrlens_core.config import load_config

    base = ctx.obj["config"]
    config = load_config(
        ctx.obj.get("config_path", ".mrlens.yml"),
        cli_overrides={"provider": provider, "model": model, "guidelines": guidelines_path},
    )
    config["gitlab_token"] = base.get("gitlab_token") or config.get("gitlab_token")

    if not config.get("gitlab_token"):
        console.print("[yellow]No GitLab token found; only public projects can be read.[/yellow]")
    if not config.get("ai_api_key"):
        raise click.UsageError("AI_API_KEY environment variable is not set.")
    if not no_notify and not config.get("slack_webhook_url"):
        raise click.UsageError("SLACK_WEBHOOK_URL environment variable is not set. Use --no-notify to print instead.")

    store = ctx.obj["store"]
    pipeline = ReviewPipeline(config, store, send=_print_message if no_notify else None)

    try:
        ack = pipeline.trigger(mr_url)
    except (MRLensError, FileNotFoundError) as e:
        raise click.ClickException(str(e))

    record = store.get(ack["reviewId"])
    if record:
        _print_outcome(ReviewRecord.from_dict(record))
