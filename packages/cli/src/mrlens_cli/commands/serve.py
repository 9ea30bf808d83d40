"""serve command — run the HTTP trigger endpoint."""

from __future__ import annotations

import logging

import click
import uvicorn
from rich.console import Console

from mrlens_core.reviewer import ReviewPipeline

logger = logging.getLogger(__name__)

console = Console()


@click.command("serve")
@click.option("--host", default=None, help="Bind address. Overrides config file.")
@click.option("--port", type=int, default=None, help="Bind port. Overrides config file.")
@click.pass_context
def serve_cmd(ctx, host: str | None, port: int | None):
    """Start the HTTP server exposing POST /gitlab/reviewmr."""
    from mrlens_cli.server import create_app

    config = ctx.obj["config"]
    if not config.get("ai_api_key"):
        raise click.UsageError("AI_API_KEY environment variable is not set.")
    if not config.get("slack_webhook_url"):
        raise click.UsageError("SLACK_WEBHOOK_URL environment variable is not set.")

    pipeline = ReviewPipeline(config, ctx.obj["store"])
    app = create_app(pipeline)
    logger.debug("Pipeline topics: %s", ", ".join(pipeline.bus.topics()))

    host = host or config.get("host", "127.0.0.1")
    port = port or config.get("port", 3000)
    console.print(f"[cyan]mrlens listening on http://{host}:{port}/gitlab/reviewmr[/cyan]")
    uvicorn.run(app, host=host, port=port, log_config=None)
