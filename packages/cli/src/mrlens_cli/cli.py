"""CLI entry point for mrlens.

Commands:
  review   — run the full review pipeline for one merge request URL
  serve    — start the HTTP trigger endpoint
  status   — show the stored state of one review
  history  — list stored reviews
  init     — write a starter .mrlens.yml
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from mrlens_cli.commands.history import history_cmd
from mrlens_cli.commands.init import init_cmd
from mrlens_cli.commands.review import review_cmd
from mrlens_cli.commands.serve import serve_cmd
from mrlens_cli.commands.status import status_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured state store from .mrlens.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (store_path, default .mrlens.db)
      (default)     → MemoryStore (records live for this process only)
    """
    from mrlens_store.memory import MemoryStore

    store_type = config.get("store", "memory")

    if store_type == "sqlite":
        from mrlens_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".mrlens.db"))

    if store_type != "memory":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to in-memory store.[/yellow]")
    return MemoryStore()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("mrlens"),
    prog_name="mrlens",
)
@click.option(
    "--config",
    "config_path",
    default=".mrlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MRLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Review GitLab merge requests with an LLM and post the result to Slack."""
    from mrlens_cli.auth import resolve_gitlab_token
    from mrlens_core.config import load_config
    from mrlens_core.gl.merge_request import gitlab_host

    ctx.ensure_object(dict)
    _configure_logging(verbose)

    config = load_config(config_path)

    # Resolve the token once so every subcommand shares the same result.
    token = resolve_gitlab_token(gitlab_host(config["gitlab_url"]))
    if token:
        config["gitlab_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(serve_cmd)
main.add_command(status_cmd)
main.add_command(history_cmd)
main.add_command(init_cmd)
