"""init command — interactive setup wizard.

Writes .mrlens.yml with the provider, GitLab instance and store choices so
that `mrlens review` and `mrlens serve` need only environment credentials.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()

_API_KEY_ENV = {"openai": "AI_API_KEY (or OPENAI_API_KEY)", "anthropic": "AI_API_KEY (or ANTHROPIC_API_KEY)"}


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up mrlens for a team.

    Creates (or updates) the configuration file passed with --config.
    """
    config_path = Path(ctx.obj.get("config_path", ".mrlens.yml") if ctx.obj else ".mrlens.yml")
    console.print("\n[bold cyan]mrlens init[/bold cyan] — setup wizard\n")

    gitlab_url = click.prompt("GitLab instance URL", default="https://gitlab.com")

    provider = click.prompt(
        "AI provider",
        type=click.Choice(["openai", "anthropic"]),
        default="openai",
    )
    ai_base_url = ""
    if provider == "openai":
        ai_base_url = click.prompt(
            "OpenAI-compatible base URL (blank for api.openai.com)", default="", show_default=False
        )

    console.print("\nReview state store:")
    console.print("  [bold]memory[/bold]  — kept for the lifetime of the process (default)")
    console.print("  [bold]sqlite[/bold]  — local SQLite file, enables `mrlens history`")
    store_type = click.prompt(
        "Store backend",
        type=click.Choice(["memory", "sqlite"]),
        default="memory",
    )

    config: dict = {"provider": provider, "gitlab_url": gitlab_url, "store": store_type}
    if ai_base_url:
        config["ai_base_url"] = ai_base_url
    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".mrlens.db")
        if db_path != ".mrlens.db":
            config["store_path"] = db_path

    _write_config(config_path, config)
    console.print(f"[green]Wrote {config_path}[/green]")

    console.print("\nSet these environment variables before running a review:")
    console.print("  [bold]GITLAB_TOKEN[/bold]       (or log in with `glab auth login`)")
    console.print(f"  [bold]{_API_KEY_ENV[provider]}[/bold]")
    console.print("  [bold]SLACK_WEBHOOK_URL[/bold]")
    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Run a review with: [bold]mrlens review <merge request URL>[/bold]")


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
