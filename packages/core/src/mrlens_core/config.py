import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_PROJECT_TYPES: list = [
    {
        "match": "ios-source-code",
        "type": "swift",
        "standard": "Apple Swift programming guide and iOS best practices",
    },
    {
        "match": "kotlin-multiplatform",
        "type": "kotlin",
        "standard": "Google Kotlin style guide and Compose best practices",
    },
]

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "model": None,  # None = provider default
    "ai_base_url": None,  # None = the provider's public endpoint
    "gitlab_url": "https://gitlab.com",
    "max_diff_chars": 50000,
    "max_tokens": 4000,
    "temperature": 0.3,
    "max_issues": 5,
    "max_recommendations": 3,
    "review_language": "English",
    "coding_standard": "General programming best practices",
    "project_types": DEFAULT_PROJECT_TYPES,
    "guidelines": None,  # optional path to extra Markdown guidelines
    "exclude": [],  # fnmatch patterns or directory names to leave out of the prompt
    "slack_payload_field": "reviewContent",
    "store": "memory",
    "store_path": ".mrlens.db",
    "host": "127.0.0.1",
    "port": 3000,
}


def load_config(config_path: str = ".mrlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .mrlens.yml in the current directory
      3. AI_BASE_URL / AI_MODEL environment variables
      4. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "project_types": [dict(rule) for rule in DEFAULT_PROJECT_TYPES],
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if os.environ.get("AI_BASE_URL"):
        config["ai_base_url"] = os.environ["AI_BASE_URL"]
    if os.environ.get("AI_MODEL"):
        config["model"] = os.environ["AI_MODEL"]

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Credentials are only ever read from the environment.
    provider_key = "ANTHROPIC_API_KEY" if config["provider"] == "anthropic" else "OPENAI_API_KEY"
    config["gitlab_token"] = os.environ.get("GITLAB_TOKEN")
    config["ai_api_key"] = os.environ.get("AI_API_KEY") or os.environ.get(provider_key)
    config["slack_webhook_url"] = os.environ.get("SLACK_WEBHOOK_URL")

    return config


def load_guidelines(config: dict) -> str:
    """
    Load extra review guidelines.

    If ``guidelines`` is set in config, loads from that path (relative to cwd).
    Returns an empty string when no guidelines file is configured.
    """
    custom_path = config.get("guidelines")
    if not custom_path:
        return ""
    p = Path(custom_path)
    if not p.exists():
        raise FileNotFoundError(f"Guidelines file not found: {custom_path}")
    return p.read_text()
