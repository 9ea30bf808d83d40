"""GitLab merge request review pipeline: fetch, review with an LLM, notify Slack."""
