import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "repo": None,  # "owner/name" of the repository to digest
    "model": "openai",
    "docs_dir": "docs",
    "partition": "month",  # "month" or "week"
    "lookback_days": 1,
    "max_results": 100,
    "request_delay": 1.0,  # seconds between summarized PRs
    "max_files_in_prompt": 20,
    "retention": 50,
    "site_title": None,  # None = "<owner/name> PR Digest"
    "site_description": None,
    "base_url": None,
    "language": "English",
    "feed_language": "en",
    "copyright": None,
    "merged_label": "Merged",
    "author_label": "Author",
    "latest_link_label": "Latest PRs",
    "date_format": "%Y/%m/%d",
    "prompt": None,  # None = use built-in instructions; set to a path string to override
    "feed_output": None,  # None = <docs_dir>/public/feed.xml
}

BUILTIN_PROMPTS_DIR = Path(__file__).parent / "prompts"
_BUILTIN_DEFAULT = BUILTIN_PROMPTS_DIR / "summary.md"

_SECTIONS = {"month": "monthly", "week": "weekly"}


def load_config(config_path: str = ".prdigest.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prdigest.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    if os.environ.get("BASE_URL"):
        config["base_url"] = os.environ["BASE_URL"]

    if not config.get("site_title"):
        config["site_title"] = f"{config['repo']} PR Digest" if config.get("repo") else "PR Digest"
    if not config.get("base_url") and config.get("repo") and "/" in config["repo"]:
        owner, name = config["repo"].split("/", 1)
        config["base_url"] = f"https://{owner}.github.io/{name}-pr-digest"

    return config


def resolve_paths(config: dict) -> dict:
    """Derive every file location the pipeline reads or writes from ``docs_dir``."""
    partition = config.get("partition", "month")
    if partition not in _SECTIONS:
        raise ValueError(f"Unknown partition scheme: {partition!r}. Choose 'month' or 'week'.")
    section = _SECTIONS[partition]
    docs = Path(config.get("docs_dir", "docs"))
    return {
        "section": section,
        "partition_dir": docs / section,
        "index_file": docs / f"{section}-index.json",
        "data_file": docs / "pr-data.json",
        "landing_page": docs / "index.md",
        "feed_file": Path(config["feed_output"]) if config.get("feed_output") else docs / "public" / "feed.xml",
    }


def load_prompt(config: dict) -> str:
    """
    Load the summary instructions.

    If ``prompt`` is set in config, loads from that path (relative to cwd).
    Otherwise falls back to the built-in default.
    """
    custom_path = config.get("prompt")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Prompt file not found: {custom_path}")
        return p.read_text()

    if _BUILTIN_DEFAULT.exists():
        return _BUILTIN_DEFAULT.read_text()

    raise FileNotFoundError("No prompt configured and built-in default is missing.")
