"""init command: setup wizard for a new digest site.

Writes .prdigest.yml, a landing page whose hero action points at the newest
digest period, and optionally a scheduled GitHub Actions workflow that runs
`prdigest collect` and commits the result.
"""

from __future__ import annotations

import importlib.metadata
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import click
import yaml
from rich.console import Console

from prdigest_store.buckets import SECTIONS, bucket_for

console = Console()

_LANDING_TEMPLATE = """\
---
layout: home

hero:
  name: "{site_title}"
  tagline: "{tagline}"
  actions:
    - theme: brand
      text: {latest_label}
      link: /{section}/{filename}
    - theme: alt
      text: RSS Feed
      link: /feed.xml
---
"""

_WORKFLOW_TEMPLATE = """\
name: PR Digest

on:
  schedule:
    - cron: "{cron}"
  workflow_dispatch:

jobs:
  collect:
    runs-on: ubuntu-latest
    permissions:
      contents: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prdigest
        run: pip install "prdigest=={version}"

      - name: Collect merged PRs
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
        run: prdigest collect

      - name: Commit digest
        run: |
          git config user.name "github-actions[bot]"
          git config user.email "github-actions[bot]@users.noreply.github.com"
          git add {docs_dir}
          git diff --staged --quiet || git commit -m "Update PR digest"
          git push
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up a PR digest for a repository.

    Creates .prdigest.yml, a landing page under the docs directory, and
    optionally a GitHub Actions workflow that collects PRs every day.
    """
    console.print("\n[bold cyan]prdigest init[/bold cyan]: digest setup wizard\n")

    # --- Detect repo from git remote ---
    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    # --- Choose provider ---
    provider = click.prompt(
        "AI provider",
        type=click.Choice(["openai", "anthropic"]),
        default="openai",
    )
    api_key_env = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"

    # --- Choose partitioning ---
    partition = click.prompt(
        "Group digest files by",
        type=click.Choice(["month", "week"]),
        default="month",
    )
    docs_dir = click.prompt("Documentation directory", default="docs")

    config: dict = {"repo": repo, "model": provider, "partition": partition, "docs_dir": docs_dir}

    # --- Write .prdigest.yml ---
    _write_config(config)
    console.print("[green]Created .prdigest.yml[/green]")

    # --- Landing page ---
    landing = Path(docs_dir) / "index.md"
    if landing.exists():
        console.print(f"[dim]{landing} already exists, leaving it unchanged.[/dim]")
    else:
        _write_landing_page(landing, repo, partition)
        console.print(f"[green]Created {landing}[/green]")

    # --- GitHub Actions workflow ---
    setup_ci = click.confirm("\nGenerate .github/workflows/prdigest.yml for GitHub Actions?", default=True)
    if setup_ci:
        _write_workflow(api_key_env, docs_dir)
        console.print("[green]Created .github/workflows/prdigest.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Collect PRs with: [bold]prdigest collect[/bold]")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    # https://github.com/owner/repo.git  ->  owner/repo
    # git@github.com:owner/repo.git      ->  owner/repo
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def _write_config(config: dict) -> None:
    """Write or update .prdigest.yml, preserving any existing keys."""
    path = Path(".prdigest.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _write_landing_page(path: Path, repo: str, partition: str) -> None:
    bucket = bucket_for(datetime.now(timezone.utc), partition)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        _LANDING_TEMPLATE.format(
            site_title=f"{repo} PR Digest",
            tagline=f"AI-written summaries of pull requests merged into {repo}",
            latest_label="Latest PRs",
            section=SECTIONS[partition],
            filename=bucket.filename,
        ),
        encoding="utf-8",
    )


def _get_version() -> str:
    """Read the current prdigest version from the installed package metadata."""
    try:
        return importlib.metadata.version("prdigest")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def _write_workflow(api_key_env: str, docs_dir: str, cron: str = "0 0 * * *") -> None:
    """Write the scheduled GitHub Actions workflow file."""
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    workflow_path = workflow_dir / "prdigest.yml"
    workflow_path.write_text(
        _WORKFLOW_TEMPLATE.format(cron=cron, api_key_env=api_key_env, docs_dir=docs_dir, version=_get_version())
    )
