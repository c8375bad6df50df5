"""Core collection run: fetch merged PRs, drop the ones already stored, summarize the rest."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests
from github import GithubException
from rich.console import Console

from prdigest_core.config import load_prompt
from prdigest_core.gh.pull_request import MergeRecord, get_client, get_pull_details, search_merged_pulls
from prdigest_core.providers.anthropic import AnthropicSummarizer
from prdigest_core.providers.base import BaseSummarizer
from prdigest_core.providers.openai import OpenAISummarizer

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class SummarizedPull:
    record: MergeRecord
    summary: str


@dataclass
class CollectSummary:
    """Result returned by run_collect. Carries enough data for the CLI to persist entries.

    Decoupled from prdigest_store so prdigest_core has no dependency on the store layer.
    The CLI converts each SummarizedPull to a DigestEntry before merging.
    """

    repo: str
    fetched: int = 0
    already_stored: int = 0
    failed: list[int] = field(default_factory=list)
    unmerged: list[int] = field(default_factory=list)
    items: list[SummarizedPull] = field(default_factory=list)
    collected_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def get_summarizer(config: dict) -> BaseSummarizer:
    model = config["model"]
    options = {
        "instructions": load_prompt(config),
        "language": config.get("language", "English"),
        "max_files": config.get("max_files_in_prompt", 20),
    }
    if model == "openai":
        return OpenAISummarizer(api_key=config["openai_api_key"], **options)
    if model == "anthropic":
        return AnthropicSummarizer(api_key=config["anthropic_api_key"], **options)
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'openai' or 'anthropic'.")


def run_collect(
    repo: str,
    config: dict,
    existing_ids: set[int],
    summarizer: BaseSummarizer | None = None,
    gh=None,
    repo_obj=None,
    now: datetime | None = None,
) -> CollectSummary:
    """Summarize every recently merged PR whose number is not in *existing_ids*.

    PRs are processed one at a time with ``request_delay`` seconds between
    summarization calls. Items come back in processing order. A PR whose
    details cannot be fetched is recorded in ``failed`` and skipped; a PR
    without a merge time is recorded in ``unmerged`` and skipped.
    """
    summary = CollectSummary(repo=repo)
    gh = gh if gh is not None else get_client(config["github_token"])
    days = config.get("lookback_days", 1)

    console.print(f"Fetching recently merged PRs from [bold]{repo}[/bold]...")
    candidates = search_merged_pulls(gh, repo, days=days, max_results=config.get("max_results", 100), now=now)
    summary.fetched = len(candidates)
    if not candidates:
        console.print(f"[yellow]No merged PRs found in the last {days} day(s).[/yellow]")
        return summary

    new = [c for c in candidates if c.number not in existing_ids]
    summary.already_stored = len(candidates) - len(new)
    console.print(f"{len(new)} new PR(s) to process ({summary.already_stored} already stored)")
    if not new:
        return summary

    try:
        this_repo = repo_obj if repo_obj is not None else gh.get_repo(repo)
    except (GithubException, requests.RequestException) as e:
        logger.error("Could not open repository %s: %s", repo, e)
        summary.failed = [c.number for c in new]
        return summary

    summarizer = summarizer or get_summarizer(config)
    delay = float(config.get("request_delay", 1.0))
    total = len(new)

    for i, candidate in enumerate(new, 1):
        console.print(f"\n[[{i}/{total}]] Processing PR #{candidate.number}: {candidate.title}")

        record = get_pull_details(this_repo, candidate.number)
        if record is None:
            console.print("  [red]Could not fetch PR details, skipping.[/red]")
            summary.failed.append(candidate.number)
            continue
        if record.merged_at is None:
            console.print("  [yellow]Not merged yet, skipping.[/yellow]")
            summary.unmerged.append(candidate.number)
            continue

        text = summarizer.summarize(record)
        summary.items.append(SummarizedPull(record=record, summary=text))

        # Pace calls to the summarization service.
        if i < total and delay > 0:
            time.sleep(delay)

    return summary
