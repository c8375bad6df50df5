"""collect command: summarize newly merged PRs and refresh every published artifact."""

from __future__ import annotations

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.rule import Rule

from prdigest_cli.commands.extract import labels_from_config, refresh_data_store
from prdigest_cli.commands.feed import render_feed
from prdigest_cli.commands.index import refresh_index
from prdigest_core.digest import SummarizedPull, run_collect
from prdigest_store.buckets import Bucket, bucket_for, window_buckets
from prdigest_store.entry import render_entry
from prdigest_store.models import DigestEntry

console = Console()


def _pull_to_entry(item: SummarizedPull) -> DigestEntry:
    """Map a SummarizedPull returned by run_collect() to a DigestEntry for the store.

    The CLI layer owns this mapping: prdigest_core has no store knowledge and
    prdigest_store has no core knowledge. The CLI bridges the two.
    """
    record = item.record
    return DigestEntry(
        number=record.number,
        title=record.title,
        url=record.html_url,
        merged_at=record.merged_at,
        author=record.user.login if record.user else None,
        author_url=record.user.html_url if record.user else None,
        summary=item.summary,
    )


def _group_by_bucket(entries: list[DigestEntry], scheme: str) -> dict[Bucket, list[DigestEntry]]:
    """Group entries by the bucket of their merge time, keeping input order inside each group."""
    groups: dict[Bucket, list[DigestEntry]] = {}
    for entry in entries:
        groups.setdefault(bucket_for(entry.merged_at, scheme), []).append(entry)
    return groups


def _existing_ids(store, now: datetime, days: int, scheme: str) -> set[int]:
    ids: set[int] = set()
    for bucket in window_buckets(now, days, scheme):
        ids |= store.existing_ids(bucket)
    return ids


@click.command("collect")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--days", type=int, default=None, help="Lookback window in days. Overrides config file.")
@click.option(
    "--dry-run",
    "dry_run",
    is_flag=True,
    help="Print the rendered entries without writing any files.",
)
@click.pass_context
def collect_cmd(ctx, model: str | None, days: int | None, dry_run: bool):
    """Summarize recently merged pull requests into the digest.

    Fetches PRs merged within the lookback window, skips those already in the
    digest, summarizes the rest with GPT-4o or Claude, and prepends them to
    the partition file for their merge period. The manifest, landing page,
    data store and RSS feed are then regenerated.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required when using --model openai
      ANTHROPIC_API_KEY    Required when using --model anthropic
    """
    config: dict = ctx.obj["config"]
    paths: dict = ctx.obj["paths"]
    store = ctx.obj["store"]

    for key, value in {"model": model, "lookback_days": days}.items():
        if value is not None:
            config[key] = value

    repo = config.get("repo")
    if not repo:
        raise click.UsageError("No repository given. Pass --repo to prdigest or set repo in .prdigest.yml.")
    if not config.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")

    scheme = config.get("partition", "month")
    now = datetime.now(timezone.utc)
    existing = _existing_ids(store, now, config.get("lookback_days", 1), scheme)
    console.print(f"Found {len(existing)} existing PRs in the current digest files")

    summary = run_collect(repo=repo, config=config, existing_ids=existing, now=now)
    if summary.failed:
        console.print(f"[yellow]Could not fetch details for: {', '.join(f'#{n}' for n in summary.failed)}[/yellow]")

    entries = [_pull_to_entry(item) for item in summary.items]
    if not entries:
        console.print("No new PRs to add")
        return

    labels = labels_from_config(config)
    groups = _group_by_bucket(entries, scheme)

    if dry_run:
        for bucket, group in groups.items():
            console.print(Rule(f"{bucket.filename} (dry run)"))
            for entry in group:
                console.print(render_entry(entry, labels), markup=False, highlight=False)
        console.print(f"\n[dim]Dry run: {len(entries)} entries not written.[/dim]")
        return

    for bucket, group in groups.items():
        store.merge(bucket, [render_entry(entry, labels) for entry in group], now=now)
        console.print(f"[green]Added {len(group)} PR(s) to {store.path_for(bucket)}[/green]")

    refresh_index(config, paths)
    refresh_data_store(config, paths, now=now)
    render_feed(config, paths)

    console.print("\n[bold green]PR digest collection completed![/bold green]")
