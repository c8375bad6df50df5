"""extract command: re-derive the JSON data store from the partition files."""

from __future__ import annotations

from datetime import datetime

import click
from rich.console import Console

from prdigest_store.entry import EntryLabels
from prdigest_store.extractor import DEFAULT_RETENTION, extract_all, save_data_store

console = Console()


def labels_from_config(config: dict) -> EntryLabels:
    return EntryLabels(
        merged=config.get("merged_label", "Merged"),
        author=config.get("author_label", "Author"),
        date_format=config.get("date_format", "%Y/%m/%d"),
    )


def refresh_data_store(config: dict, paths: dict, now: datetime | None = None) -> int:
    """Rewrite the data store from scratch. Returns the number of items kept."""
    store = extract_all(
        paths["partition_dir"],
        labels=labels_from_config(config),
        scheme=config.get("partition", "month"),
        retention=config.get("retention", DEFAULT_RETENTION),
        now=now,
    )
    save_data_store(store, paths["data_file"])
    console.print(f"[green]Extracted and saved {store.total_count} PRs to {paths['data_file']}[/green]")
    return store.total_count


@click.command("extract")
@click.pass_context
def extract_cmd(ctx):
    """Regenerate the JSON data store from the partition files."""
    refresh_data_store(ctx.obj["config"], ctx.obj["paths"])
