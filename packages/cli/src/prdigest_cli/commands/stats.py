"""stats command: aggregate counts across every partition file."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from prdigest_cli.commands.extract import labels_from_config
from prdigest_store.extractor import extract_file
from prdigest_store.files import list_partitions

console = Console()


@click.command("stats")
@click.option("--top", default=10, show_default=True, help="Number of top authors to show.")
@click.pass_context
def stats_cmd(ctx, top: int):
    """Show per-period entry counts and the most active authors.

    Reads the partition files directly, so the numbers cover the full
    history rather than only the entries kept in the data store.
    """
    config = ctx.obj["config"]
    paths = ctx.obj["paths"]
    labels = labels_from_config(config)

    partitions = list_partitions(paths["partition_dir"], config.get("partition", "month"))
    if not partitions:
        console.print("[yellow]No digest files found.[/yellow]")
        return

    per_bucket: list[tuple[str, int]] = []
    author_counter: Counter[str] = Counter()
    for path, bucket in partitions:
        items = extract_file(path, labels)
        per_bucket.append((bucket.title, len(items)))
        author_counter.update(item.author for item in items)

    total = sum(count for _, count in per_bucket)

    # --- Summary ---
    console.print(f"\n[bold]Digest stats for [cyan]{config.get('repo') or paths['partition_dir']}[/cyan][/bold]")
    console.print(f"  Total PRs:      {total}")
    console.print(f"  Periods:        {len(per_bucket)}")
    console.print(f"  Avg per period: {total / len(per_bucket):.1f}")

    # --- Per-period counts ---
    period_table = Table(title="PRs per Period", show_header=True)
    period_table.add_column("Period", style="bold")
    period_table.add_column("PRs", justify="right")
    for title, count in per_bucket:
        period_table.add_row(title, str(count))
    console.print(period_table)

    # --- Most active authors ---
    if author_counter:
        author_table = Table(title=f"Top {top} Authors", show_header=True)
        author_table.add_column("Author")
        author_table.add_column("PRs", justify="right")
        author_table.add_column("% of total", justify="right")
        for login, count in author_counter.most_common(top):
            author_table.add_row(f"@{login}", str(count), f"{count / total * 100:.1f}%")
        console.print(author_table)
