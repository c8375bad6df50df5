"""recent command: display the newest digest entries from the data store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prdigest_store.extractor import load_data_store

console = Console()


@click.command("recent")
@click.option("--author", default=None, help="Only show PRs by this GitHub login.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def recent_cmd(ctx, author: str | None, limit: int):
    """Show the most recently merged PRs in the digest.

    Reads the JSON data store, so run `prdigest extract` first if the
    partition files were edited by hand.
    """
    config = ctx.obj["config"]
    data_file = ctx.obj["paths"]["data_file"]
    try:
        store = load_data_store(data_file)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    items = store.items
    if author:
        items = [i for i in items if i.author.lower() == author.lower()]
    if not items:
        console.print("[yellow]No digest entries found.[/yellow]")
        return

    table = Table(title=f"Recent PRs in {config.get('repo') or data_file}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=7)
    table.add_column("Title", max_width=50)
    table.add_column("Author", width=18)
    table.add_column("Merged At", width=20)

    for item in items[:limit]:
        table.add_row(
            f"#{item.number}",
            item.title[:50],
            f"@{item.author}",
            item.merged_at[:19].replace("T", " "),
        )

    console.print(table)
    console.print(f"[dim]Data store updated {store.last_updated[:19].replace('T', ' ')} UTC[/dim]")
