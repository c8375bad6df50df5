"""feed command: render the RSS feed from the data store."""

from __future__ import annotations

import click
from rich.console import Console

from prdigest_store.feed import FeedRenderer

console = Console()


def render_feed(config: dict, paths: dict) -> int:
    """Render the feed. Raises click.ClickException when the data store is missing or corrupt."""
    if not config.get("base_url"):
        raise click.UsageError("No base_url configured. Set base_url in .prdigest.yml or the BASE_URL variable.")

    renderer = FeedRenderer(
        paths["data_file"],
        paths["feed_file"],
        config["base_url"],
        section=paths["section"],
        title=config["site_title"],
        description=config.get("site_description") or f"Summaries of pull requests merged into {config.get('repo')}",
        language=config.get("feed_language", "en"),
        copyright=config.get("copyright"),
    )
    try:
        count = renderer.generate()
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(f"Error generating RSS feed: {e}") from e

    if count:
        console.print(f"[green]RSS feed generated with {count} items: {paths['feed_file']}[/green]")
    else:
        console.print("[yellow]No PRs in the data store, feed not written.[/yellow]")
    return count


@click.command("feed")
@click.pass_context
def feed_cmd(ctx):
    """Render the RSS feed from the data store."""
    render_feed(ctx.obj["config"], ctx.obj["paths"])
