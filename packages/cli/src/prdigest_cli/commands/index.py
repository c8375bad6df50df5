"""index command: rebuild the partition manifest and the landing page's latest link."""

from __future__ import annotations

import click
from rich.console import Console

from prdigest_store.index import rebuild_index, update_latest_pointer

console = Console()


def refresh_index(config: dict, paths: dict) -> int:
    """Rewrite the manifest and re-point the landing page. Returns the manifest size."""
    scheme = config.get("partition", "month")
    manifest = rebuild_index(paths["partition_dir"], paths["index_file"], scheme)
    console.print(f"[green]Generated index with {len(manifest)} entries: {paths['index_file']}[/green]")

    label = config.get("latest_link_label", "Latest PRs")
    if update_latest_pointer(manifest, paths["landing_page"], label=label, scheme=scheme):
        console.print(f"Updated landing page link to: /{manifest[0].url}")
    return len(manifest)


@click.command("index")
@click.pass_context
def index_cmd(ctx):
    """Rebuild the manifest of partition files and update the landing page."""
    refresh_index(ctx.obj["config"], ctx.obj["paths"])
