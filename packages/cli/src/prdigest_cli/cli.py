"""CLI entry point for prdigest.

Commands:
  collect  summarize newly merged PRs and refresh every published artifact
  index    rebuild the partition manifest and the landing page's latest link
  extract  re-derive the JSON data store from the partition files
  feed     render the RSS feed from the data store
  recent   display the newest digest entries
  stats    per-period entry counts and most active authors
  init     setup wizard: config file, landing page and scheduled workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from prdigest_cli.commands.collect import collect_cmd
from prdigest_cli.commands.extract import extract_cmd
from prdigest_cli.commands.feed import feed_cmd
from prdigest_cli.commands.index import index_cmd
from prdigest_cli.commands.init import init_cmd
from prdigest_cli.commands.recent import recent_cmd
from prdigest_cli.commands.stats import stats_cmd

console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_store(config: dict, paths: dict):
    """Instantiate the partition store from .prdigest.yml settings.

    This factory lives in cli.py so neither prdigest_core nor prdigest_store
    know about the CLI config format.
    """
    from prdigest_store.markdown import MarkdownStore

    kwargs = {"site_title": config["site_title"], "scheme": config.get("partition", "month")}
    if config.get("site_description"):
        kwargs["blurb"] = config["site_description"]
    return MarkdownStore(paths["partition_dir"], **kwargs)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prdigest"),
    prog_name="prdigest",
)
@click.option(
    "--config",
    "config_path",
    default=".prdigest.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRDIGEST_CONFIG",
)
@click.option(
    "--repo",
    default=None,
    help="GitHub repository in owner/name format. Overrides config file.",
    envvar="PRDIGEST_REPO",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, repo: str | None, verbose: bool):
    """AI-written digests of merged GitHub pull requests."""
    from prdigest_core.config import load_config, resolve_paths
    from prdigest_cli.auth import resolve_github_token

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"repo": repo})

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    try:
        paths = resolve_paths(config)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    store = _build_store(config, paths)
    ctx.obj["config"] = config
    ctx.obj["paths"] = paths
    ctx.obj["store"] = store
    ctx.call_on_close(store.close)


main.add_command(collect_cmd)
main.add_command(index_cmd)
main.add_command(extract_cmd)
main.add_command(feed_cmd)
main.add_command(recent_cmd)
main.add_command(stats_cmd)
main.add_command(init_cmd)
