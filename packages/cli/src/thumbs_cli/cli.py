"""CLI entry point for thumbs.

Commands:
  validate: clone, build and test a pull request, then merge it if it qualifies
  history:  display past validation runs from the configured store
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from thumbs_cli.commands.history import history_cmd
from thumbs_cli.commands.validate import validate_cmd

console = Console()


def _build_store(settings: dict):
    """Instantiate the configured history store.

      store: sqlite → SQLiteStore (store_path, default .thumbs.db)
      (default)     → NoOpStore
    """
    from thumbs_store.noop import NoOpStore

    if settings.get("store") == "sqlite":
        from thumbs_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=settings.get("store_path", ".thumbs.db"))

    return NoOpStore()


def _version() -> str:
    try:
        return importlib.metadata.version("thumbs")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


@click.group()
@click.version_option(version=_version(), prog_name="thumbs")
@click.option(
    "--config",
    "config_path",
    default=".thumbs-bot.yml",
    show_default=True,
    help="Path to the bot settings file.",
    envvar="THUMBS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Validate pull requests and merge them once they have enough +1s."""
    from thumbs_core.config import load_settings

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(console=console)])

    ctx.ensure_object(dict)
    settings = load_settings(config_path)
    store = _build_store(settings)
    ctx.obj["settings"] = settings
    ctx.obj["store"] = store
    ctx.call_on_close(store.close)


main.add_command(validate_cmd)
main.add_command(history_cmd)
