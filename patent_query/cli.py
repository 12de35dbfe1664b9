"""Command-line interface for patent-query."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from patent_query import __version__
from patent_query.config import Config, load_config
from patent_query.exceptions import ConfigError
from patent_query.store.repository import EntityRepository
from patent_query.utils.output import (
    error,
    set_color,
    set_verbosity,
    warning,
)


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False

    def new_repository(self) -> EntityRepository:
        """Fresh, empty repository using the loaded ``[store]`` settings."""
        if self.config is None:
            return EntityRepository()
        return EntityRepository.from_config(self.config)


pass_context = click.make_pass_decorator(Context, ensure=True)


def _configure_logging(verbose: bool, debug: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("patent_query").setLevel(level)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/patent-query/config.toml)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.version_option(version=__version__, prog_name="patent-query")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
) -> None:
    """patent-query: Compose patent search expressions.

    Write words, classification groups and queries in a compact
    expression language and render them as search query strings
    with /TX, /CP and /FI field suffixes.

    Configuration is loaded from ~/.config/patent-query/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Render every query line of a workbook
        patent-query render queries.txt

        # Show the tree of a single line
        patent-query parse "NB = 基地局+NB+eNB"
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet

    set_verbosity(verbose=verbose, debug=debug)
    _configure_logging(verbose, debug)

    # Color is disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None
    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except ConfigError as e:
        error(str(e))
        ctx.exit(1)
        return
    app_ctx.config = loaded_config

    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from patent_query.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


register_commands()
