"""Initialize configuration file for patent-query."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from patent_query.cli import Context, pass_context
from patent_query.config import get_default_config_path
from patent_query.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return (
        resources.files("patent_query").joinpath("config.example.toml").read_text(encoding="utf-8")
    )


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/patent-query/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    The file lists every option with its default value and a comment.

    \b
    Examples:
      patent-query init-config
      patent-query init-config --output ./patent-query.toml
      patent-query init-config --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_load_example_config(), encoding="utf-8")
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    if ctx.quiet:
        return
    success(f"Created config file: {config_path}")
    info("Edit this file to change entity limits, token length and output format.")
