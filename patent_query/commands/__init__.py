"""Subcommands of the ``patent-query`` CLI.

Every public module in this package that defines a click command named
``cli`` is registered on the group in :mod:`patent_query.cli`.
"""

from __future__ import annotations

import importlib
import pkgutil
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from collections.abc import Iterator

COMMANDS_PACKAGE = "patent_query.commands"


def discover_commands() -> Iterator[click.Command]:
    """Yield the ``cli`` command of each module, ordered by module name."""
    package = importlib.import_module(COMMANDS_PACKAGE)
    names = sorted(m.name for m in pkgutil.iter_modules(package.__path__))
    for name in names:
        if name.startswith("_"):
            continue
        module = importlib.import_module(f"{COMMANDS_PACKAGE}.{name}")
        command = getattr(module, "cli", None)
        if isinstance(command, click.Command):
            yield command
