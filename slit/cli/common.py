"""Helpers shared by the stack commands."""

from typing import List, NoReturn

import click

from slit.cli.output import error, info, patch_line, warning
from slit.core.repository import Repository
from slit.errors import GeneralError, SlitError, StackConflict
from slit.stack.model import PatchStack
from slit.stack.stack import Stack


def find_repo() -> Repository:
    """
    Repository containing the current directory.

    Raises:
        GeneralError: If there is none
    """
    repo = Repository.find_repository()
    if not repo:
        raise GeneralError("not a slit repository (or any of the parent directories)")
    return repo


def load_stack() -> Stack:
    return Stack.load(find_repo())


def fail(exc: SlitError) -> NoReturn:
    """Print an error and exit with its status."""
    click.echo(error(str(exc)), err=True)
    raise SystemExit(exc.exit_code)


def conflict_exit(paths: List[str]) -> NoReturn:
    """Report files left conflicted and exit with the conflict status."""
    for path in paths:
        click.echo(warning(f"CONFLICT (content): merge conflict in {path}"), err=True)
    click.echo(info("fix the conflicts and run `slit resolved`, or `slit undo --hard`"), err=True)
    fail(StackConflict(f"{len(paths)} conflict(s)", paths))


def echo_stack(state: PatchStack) -> None:
    """Print the stack, bottom to top then unapplied."""
    for name in state.applied:
        click.echo(patch_line(name, applied=True, top=name == state.top_name))
    for name in state.unapplied:
        click.echo(patch_line(name, applied=False, top=False))
