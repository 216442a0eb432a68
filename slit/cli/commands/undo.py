"""Undo and redo commands - move through the stack log."""

import click

from slit.cli.common import echo_stack, fail, load_stack
from slit.cli.output import success
from slit.errors import SlitError


@click.command('undo')
@click.option('-n', '--number', 'steps', type=int, default=1, show_default=True,
              help='Undo the last N operations')
@click.option('--hard', is_flag=True, help='Discard local changes and conflicts')
def undo_cmd(steps, hard):
    """
    Undo the last stack operation(s).

    Use --hard to get out of a conflicted state.

    Examples:
        slit undo
        slit undo -n 2
        slit undo --hard
    """
    try:
        stack = load_stack()
        snapshot = stack.undo(steps, hard=hard)
    except SlitError as e:
        fail(e)

    click.echo(success(f"Restored stack state {snapshot.sequence} ({snapshot.message})"))
    echo_stack(stack.state)


@click.command('redo')
@click.option('-n', '--number', 'steps', type=int, default=1, show_default=True,
              help='Redo the last N undos')
@click.option('--hard', is_flag=True, help='Discard local changes and conflicts')
def redo_cmd(steps, hard):
    """
    Undo the effect of the preceding undo(s).

    Examples:
        slit redo
        slit redo -n 2
    """
    try:
        stack = load_stack()
        snapshot = stack.redo(steps, hard=hard)
    except SlitError as e:
        fail(e)

    click.echo(success(f"Restored stack state {snapshot.sequence} ({snapshot.message})"))
    echo_stack(stack.state)
