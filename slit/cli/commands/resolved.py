"""Resolved command - finish a conflicted operation by hand."""

import click

from slit.cli.common import echo_stack, fail, load_stack
from slit.cli.output import success
from slit.errors import SlitError


@click.command('resolved')
def resolved_cmd():
    """
    Mark conflicts as resolved.

    Records the work tree as the new content of the patch that failed to
    push and makes it the top of the stack. Patches that were still waiting
    to be pushed stay unapplied.
    """
    try:
        stack = load_stack()
        name = stack.resolved()
    except SlitError as e:
        fail(e)

    click.echo(success(f"Resolved {name}"))
    echo_stack(stack.state)
