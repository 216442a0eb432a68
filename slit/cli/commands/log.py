"""Log command - show the stack log."""

import click
from colorama import Fore, Style

from slit.cli.common import fail, load_stack
from slit.errors import SlitError


@click.command('log')
@click.option('-n', '--number', 'limit', type=int, help='Show only the last N entries')
def log_cmd(limit):
    """
    Show the history of stack operations, newest first.

    Examples:
        slit log
        slit log -n 5
    """
    try:
        stack = load_stack()
        entries = []
        for snapshot in stack.log.history():
            if limit is not None and len(entries) >= limit:
                break
            entries.append(snapshot)
    except SlitError as e:
        fail(e)

    for snapshot in entries:
        click.echo(
            f"{Fore.YELLOW}{snapshot.sequence:>4}{Style.RESET_ALL}  "
            f"{snapshot.id[:7]}  {snapshot.message}"
        )
