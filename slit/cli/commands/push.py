"""Push and pop commands - apply and unapply patches."""

import click

from slit.cli.common import conflict_exit, echo_stack, fail, load_stack
from slit.cli.output import info, success
from slit.errors import SlitError


@click.command('push')
@click.argument('patches', nargs=-1)
@click.option('-a', '--all', 'all_patches', is_flag=True, help='Push all unapplied patches')
@click.option('-n', '--number', 'count', type=int, help='Push the next N patches')
def push_cmd(patches, all_patches, count):
    """
    Push unapplied patches onto the stack.

    Without arguments the next unapplied patch is pushed. Named patches
    are pushed in the order given.

    Examples:
        slit push
        slit push -n 3
        slit push p4 p2
    """
    try:
        stack = load_stack()
        pushed, conflicts = stack.push(list(patches), count=count, all_patches=all_patches)
    except SlitError as e:
        fail(e)

    for name in pushed:
        click.echo(info(f"Pushed {name}"))
    echo_stack(stack.state)

    if conflicts:
        conflict_exit(conflicts)
    click.echo(success(f"Pushed {len(pushed)} patch(es)"))


@click.command('pop')
@click.option('-a', '--all', 'all_patches', is_flag=True, help='Pop all applied patches')
@click.option('-n', '--number', 'count', type=int, help='Pop the top N patches')
def pop_cmd(all_patches, count):
    """
    Pop patches off the top of the stack.

    Examples:
        slit pop
        slit pop -n 2
        slit pop --all
    """
    try:
        stack = load_stack()
        popped = stack.pop(count=count, all_patches=all_patches)
    except SlitError as e:
        fail(e)

    for name in reversed(popped):
        click.echo(info(f"Popped {name}"))
    echo_stack(stack.state)
    click.echo(success(f"Popped {len(popped)} patch(es)"))
