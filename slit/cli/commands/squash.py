"""Squash command - combine patches into one."""

import click

from slit.cli.common import conflict_exit, echo_stack, fail, find_repo
from slit.cli.output import info, success
from slit.core.objects import Identity
from slit.errors import SlitError
from slit.stack.squash import SquashContext, SquashRequest, select_message_source, squash
from slit.stack.stack import Stack


@click.command('squash')
@click.argument('patches', nargs=-1, required=True)
@click.option('-n', '--name', 'name', help='Name of the squashed patch')
@click.option('-m', '--message', help='Use MESSAGE for the squashed patch')
@click.option('-f', '--file', 'file', help='Read the message from FILE ("-" for stdin)')
@click.option('--save-template', help='Write the message template to FILE and exit')
@click.option('-e', '--edit', is_flag=True, help='Edit the message even if one was given')
@click.option('--author', help='Set the author, as "Name <email>"')
@click.option('--signoff', is_flag=True, help='Add a Signed-off-by trailer')
@click.option('--no-verify', is_flag=True, help='Do not run the commit-msg hook')
def squash_cmd(patches, name, message, file, save_template, edit, author, signoff, no_verify):
    """
    Squash two or more patches into one.

    The patches are combined in the order given, at the position of the
    lowest applied one. Patches that were above it are pushed back
    afterwards. If none is applied the result is left unapplied, next in
    line to be pushed.

    Examples:
        slit squash p1 p2
        slit squash -n fix-parser -m "Fix the parser" p3 p1
        slit squash --save-template msg.txt p1 p2
    """
    try:
        repo = find_repo()
        stack = Stack.load(repo)
        request = SquashRequest(
            targets=list(patches),
            explicit_name=name,
            message_source=select_message_source(message, file, save_template),
            author_override=Identity.parse(author) if author is not None else None,
            edit=edit,
            signoff=signoff,
            no_verify=no_verify,
        )
        result = squash(stack, request, SquashContext.from_repo(repo))
    except SlitError as e:
        fail(e)

    if result.template_path:
        if result.template_path != '-':
            click.echo(info(f"Template saved to {result.template_path}"))
        return

    if result.patch_name:
        click.echo(success(f"Squashed {', '.join(patches)} into {result.patch_name}"))

    echo_stack(stack.state)

    if result.conflicted:
        conflict_exit(result.conflicts)
