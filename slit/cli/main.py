"""Main CLI entry point for Slit."""

import logging
import os

import click
from colorama import init

from slit import __version__
from slit.cli.output import BANNER
from slit.cli.resolve import Ambiguous, Unique, resolve
from slit.cli.commands import (init_cmd, config_cmd, squash_cmd, undo_cmd, redo_cmd,
                               push_cmd, pop_cmd, resolved_cmd, log_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class SlitGroup(click.Group):
    """Group that shows the banner in help and accepts command prefixes."""

    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)

    def get_command(self, ctx, cmd_name):
        resolution = resolve(cmd_name, self.list_commands(ctx))
        if isinstance(resolution, Unique):
            return super().get_command(ctx, resolution.name)
        if isinstance(resolution, Ambiguous):
            ctx.fail(f"ambiguous command `{cmd_name}`: {', '.join(resolution.candidates)}")
        return None

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd else None, cmd, args


@click.group(cls=SlitGroup)
@click.version_option(version=__version__)
def cli():
    """Manage a stack of patches on top of a branch."""
    if os.environ.get('SLIT_DEBUG'):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


# Register commands
cli.add_command(init_cmd)
cli.add_command(config_cmd)
cli.add_command(squash_cmd)
cli.add_command(undo_cmd)
cli.add_command(redo_cmd)
cli.add_command(push_cmd)
cli.add_command(pop_cmd)
cli.add_command(resolved_cmd)
cli.add_command(log_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
