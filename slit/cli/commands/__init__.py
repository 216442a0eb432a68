"""CLI commands for Slit."""

from slit.cli.commands.init import init_cmd
from slit.cli.commands.config import config_cmd
from slit.cli.commands.squash import squash_cmd
from slit.cli.commands.undo import undo_cmd, redo_cmd
from slit.cli.commands.push import push_cmd, pop_cmd
from slit.cli.commands.resolved import resolved_cmd
from slit.cli.commands.log import log_cmd

__all__ = ['init_cmd', 'config_cmd', 'squash_cmd', 'undo_cmd', 'redo_cmd',
           'push_cmd', 'pop_cmd', 'resolved_cmd', 'log_cmd']
