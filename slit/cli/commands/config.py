"""Config command - manage repository configuration."""

import click

from slit.cli.common import fail
from slit.cli.output import success
from slit.core.config import get_config
from slit.core.repository import Repository
from slit.errors import GeneralError, SlitError


def _split_key(key):
    section, option = key.split('.', 1) if '.' in key else ('core', key)
    return section, option


@click.group('config')
def config_cmd():
    """Get and set repository or global options."""
    pass


@config_cmd.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--global', 'is_global', is_flag=True, help='Set global config')
def config_set(key, value, is_global):
    """
    Set a config value.

    Examples:
        slit config set user.name "Your Name"
        slit config set stack.namelength 40
        slit config set --global core.editor nano
    """
    try:
        repo = Repository.find_repository()
        if not is_global and not repo:
            raise GeneralError("not a slit repository (use --global for global config)")

        section, option = _split_key(key)
        get_config(repo).set(section, option, value, global_config=is_global)
    except SlitError as e:
        fail(e)

    scope = "global" if is_global else "repository"
    click.echo(success(f"Set {scope} config: {key} = {value}"))


@config_cmd.command('get')
@click.argument('key')
def config_get(key):
    """
    Get a config value.

    Environment overrides (SLIT_<SECTION>_<KEY>) are taken into account.

    Examples:
        slit config get user.name
    """
    section, option = _split_key(key)
    value = get_config(Repository.find_repository()).get(section, option)
    if value is None:
        fail(GeneralError(f"config key not found: {key}"))
    click.echo(value)
