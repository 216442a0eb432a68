"""Initialize a repository and the stack of its current branch."""

import click
from pathlib import Path

from slit.cli.common import fail
from slit.cli.output import success, info
from slit.core.repository import Repository
from slit.errors import SlitError
from slit.stack.stack import Stack


@click.command('init')
@click.argument('path', default='.')
def init_cmd(path):
    """
    Initialize a Slit repository and an empty patch stack.

    Creates the .slit directory if needed. A new repository gets a root
    commit holding the files already present, which becomes the stack base.

    Examples:
        slit init                   # Initialize in current directory
        slit init my-project        # Initialize in my-project directory
    """
    try:
        repo_path = Path(path).resolve()
        if not repo_path.exists():
            repo_path.mkdir(parents=True)
            click.echo(info(f"Created directory {repo_path}"))

        repo = Repository(str(repo_path))
        if not repo.slit_dir.exists():
            repo.init()
            click.echo(success(f"Initialized empty Slit repository in {repo.slit_dir}"))

        branch = repo.refs.require_branch()
        if repo.refs.read_ref(f'refs/heads/{branch}') is None:
            identity = repo.config.get_user_identity()
            files = repo.worktree.capture({}, repo.worktree.list_files())
            root = repo.create_commit(repo.write_tree_files(files), None, identity, "Initial commit\n")
            repo.refs.write_ref(f'refs/heads/{branch}', root)
            click.echo(info(f"Recorded {len(files)} file(s) in the initial commit {root[:7]}"))

        Stack.initialize(repo)
    except SlitError as e:
        fail(e)

    click.echo(success(f"Initialized stack on branch {branch}"))
