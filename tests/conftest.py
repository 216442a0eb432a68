"""Shared pytest fixtures for Slit tests."""

import stat
from pathlib import Path

import pytest

from slit.core.config import Config
from slit.core.objects import Blob, Identity
from slit.core.repository import Repository
from slit.stack.squash import SquashContext
from slit.stack.stack import Stack

DEFAULT_AUTHOR = Identity('A U Thor', 'author@example.com')
OTHER_AUTHOR = Identity('Other Contributor', 'another@example.com')


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep tests away from the user's config, editor and identity."""
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', tmp_path_factory.mktemp('home') / '.slitconfig')
    for var in ('VISUAL', 'EDITOR', 'SLIT_DEBUG', 'SLIT_CORE_EDITOR', 'SLIT_CORE_HOOKSPATH',
                'SLIT_STACK_NAMELENGTH', 'SLIT_USER_NAME', 'SLIT_USER_EMAIL'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('SLIT_AUTHOR_NAME', DEFAULT_AUTHOR.name)
    monkeypatch.setenv('SLIT_AUTHOR_EMAIL', DEFAULT_AUTHOR.email)
    # Any unexpected editor invocation fails
    monkeypatch.setenv('SLIT_EDITOR', 'false')


@pytest.fixture
def repo(tmp_path):
    """Create an initialized repository."""
    return Repository(str(tmp_path)).init()


def commit_files(repo, files, parent=None, message="Initial commit\n", author=DEFAULT_AUTHOR):
    """
    Commit file contents and move the current branch and work tree there.

    Helper for tests - bypasses the stack entirely.

    Args:
        repo: Repository instance
        files: Mapping of path to bytes (the complete tree)
        parent: Parent commit hash
        message: Commit message
        author: Author and committer

    Returns:
        str: Commit hash
    """
    blobs = {path: repo.write_object(Blob(content)) for path, content in files.items()}
    commit_hash = repo.create_commit(repo.write_tree_files(blobs), parent, author, message)

    old_files = {}
    if parent:
        old_files = repo.read_tree_files(repo.read_commit(parent).tree)
    repo.worktree.checkout(old_files, blobs)
    repo.refs.update_head(commit_hash)
    return commit_hash


def write_script(path: Path, body: str) -> str:
    """Write an executable shell script and return its path."""
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def read_file(repo, commit_hash, path):
    """Content of a file in a commit's tree."""
    files = repo.read_tree_files(repo.read_commit(commit_hash).tree)
    return repo.read_blob(files[path])


@pytest.fixture
def stack(repo):
    """A stack with nothing applied on top of a one-file base commit."""
    commit_files(repo, {'README': b'base\n'})
    return Stack.initialize(repo)


@pytest.fixture
def foo_stack(stack):
    """
    Stack of six applied patches p0..p5.

    Patch pN sets foo.txt to "foo N", so every patch depends on the one
    below it.
    """
    for i in range(6):
        stack.new_patch(f'p{i}', f'p{i}\n', {'foo.txt': f'foo {i}\n'.encode()})
    return stack


@pytest.fixture
def context():
    """Squash context with the default identity and a no-op editor."""
    return SquashContext(
        default_identity=DEFAULT_AUTHOR,
        committer=DEFAULT_AUTHOR,
        editor='true',
    )
