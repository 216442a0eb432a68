"""Commit message assembly for stack operations.

Covers the editor buffer offered when squashing, comment stripping,
trailer handling and the ``commit-msg`` hook.
"""

import logging
import os
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import click

from slit.core.objects import Identity
from slit.errors import CommandError, GeneralError

logger = logging.getLogger(__name__)

Trailer = Tuple[str, str]

_TRAILER_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9-]*: \S')


def strip_comments(text: str) -> str:
    """
    Clean up an edited message.

    Lines starting with '#' are dropped, trailing whitespace is removed,
    runs of blank lines collapse to one and surrounding blank lines go.

    Returns:
        Cleaned message ending in a newline, or '' if nothing is left
    """
    lines = []
    for line in text.splitlines():
        if line.startswith('#'):
            continue
        line = line.rstrip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)

    while lines and not lines[-1]:
        lines.pop()

    return '\n'.join(lines) + '\n' if lines else ''


def _is_trailer_block(paragraph: List[str]) -> bool:
    return bool(paragraph) and all(_TRAILER_RE.match(line) for line in paragraph)


def append_trailers(message: str, trailers: Sequence[Trailer]) -> str:
    """
    Add trailers to a message.

    Trailers join an existing trailer paragraph at the end of the message
    (never the subject paragraph); otherwise a blank line separates them.
    A trailer already present in that paragraph is not repeated.

    Args:
        message: Commit message
        trailers: (key, value) pairs in order

    Returns:
        Message with trailers, ending in a newline
    """
    lines = message.rstrip().splitlines()
    if not trailers:
        return '\n'.join(lines) + '\n' if lines else ''

    split = len(lines)
    while split > 0 and lines[split - 1].strip():
        split -= 1
    last_paragraph = lines[split:]

    if split > 0 and _is_trailer_block(last_paragraph):
        body, block = lines[:split], last_paragraph
    elif lines:
        body, block = lines + [''], []
    else:
        body, block = [], []

    existing = set(block)
    for key, value in trailers:
        line = f"{key}: {value}"
        if line not in existing:
            block.append(line)
            existing.add(line)

    return '\n'.join(body + block) + '\n'


def format_trailers(trailers: Sequence[Trailer]) -> str:
    return ''.join(f"{key}: {value}\n" for key, value in trailers)


def build_squash_buffer(
    messages: Sequence[Tuple[str, str]],
    trailers: Sequence[Trailer],
    author: Identity,
    patch_name: Optional[str],
) -> str:
    """
    Editor buffer for a squash.

    Args:
        messages: (patch name, message) per target, in squash order
        trailers: Trailers computed for the squashed patch
        author: Author the squashed patch will get
        patch_name: Explicit name, if one was given

    Returns:
        Buffer text
    """
    parts = []
    for number, (name, message) in enumerate(messages, start=1):
        parts.append(f"# Commit message from patch #{number}: {name}\n{message.rstrip()}\n\n")

    if trailers:
        parts.append(format_trailers(trailers) + '\n')

    parts.append(
        "# Please enter the message for the squashed patch. Lines starting\n"
        "# with '#' will be ignored, and an empty message aborts the squash.\n"
        "#\n"
        f"# Author: {author}\n"
    )
    if patch_name:
        parts.append(f"# Patch:  {patch_name}\n")
    else:
        parts.append("# Patch:  named after the first line of the message\n")

    return ''.join(parts)


def run_editor(repo, buffer: str, editor: str, filename: str = 'SQUASH_MSG') -> str:
    """
    Let the user edit ``buffer`` and return the edited text.

    The buffer is written under the repository directory and handed to
    ``click.edit``.

    Raises:
        CommandError: If the editor exits with a non-zero status
    """
    path = repo.slit_dir / filename
    path.write_text(buffer)
    logger.debug("editing %s with %r", path, editor)

    try:
        click.edit(filename=str(path), editor=editor)
        return path.read_text()
    except click.ClickException as e:
        raise CommandError(f"editor `{editor}` failed: {e.format_message()}")
    finally:
        if path.exists():
            path.unlink()


def read_message_file(path: str) -> str:
    """
    Read a message file; '-' reads standard input.

    Raises:
        GeneralError: If the file cannot be read
    """
    if path == '-':
        return click.get_text_stream('stdin').read()
    try:
        return Path(path).read_text()
    except OSError as e:
        raise GeneralError(f"cannot read message file `{path}`: {e.strerror}")


def hooks_dir(repo) -> Path:
    """Directory hooks are looked up in (``core.hookspath`` or .slit/hooks)."""
    configured = repo.config.get('core', 'hookspath')
    if configured:
        path = Path(configured).expanduser()
        return path if path.is_absolute() else repo.work_tree / path
    return repo.hooks_dir


def run_commit_msg_hook(repo, message: str, hook_dir: Optional[Path] = None) -> str:
    """
    Run the ``commit-msg`` hook on a message.

    The hook gets the path of a file holding the message and may rewrite
    it. Missing or non-executable hooks are skipped.

    Returns:
        The message as left by the hook

    Raises:
        CommandError: If the hook exits with a non-zero status
    """
    hook = (hook_dir or hooks_dir(repo)) / 'commit-msg'
    if not hook.is_file() or not os.access(hook, os.X_OK):
        return message

    msg_file = repo.slit_dir / 'COMMIT_EDITMSG'
    msg_file.write_text(message)
    logger.debug("running %s", hook)

    try:
        result = subprocess.run([str(hook), str(msg_file)], cwd=repo.work_tree)
        if result.returncode != 0:
            raise CommandError(f"commit-msg hook failed with exit status {result.returncode}")
        return msg_file.read_text()
    finally:
        if msg_file.exists():
            msg_file.unlink()
