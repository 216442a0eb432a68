"""Patches and patch names."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from slit.core.objects import Identity
from slit.errors import GeneralError


class PatchState(Enum):
    """Which partition of the stack a patch lives in."""
    APPLIED = 'applied'
    UNAPPLIED = 'unapplied'


@dataclass
class Patch:
    """
    A named patch and the commit that materializes it.

    The author and message are those recorded on the commit.
    """
    name: str
    commit: str
    author: Identity
    message: str
    state: PatchState

    @property
    def applied(self) -> bool:
        return self.state is PatchState.APPLIED

    def __repr__(self) -> str:
        return f"Patch({self.name}, {self.commit[:7]}, {self.state.value})"


_FORBIDDEN_CHARS = set('~^:?*[\\')
_FORBIDDEN_SEQUENCES = ('..', '@{', '//')
_FORBIDDEN_PREFIXES = ('.', '-', '/')
_FORBIDDEN_SUFFIXES = ('/', '.', '.lock')


def is_valid_patch_name(name: str) -> bool:
    """
    Check a patch name against the reference-name grammar.

    Patch names become the last component(s) of ``refs/patches/<branch>/``
    so they follow the same rules as branch names.
    """
    if not name or name == '@':
        return False

    for char in name:
        if char.isspace() or ord(char) < 0x20 or ord(char) == 0x7f or char in _FORBIDDEN_CHARS:
            return False

    if any(seq in name for seq in _FORBIDDEN_SEQUENCES):
        return False

    return not (name.startswith(_FORBIDDEN_PREFIXES) or name.endswith(_FORBIDDEN_SUFFIXES))


def validate_patch_name(name: str) -> str:
    """
    Return ``name`` unchanged if it is a valid patch name.

    Raises:
        GeneralError: If the name breaks the grammar
    """
    if not is_valid_patch_name(name):
        raise GeneralError(f"invalid patch name `{name}`")
    return name


def uniquify(name: str, disallow: Iterable[str]) -> str:
    """Append ``-1``, ``-2``, ... to ``name`` until it is not in ``disallow``."""
    taken = set(disallow)
    if name not in taken:
        return name

    suffix = 1
    while f"{name}-{suffix}" in taken:
        suffix += 1
    return f"{name}-{suffix}"


def _truncate(slug: str, length_limit: int) -> str:
    if length_limit <= 0 or len(slug) <= length_limit:
        return slug

    # Cut at a word boundary when there is one
    cut = slug[:length_limit]
    boundary = cut.rfind('-')
    if boundary > 0:
        cut = cut[:boundary]
    return cut.strip('-')


def make_patch_name(
    message: str,
    length_limit: int = 30,
    disallow: Optional[Iterable[str]] = None,
) -> str:
    """
    Derive a patch name from a commit message.

    Args:
        message: Commit message; only its first non-blank line is used
        length_limit: Maximum slug length, 0 for no limit
        disallow: Names already taken

    Returns:
        A valid, unused patch name

    Example:
        >>> make_patch_name("wee woo\\n\\nbody")
        'wee-woo'
    """
    first_line = next((line for line in message.splitlines() if line.strip()), '')
    slug = re.sub(r'[^a-z0-9]+', '-', first_line.lower()).strip('-')
    slug = _truncate(slug, length_limit) or 'patch'
    return uniquify(slug, disallow or ())
