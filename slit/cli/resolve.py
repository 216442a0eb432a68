"""Command name resolution.

Commands may be abbreviated to any prefix that names exactly one of them.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple, Union


@dataclass(frozen=True)
class Unique:
    name: str


@dataclass(frozen=True)
class Ambiguous:
    prefix: str
    candidates: Tuple[str, ...]


@dataclass(frozen=True)
class NotFound:
    prefix: str


Resolution = Union[Unique, Ambiguous, NotFound]


def resolve(prefix: str, known: Iterable[str]) -> Resolution:
    """
    Resolve a possibly abbreviated command name.

    An exact match always wins, even if it is also the prefix of others.

    Args:
        prefix: Name typed by the user
        known: Available command names

    Returns:
        Unique, Ambiguous or NotFound
    """
    known = list(known)
    if prefix in known:
        return Unique(prefix)

    matches = sorted(name for name in known if prefix and name.startswith(prefix))
    if len(matches) == 1:
        return Unique(matches[0])
    if matches:
        return Ambiguous(prefix, tuple(matches))
    return NotFound(prefix)
