"""Slit - stacked patches on a Git-like content-addressable store."""

__version__ = '0.1.0'

from slit.core.repository import Repository
from slit.core.objects import Identity, Blob, Tree, Commit
from slit.stack.stack import Stack

__all__ = [
    'Repository',
    'Identity',
    'Blob',
    'Tree',
    'Commit',
    'Stack',
]
