"""Core functionality for Slit.

This module contains the object store the patch stack is built on:
- Slit objects (Blob, Tree, Commit) and identities
- Repository management
- Reference management
- Work tree materialization
- Configuration management
- Hashing utilities

For tree merges, see slit.operations
For the patch stack itself, see slit.stack
"""

from slit.core.objects import SlitObject, Blob, Tree, TreeEntry, Commit, Identity
from slit.core.repository import Repository
from slit.core.hash import hash_object, hash_blob_data
from slit.core.refs import RefManager
from slit.core.worktree import Worktree
from slit.core.config import Config, get_config

__all__ = [
    'SlitObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'Identity',
    'Repository',
    'RefManager',
    'Worktree',
    'Config',
    'get_config',
    'hash_object',
    'hash_blob_data',
]
