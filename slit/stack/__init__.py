"""The patch stack.

This module contains:
- Patches, patch names and the stack model
- The append-only stack log (undo / redo)
- Stack transactions and conflict tracking
- Reorder planning and the squash operation
"""

from slit.stack.patch import Patch, PatchState, make_patch_name, validate_patch_name
from slit.stack.model import PatchStack
from slit.stack.log import Snapshot, SnapshotLog
from slit.stack.conflicts import ConflictHandler, ConflictRecord, TransactionState
from slit.stack.transaction import StackTransaction
from slit.stack.squash import SquashContext, SquashRequest, SquashResult, squash
from slit.stack.stack import Stack

__all__ = [
    'Patch', 'PatchState', 'make_patch_name', 'validate_patch_name',
    'PatchStack',
    'Snapshot', 'SnapshotLog',
    'ConflictHandler', 'ConflictRecord', 'TransactionState',
    'StackTransaction',
    'SquashContext', 'SquashRequest', 'SquashResult', 'squash',
    'Stack',
]
