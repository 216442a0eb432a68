"""Conflict tracking for stack transactions.

A transaction that stops on a merge conflict leaves a record in
``.slit/CONFLICT``. While it exists the stack is Conflicted and no new
transaction may start; ``undo --hard`` or ``resolved`` clear it.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from slit.errors import CommandError

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    CLEAN = 'clean'
    MERGE_IN_PROGRESS = 'merge-in-progress'
    CONFLICTED = 'conflicted'
    ROLLED_BACK = 'rolled-back'


_TRANSITIONS = {
    TransactionState.CLEAN: {TransactionState.MERGE_IN_PROGRESS},
    TransactionState.MERGE_IN_PROGRESS: {TransactionState.CLEAN, TransactionState.CONFLICTED},
    TransactionState.CONFLICTED: {TransactionState.ROLLED_BACK, TransactionState.CLEAN},
    TransactionState.ROLLED_BACK: {TransactionState.CLEAN},
}


@dataclass
class ConflictRecord:
    """
    A conflict left in the work tree by a stack operation.

    Attributes:
        patch: Patch whose push conflicted
        paths: Files holding conflict markers
        operation: Command that stopped (e.g. 'squash', 'push')
        files: Flattened tree the work tree was moved to, before the
            conflicted files were written
    """
    patch: str
    paths: List[str]
    operation: str
    files: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConflictRecord':
        """Create from dictionary."""
        return cls(**data)


class ConflictHandler:
    """
    State machine guarding stack transactions.

    States move Clean -> MergeInProgress when a transaction opens, then
    back to Clean when it is committed or discarded, or to Conflicted
    when a merge fails. A Conflicted stack returns to Clean through
    ``resolved`` or through RolledBack with ``undo --hard``.
    """

    def __init__(self, repo):
        """
        Initialize conflict handler.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.record_file = repo.conflict_file
        self.state = TransactionState.CONFLICTED if self.record_file.exists() else TransactionState.CLEAN

    def _transition(self, target: TransactionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise CommandError(f"cannot go from {self.state.value} to {target.value}")
        logger.debug("conflict state: %s -> %s", self.state.value, target.value)
        self.state = target

    @property
    def conflicted(self) -> bool:
        return self.state is TransactionState.CONFLICTED

    def load(self) -> Optional[ConflictRecord]:
        """Read the persisted conflict record, if any."""
        if not self.record_file.exists():
            return None
        return ConflictRecord.from_dict(json.loads(self.record_file.read_text()))

    def begin(self) -> None:
        """
        Open a transaction.

        Raises:
            CommandError: If an unresolved conflict is recorded
        """
        if self.conflicted:
            raise CommandError(
                "resolve outstanding conflicts first "
                "(fix them and run `slit resolved`, or `slit undo --hard`)"
            )
        self._transition(TransactionState.MERGE_IN_PROGRESS)

    def commit(self) -> None:
        """Close a transaction that finished without conflicts."""
        self._transition(TransactionState.CLEAN)

    def rollback(self) -> None:
        """Discard a transaction that has not been committed."""
        self._transition(TransactionState.CLEAN)

    def record_conflict(self, record: ConflictRecord) -> None:
        """Close a transaction that stopped on a conflict and persist it."""
        self._transition(TransactionState.CONFLICTED)
        self.record_file.write_text(json.dumps(record.to_dict(), indent=2))

    def roll_back_conflict(self) -> None:
        """Mark a recorded conflict as being discarded by a hard reset."""
        self._transition(TransactionState.ROLLED_BACK)

    def finish_rollback(self) -> None:
        """Drop the conflict record once the hard reset is done."""
        self._transition(TransactionState.CLEAN)
        self._clear()

    def mark_resolved(self) -> None:
        """Drop the conflict record after manual resolution."""
        self._transition(TransactionState.CLEAN)
        self._clear()

    def _clear(self) -> None:
        if self.record_file.exists():
            self.record_file.unlink()
