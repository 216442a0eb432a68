"""Stack snapshot log.

Every stack operation appends one snapshot of the complete stack state to
a per-branch log. The log is a chain of commits at ``refs/stacks/<branch>``:
each commit's tree holds a single ``stack.json`` blob and its parent is the
previous snapshot. Undo and redo restore earlier snapshots and are logged
themselves, so the log is append-only.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from slit.core.objects import Blob, Identity
from slit.errors import CommandError, DirtyWorkingTree, NotFound, ObjectError
from slit.stack.conflicts import ConflictHandler
from slit.stack.model import PatchStack

logger = logging.getLogger(__name__)

LOG_VERSION = 1
STATE_FILE = 'stack.json'
LOG_IDENTITY = Identity('slit', 'slit@localhost')


@dataclass
class Snapshot:
    """
    One entry of the stack log.

    ``kind`` is 'op' for ordinary operations and 'undo'/'redo' for
    navigation entries. Navigation entries carry the sequence number whose
    state they restored (``position``) and the sequence number of the
    latest ordinary entry (``limit``), which bounds redo.
    """
    sequence: int
    message: str
    state: PatchStack
    kind: str = 'op'
    position: Optional[int] = None
    limit: Optional[int] = None
    id: Optional[str] = None

    @property
    def is_navigation(self) -> bool:
        return self.kind in ('undo', 'redo')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {'version': LOG_VERSION, 'sequence': self.sequence, 'message': self.message}
        data.update(self.state.to_dict())
        data.update({'kind': self.kind, 'position': self.position, 'limit': self.limit})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], repo=None, snapshot_id: Optional[str] = None) -> 'Snapshot':
        """Create from dictionary."""
        if data.get('version') != LOG_VERSION:
            raise ObjectError(f"unsupported stack log version {data.get('version')}")
        return cls(
            sequence=data['sequence'],
            message=data['message'],
            state=PatchStack.from_dict(data, repo),
            kind=data.get('kind', 'op'),
            position=data.get('position'),
            limit=data.get('limit'),
            id=snapshot_id,
        )

    def __repr__(self) -> str:
        return f"Snapshot({self.sequence}, {self.kind}, {self.message!r})"


def materialize(repo, branch: str, old: PatchStack, new: PatchStack) -> None:
    """
    Point the patch refs and the branch head at a stack state.

    Patch refs missing from ``new`` are deleted. The work tree is left alone.
    """
    prefix = f'refs/patches/{branch}'
    for name in old.commits:
        if name not in new.commits:
            repo.refs.delete_ref(f'{prefix}/{name}')
    for name, commit_id in new.commits.items():
        if old.commits.get(name) != commit_id or repo.refs.read_ref(f'{prefix}/{name}') != commit_id:
            repo.refs.write_ref(f'{prefix}/{name}', commit_id)

    if repo.refs.read_ref(f'refs/heads/{branch}') != new.head:
        repo.refs.write_ref(f'refs/heads/{branch}', new.head)


class SnapshotLog:
    """
    Append-only log of stack states for one branch.

    Supports:
    - Capturing the current state
    - Restoring any earlier state (softly or discarding local changes)
    - Undo / redo navigation
    """

    def __init__(self, repo, branch: str):
        """
        Initialize snapshot log.

        Args:
            repo: Repository instance
            branch: Branch whose stack is logged
        """
        self.repo = repo
        self.branch = branch
        self.ref = f'refs/stacks/{branch}'

    def exists(self) -> bool:
        return self.repo.refs.read_ref(self.ref) is not None

    def read(self, snapshot_id: str) -> Snapshot:
        """Load the snapshot stored in a log commit."""
        commit = self.repo.read_commit(snapshot_id)
        files = self.repo.read_tree_files(commit.tree)
        if STATE_FILE not in files:
            raise ObjectError(f"stack log entry {snapshot_id[:7]} has no {STATE_FILE}")
        data = json.loads(self.repo.read_blob(files[STATE_FILE]).decode())
        return Snapshot.from_dict(data, self.repo, snapshot_id)

    def tip(self) -> Optional[Snapshot]:
        """Newest snapshot, or None if the log is empty."""
        tip_id = self.repo.refs.read_ref(self.ref)
        return self.read(tip_id) if tip_id else None

    def history(self) -> Iterator[Snapshot]:
        """Iterate snapshots newest first."""
        snapshot_id = self.repo.refs.read_ref(self.ref)
        while snapshot_id:
            yield self.read(snapshot_id)
            snapshot_id = self.repo.read_commit(snapshot_id).parent

    def get(self, sequence: int) -> Snapshot:
        """
        Look up a snapshot by sequence number.

        Raises:
            NotFound: If the log has no such entry
        """
        for snapshot in self.history():
            if snapshot.sequence == sequence:
                return snapshot
            if snapshot.sequence < sequence:
                break
        raise NotFound(f"stack log has no entry {sequence}")

    def capture(
        self,
        state: PatchStack,
        message: str,
        kind: str = 'op',
        position: Optional[int] = None,
        limit: Optional[int] = None,
        force: bool = False,
    ) -> str:
        """
        Append a snapshot of ``state``.

        An ordinary capture of a state identical to the tip's is a no-op
        unless ``force`` is set. An operation that stopped on a conflict
        forces its entry so that undo has a step to take back.

        Returns:
            Id of the new (or unchanged) tip
        """
        tip_id = self.repo.refs.read_ref(self.ref)
        tip = self.read(tip_id) if tip_id else None

        if (tip is not None and not force and kind == 'op'
                and not tip.is_navigation and tip.state == state):
            return tip_id

        snapshot = Snapshot(
            sequence=tip.sequence + 1 if tip else 0,
            message=message,
            state=state,
            kind=kind,
            position=position,
            limit=limit,
        )
        blob_hash = self.repo.write_object(Blob(json.dumps(snapshot.to_dict(), indent=2).encode()))
        tree_hash = self.repo.write_tree_files({STATE_FILE: blob_hash})
        snapshot_id = self.repo.create_commit(tree_hash, tip_id, LOG_IDENTITY, message)
        self.repo.refs.write_ref(self.ref, snapshot_id)

        logger.debug("stack log: appended %d (%s) %r", snapshot.sequence, kind, message)
        return snapshot_id

    def restore(self, snapshot: Snapshot) -> None:
        """
        Make a logged state the current one.

        Rewrites patch refs, moves the branch head and checks out its tree.

        Raises:
            DirtyWorkingTree: If the work tree has local changes or an
                unresolved conflict
        """
        conflicts = ConflictHandler(self.repo)
        if conflicts.conflicted:
            raise DirtyWorkingTree("the stack has unresolved conflicts; use --hard to discard them")

        head_files = self._branch_head_files()
        if self.repo.worktree.local_changes(head_files):
            raise DirtyWorkingTree("local changes in the work tree; use --hard to discard them")

        current = self.tip().state
        materialize(self.repo, self.branch, current, snapshot.state)
        self.repo.worktree.checkout(head_files, self._files_of(snapshot.state.head))
        logger.debug("stack log: restored %d", snapshot.sequence)

    def restore_hard(self, snapshot: Snapshot) -> None:
        """Like ``restore`` but discard local changes and any recorded conflict."""
        conflicts = ConflictHandler(self.repo)
        record = conflicts.load()

        current_files = self._branch_head_files()
        extra_paths = []
        if record is not None:
            conflicts.roll_back_conflict()
            current_files = record.files
            extra_paths = record.paths

        current = self.tip().state
        materialize(self.repo, self.branch, current, snapshot.state)
        self.repo.worktree.reset_hard(current_files, self._files_of(snapshot.state.head), extra_paths)

        if record is not None:
            conflicts.finish_rollback()
        logger.debug("stack log: hard-restored %d", snapshot.sequence)

    def undo(self, steps: int = 1, hard: bool = False) -> Snapshot:
        """
        Go back ``steps`` entries from the current position.

        Returns:
            The snapshot whose state was restored

        Raises:
            CommandError: If the log does not reach back that far
        """
        if steps < 1:
            raise CommandError("bad number of undo steps")

        tip = self.tip()
        if tip.is_navigation:
            position, limit = tip.position, tip.limit
        else:
            position, limit = tip.sequence, tip.sequence

        target = position - steps
        if target < 0:
            raise CommandError("not enough undo information available")

        return self._navigate(target, 'undo', limit, hard)

    def redo(self, steps: int = 1, hard: bool = False) -> Snapshot:
        """
        Undo the effect of preceding undos.

        Raises:
            CommandError: If there is nothing to redo
        """
        if steps < 1:
            raise CommandError("bad number of redo steps")

        tip = self.tip()
        if not tip.is_navigation:
            raise CommandError("there is no undo to redo")

        target = tip.position + steps
        if target > tip.limit:
            raise CommandError("not enough undos to redo")

        return self._navigate(target, 'redo', tip.limit, hard)

    def _navigate(self, target: int, kind: str, limit: int, hard: bool) -> Snapshot:
        snapshot = self.get(target)
        if hard:
            self.restore_hard(snapshot)
        else:
            self.restore(snapshot)
        self.capture(snapshot.state, f"{kind} to {target}", kind=kind, position=target, limit=limit)
        return snapshot

    def _files_of(self, commit_id: str) -> Dict[str, str]:
        return self.repo.read_tree_files(self.repo.read_commit(commit_id).tree)

    def _branch_head_files(self) -> Dict[str, str]:
        return self._files_of(self.repo.refs.read_ref(f'refs/heads/{self.branch}'))
