"""Stack transactions.

A transaction works on a copy of the stack. Pops and pushes only create
objects in the store; refs, the work tree and the stack log are touched
once, in ``execute``. Discarding a transaction before ``execute`` leaves
no trace.
"""

import logging
from typing import Dict, List, Optional, Sequence

from slit.core.objects import Identity
from slit.errors import CommandError
from slit.operations.merge import MergeResult
from slit.stack.conflicts import ConflictHandler, ConflictRecord
from slit.stack.log import SnapshotLog, materialize
from slit.stack.model import PatchStack
from slit.stack.patch import PatchState

logger = logging.getLogger(__name__)


class StackTransaction:
    """
    In-memory edit of a patch stack.

    Example:
        trans = StackTransaction(repo, 'main', state, committer, 'pop')
        trans.pop_from(2)
        trans.execute('pop')
    """

    def __init__(self, repo, branch: str, state: PatchStack, committer: Identity, operation: str):
        """
        Open a transaction.

        Args:
            repo: Repository instance
            branch: Branch owning the stack
            state: Current stack state (not modified)
            committer: Identity recorded on rewritten commits
            operation: Command name, recorded with conflicts

        Raises:
            CommandError: If the stack is Conflicted
        """
        self.repo = repo
        self.branch = branch
        self.original = state
        self.state = state.copy()
        self.committer = committer
        self.operation = operation
        self.log = SnapshotLog(repo, branch)

        self.conflict: Optional[MergeResult] = None
        self.conflict_patch: Optional[str] = None

        self.handler = ConflictHandler(repo)
        self.handler.begin()
        self._open = True

    @property
    def top(self) -> str:
        return self.state.top

    @property
    def top_tree(self) -> str:
        return self.repo.read_commit(self.state.top).tree

    @property
    def applied(self) -> List[str]:
        return list(self.state.applied)

    @property
    def unapplied(self) -> List[str]:
        return list(self.state.unapplied)

    def _check_open(self) -> None:
        if not self._open:
            raise CommandError("transaction already finished")

    def pop_from(self, index: int) -> List[str]:
        """
        Pop every applied patch from ``index`` up.

        Popped patches go to the front of the unapplied list, keeping
        their order.

        Returns:
            Names popped, bottom to top
        """
        self._check_open()
        popped = self.state.applied[index:]
        self.state.applied = self.state.applied[:index]
        self.state.unapplied = popped + self.state.unapplied
        if popped:
            logger.debug("pop: %s", popped)
        return popped

    def push_patch(self, name: str) -> bool:
        """
        Push an unapplied patch onto the current top.

        A patch whose parent is the top is pushed as is. Otherwise its
        changes are merged onto the top and it gets a new commit with the
        same author and message.

        Returns:
            True if pushed; False if the merge conflicted, in which case
            the patch stays unapplied and no further push is possible
        """
        self._check_open()
        if self.conflict is not None:
            return False
        if name not in self.state.unapplied:
            raise CommandError(f"patch `{name}` is not unapplied")

        commit_id = self.state.commits[name]
        commit = self.repo.read_commit(commit_id)
        top = self.state.top

        if commit.parent != top:
            if commit.parent and self.repo.merge.diff_commits(commit.parent, commit_id).is_empty:
                # empty patch, reparent without merging
                merged_tree = self.top_tree
            else:
                parent_tree = self.repo.read_commit(commit.parent).tree if commit.parent else self.repo.empty_tree()
                result = self.repo.merge.apply_diff(self.top_tree, parent_tree, commit.tree, 'current', name)

                if not result.success:
                    logger.debug("push %s: conflicts in %s", name, [c.path for c in result.conflicts])
                    self.conflict = result
                    self.conflict_patch = name
                    return False
                merged_tree = result.merged_tree_hash

            commit_id = self.repo.create_commit(
                merged_tree,
                top,
                commit.author,
                commit.message,
                committer=self.committer,
                author_time=commit.author_time,
            )
            self.state.commits[name] = commit_id
            logger.debug("push %s: merged as %s", name, commit_id[:7])
        else:
            logger.debug("push %s: fast-forward", name)

        self.state.unapplied.remove(name)
        self.state.applied.append(name)
        return True

    def push_patches(self, names: Sequence[str]) -> bool:
        """Push patches in order, stopping at the first conflict."""
        for name in names:
            if not self.push_patch(name):
                return False
        return True

    def new_patch(self, name: str, commit_id: str) -> None:
        """Add a patch on top of the applied ones; its parent must be the top."""
        self._check_open()
        if self.repo.read_commit(commit_id).parent != self.state.top:
            raise CommandError(f"commit {commit_id[:7]} is not on top of the stack")
        self.state.replace_range(
            len(self.state.applied), len(self.state.applied),
            [(name, commit_id, PatchState.APPLIED)],
        )

    def replace_applied(self, start: int, stop: int, name: str, commit_id: str) -> None:
        """Replace applied patches ``start:stop`` with a single applied patch."""
        self._check_open()
        self.state.replace_range(start, stop, [(name, commit_id, PatchState.APPLIED)])

    def _head_files(self, commit_id: str) -> Dict[str, str]:
        return self.repo.read_tree_files(self.repo.read_commit(commit_id).tree)

    def execute(self, message: str) -> List[str]:
        """
        Write the transaction out.

        Moves patch refs and the branch head, updates the work tree,
        records a conflict if a push failed and appends one snapshot.

        Args:
            message: Stack log message

        Returns:
            Paths left with conflict markers (empty on success)
        """
        self._check_open()
        self._open = False

        old_files = self._head_files(self.repo.refs.read_ref(f'refs/heads/{self.branch}'))
        materialize(self.repo, self.branch, self.original, self.state)

        paths: List[str] = []
        if self.conflict is not None:
            paths = [conflict.path for conflict in self.conflict.conflicts]
            self.repo.worktree.checkout(old_files, self.conflict.merged_files)
            self.repo.worktree.write_conflicts(self.conflict.conflicts)
            self.handler.record_conflict(ConflictRecord(
                patch=self.conflict_patch,
                paths=paths,
                operation=self.operation,
                files=self.conflict.merged_files,
            ))
        else:
            self.repo.worktree.checkout(old_files, self._head_files(self.state.head))
            self.handler.commit()

        self.log.capture(self.state, message, force=self.conflict is not None)
        return paths

    def rollback(self) -> None:
        """Discard the transaction; nothing outside the object store changed."""
        if self._open:
            self._open = False
            self.handler.rollback()
            logger.debug("%s: rolled back", self.operation)
