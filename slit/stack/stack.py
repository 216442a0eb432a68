"""The patch stack of a branch."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from slit.core.objects import Blob, Identity
from slit.errors import CommandError, DirtyWorkingTree, GeneralError
from slit.stack.conflicts import ConflictHandler
from slit.stack.log import Snapshot, SnapshotLog, materialize
from slit.stack.model import PatchStack
from slit.stack.patch import validate_patch_name
from slit.stack.transaction import StackTransaction

logger = logging.getLogger(__name__)


class Stack:
    """
    Entry point to the stack of the current branch.

    The current state is always the tip of the snapshot log; every
    operation here either reads it or replaces it through a transaction.
    """

    def __init__(self, repo, branch: str):
        """
        Initialize stack handle.

        Args:
            repo: Repository instance
            branch: Branch owning the stack
        """
        self.repo = repo
        self.branch = branch
        self.log = SnapshotLog(repo, branch)

    @classmethod
    def initialize(cls, repo) -> 'Stack':
        """
        Start an empty stack on the current branch.

        Raises:
            GeneralError: If the branch has no commits or already has a stack
        """
        branch = repo.refs.require_branch()
        stack = cls(repo, branch)
        if stack.log.exists():
            raise GeneralError(f"branch `{branch}` already has a stack")

        head = repo.refs.read_ref(f'refs/heads/{branch}')
        if head is None:
            raise GeneralError(f"branch `{branch}` has no commits")

        stack.log.capture(PatchStack(head, repo=repo), "initialise")
        logger.debug("initialised stack on %s at %s", branch, head[:7])
        return stack

    @classmethod
    def load(cls, repo) -> 'Stack':
        """
        Stack of the current branch.

        Raises:
            GeneralError: If the branch has no stack
        """
        branch = repo.refs.require_branch()
        stack = cls(repo, branch)
        if not stack.log.exists():
            raise GeneralError(f"branch `{branch}` not initialized (run `slit init`)")
        return stack

    @property
    def state(self) -> PatchStack:
        """Current stack state."""
        return self.log.tip().state

    @property
    def conflicts(self) -> ConflictHandler:
        return ConflictHandler(self.repo)

    @property
    def branch_head(self) -> str:
        return self.repo.refs.read_ref(f'refs/heads/{self.branch}')

    def _files(self, commit_id: str) -> Dict[str, str]:
        return self.repo.read_tree_files(self.repo.read_commit(commit_id).tree)

    def check_not_conflicted(self) -> None:
        if self.conflicts.conflicted:
            raise CommandError(
                "resolve outstanding conflicts first "
                "(fix them and run `slit resolved`, or `slit undo --hard`)"
            )

    def check_clean(self) -> None:
        """
        Raises:
            DirtyWorkingTree: If tracked files differ from the branch head
        """
        changed = self.repo.worktree.local_changes(self._files(self.branch_head))
        if changed:
            raise DirtyWorkingTree(
                "local changes in the work tree; commit or revert them first: "
                + ', '.join(changed)
            )

    def check_head_top_mismatch(self) -> None:
        """
        Raises:
            CommandError: If the branch was moved outside the stack
        """
        if self.branch_head != self.state.top:
            raise CommandError("HEAD and stack top are not the same")

    def check_ready(self) -> None:
        """Preconditions shared by every stack-modifying operation."""
        self.check_not_conflicted()
        self.check_clean()
        self.check_head_top_mismatch()

    def transaction(self, operation: str, committer: Optional[Identity] = None) -> StackTransaction:
        """Open a transaction on the current state."""
        return StackTransaction(self.repo, self.branch, self.state, committer, operation)

    def _committer(self, committer: Optional[Identity]) -> Identity:
        return committer or self.repo.config.get_user_identity()

    def new_patch(
        self,
        name: str,
        message: str,
        changes: Dict[str, Optional[bytes]],
        author: Optional[Identity] = None,
        committer: Optional[Identity] = None,
    ) -> str:
        """
        Create a patch on top of the stack from file changes.

        Args:
            name: Patch name
            message: Commit message
            changes: Path to new content, or None to delete the path
            author: Patch author (defaults to the committer)
            committer: Committer (defaults to the configured identity)

        Returns:
            Commit id of the new patch
        """
        self.check_ready()
        validate_patch_name(name)
        state = self.state
        if state.collides(name):
            raise CommandError(f"patch name `{name}` already taken")

        committer = self._committer(committer)
        files = self._files(state.top)
        for path, content in changes.items():
            if content is None:
                files.pop(path, None)
            else:
                files[path] = self.repo.write_object(Blob(content))

        commit_id = self.repo.create_commit(
            self.repo.write_tree_files(files),
            state.top,
            author or committer,
            message,
            committer=committer,
        )

        trans = self.transaction('new', committer)
        trans.new_patch(name, commit_id)
        trans.execute(f"new {name}")
        return commit_id

    def push(
        self,
        names: Optional[Sequence[str]] = None,
        count: Optional[int] = None,
        all_patches: bool = False,
        committer: Optional[Identity] = None,
    ) -> Tuple[List[str], List[str]]:
        """
        Push unapplied patches.

        Args:
            names: Patches to push, in order (default: the next one)
            count: Push this many of the next unapplied patches
            all_patches: Push every unapplied patch

        Returns:
            (names pushed, paths left with conflict markers)
        """
        self.check_ready()
        state = self.state

        if names:
            for name in names:
                state.state_of(name)
                if name in state.applied:
                    raise CommandError(f"patch `{name}` is already applied")
            to_push = list(dict.fromkeys(names))
        elif all_patches:
            to_push = list(state.unapplied)
        else:
            count = 1 if count is None else count
            if count < 1:
                raise CommandError("bad number of patches to push")
            if count > len(state.unapplied):
                raise CommandError(f"only {len(state.unapplied)} patch(es) unapplied")
            to_push = state.unapplied[:count]

        if not to_push:
            raise CommandError("no patches to push")

        trans = self.transaction('push', self._committer(committer))
        trans.push_patches(to_push)
        pushed = [name for name in to_push if name in trans.applied]
        conflicts = trans.execute(f"push {' '.join(to_push)}")
        return pushed, conflicts

    def pop(self, count: Optional[int] = None, all_patches: bool = False) -> List[str]:
        """
        Pop applied patches from the top.

        Returns:
            Names popped, bottom to top
        """
        self.check_ready()
        state = self.state

        if all_patches:
            count = len(state.applied)
        elif count is None:
            count = 1

        if not state.applied:
            raise CommandError("no patches applied")
        if count < 1:
            raise CommandError("bad number of patches to pop")
        if count > len(state.applied):
            raise CommandError(f"only {len(state.applied)} patch(es) applied")

        trans = self.transaction('pop')
        popped = trans.pop_from(len(state.applied) - count)
        trans.execute(f"pop {' '.join(popped)}")
        return popped

    def resolved(self, committer: Optional[Identity] = None) -> str:
        """
        Finish a conflicted push with the work tree content.

        The conflicting patch gets a new commit on top of the stack built
        from the work tree and becomes applied.

        Returns:
            Name of the patch that was resolved

        Raises:
            CommandError: If there is no conflict, the branch was moved
                or markers remain
        """
        handler = self.conflicts
        record = handler.load()
        if record is None:
            raise CommandError("no conflicts to resolve")
        self.check_head_top_mismatch()

        unresolved = [path for path in record.paths if self.repo.worktree.has_conflict_markers(path)]
        if unresolved:
            raise CommandError(f"conflict markers remain in: {', '.join(unresolved)}")

        committer = self._committer(committer)
        state = self.state
        patch = state.get(record.patch)
        original = self.repo.read_commit(patch.commit)

        changed = set(record.paths) | set(self.repo.worktree.local_changes(record.files))
        files = self.repo.worktree.capture(record.files, changed)
        commit_id = self.repo.create_commit(
            self.repo.write_tree_files(files),
            state.top,
            original.author,
            original.message,
            committer=committer,
            author_time=original.author_time,
        )

        new_state = state.copy()
        new_state.unapplied.remove(record.patch)
        new_state.applied.append(record.patch)
        new_state.commits[record.patch] = commit_id

        materialize(self.repo, self.branch, state, new_state)
        handler.mark_resolved()
        self.log.capture(new_state, f"resolved {record.patch}")
        logger.debug("resolved %s as %s", record.patch, commit_id[:7])
        return record.patch

    def undo(self, steps: int = 1, hard: bool = False) -> Snapshot:
        """Restore the state ``steps`` log entries back."""
        return self.log.undo(steps, hard)

    def redo(self, steps: int = 1, hard: bool = False) -> Snapshot:
        """Reverse ``steps`` preceding undos."""
        return self.log.redo(steps, hard)

    def __repr__(self) -> str:
        return f"Stack({self.branch})"
