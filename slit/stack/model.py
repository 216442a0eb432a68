"""In-memory model of a patch stack."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from slit.errors import CommandError, NotFound
from slit.stack.patch import Patch, PatchState


class PatchStack:
    """
    Ordered patches split into an applied prefix and an unapplied suffix.

    The stack only records names and commit ids. Author and message are
    read from the commits on demand, so a PatchStack built without a
    repository can still be planned over but cannot produce Patch objects.

    Attributes:
        base: Commit below the first applied patch
        applied: Applied patch names, bottom to top
        unapplied: Unapplied patch names, next-to-push first
        commits: Patch name to commit id
    """

    def __init__(
        self,
        base: str,
        applied: Optional[Sequence[str]] = None,
        unapplied: Optional[Sequence[str]] = None,
        commits: Optional[Dict[str, str]] = None,
        repo=None,
    ):
        self.base = base
        self.applied: List[str] = list(applied or [])
        self.unapplied: List[str] = list(unapplied or [])
        self.commits: Dict[str, str] = dict(commits or {})
        self.repo = repo

    @property
    def all_names(self) -> List[str]:
        """Every patch name in stack order."""
        return self.applied + self.unapplied

    @property
    def top(self) -> str:
        """Commit of the topmost applied patch, or the base."""
        if self.applied:
            return self.commits[self.applied[-1]]
        return self.base

    @property
    def head(self) -> str:
        """Commit the branch head must point at for this stack."""
        return self.top

    @property
    def top_name(self) -> Optional[str]:
        return self.applied[-1] if self.applied else None

    def __contains__(self, name: str) -> bool:
        return name in self.commits

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatchStack):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def state_of(self, name: str) -> PatchState:
        if name in self.applied:
            return PatchState.APPLIED
        if name in self.unapplied:
            return PatchState.UNAPPLIED
        raise NotFound(f"patch `{name}` does not exist")

    def get(self, name: str) -> Patch:
        """
        Look up a patch by name.

        Raises:
            NotFound: If no patch has this name
        """
        state = self.state_of(name)
        commit_id = self.commits[name]
        commit = self.repo.read_commit(commit_id)
        return Patch(name, commit_id, commit.author, commit.message, state)

    def by_commit(self, commit_id: str) -> Optional[Patch]:
        """Patch whose commit is ``commit_id``, or None."""
        for name in self.all_names:
            if self.commits[name] == commit_id:
                return self.get(name)
        return None

    def collides(self, name: str) -> Optional[str]:
        """Existing patch name equal to ``name``, or None."""
        return name if name in self.commits else None

    def replace_range(self, start: int, stop: int, patches: Sequence[Tuple[str, str, PatchState]]) -> None:
        """
        Replace a contiguous slice of the ordered sequence.

        Args:
            start: First position to replace
            stop: Position after the last one replaced
            patches: (name, commit, state) entries to splice in

        Raises:
            CommandError: If the result would repeat a name or put an
                applied patch above an unapplied one
        """
        sequence = [(name, PatchState.APPLIED) for name in self.applied]
        sequence += [(name, PatchState.UNAPPLIED) for name in self.unapplied]

        removed = {name for name, _ in sequence[start:stop]}
        spliced = sequence[:start] + [(name, state) for name, _, state in patches] + sequence[stop:]

        names = [name for name, _ in spliced]
        if len(set(names)) != len(names):
            raise CommandError("patch names must be unique within a stack")

        states = [state for _, state in spliced]
        boundary = states.count(PatchState.APPLIED)
        if any(state is not PatchState.APPLIED for state in states[:boundary]):
            raise CommandError("applied patches must form a contiguous prefix of the stack")

        commits = {name: commit for name, commit in self.commits.items() if name not in removed}
        commits.update({name: commit for name, commit, _ in patches})

        self.applied = names[:boundary]
        self.unapplied = names[boundary:]
        self.commits = commits

    def copy(self) -> 'PatchStack':
        return PatchStack(self.base, self.applied, self.unapplied, self.commits, self.repo)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'base': self.base,
            'head': self.head,
            'applied': list(self.applied),
            'unapplied': list(self.unapplied),
            'patches': dict(self.commits),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], repo=None) -> 'PatchStack':
        """Create from dictionary."""
        return cls(
            base=data['base'],
            applied=data['applied'],
            unapplied=data['unapplied'],
            commits=data['patches'],
            repo=repo,
        )

    def __repr__(self) -> str:
        return f"PatchStack(applied={self.applied}, unapplied={self.unapplied})"
