"""Reference management for Slit."""

from typing import List, Optional, Tuple

from slit.core.objects import Commit
from slit.errors import ObjectError, GeneralError


class RefManager:
    """
    Manages references (HEAD, branches, patch refs, stack log refs).

    Handles:
    - Symbolic HEAD pointing at a branch
    - Branch references (refs/heads/*)
    - Patch references (refs/patches/<branch>/<patch>)
    - Stack log references (refs/stacks/<branch>)
    """

    def __init__(self, repo):
        """
        Initialize reference manager.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.slit_dir = repo.slit_dir
        self.refs_dir = self.slit_dir / 'refs'
        self.head_file = self.slit_dir / 'HEAD'

    def read_ref(self, ref_name: str) -> Optional[str]:
        """
        Read a reference and return its commit hash.

        Args:
            ref_name: Full reference name (e.g. 'refs/heads/main') or 'HEAD'

        Returns:
            Commit hash or None if reference doesn't exist
        """
        if ref_name == 'HEAD':
            return self.resolve_head()

        ref_path = self.slit_dir / ref_name
        if not ref_path.is_file():
            return None

        content = ref_path.read_text().strip()
        if content.startswith('ref: '):
            return self.read_ref(content[5:])
        return content or None

    def write_ref(self, ref_name: str, commit_hash: str) -> None:
        """
        Point a reference at a commit.

        Args:
            ref_name: Full reference name
            commit_hash: Commit hash to point to

        Raises:
            ObjectError: If the target is not a commit in the store
        """
        obj = self.repo.read_object(commit_hash)
        if not isinstance(obj, Commit):
            raise ObjectError(f"cannot point {ref_name} at non-commit {commit_hash[:7]}")

        ref_path = self.slit_dir / ref_name
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        ref_path.write_text(commit_hash + '\n')

    def delete_ref(self, ref_name: str) -> bool:
        """
        Delete a reference, pruning directories it leaves empty.

        Returns:
            True if deleted, False if not found
        """
        ref_path = self.slit_dir / ref_name
        if not ref_path.is_file():
            return False

        ref_path.unlink()
        parent = ref_path.parent
        while parent != self.refs_dir and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True

    def list_refs(self, prefix: str) -> List[Tuple[str, str]]:
        """
        List references below a prefix.

        Args:
            prefix: Reference prefix such as 'refs/patches/main'

        Returns:
            Sorted list of (name relative to prefix, commit hash)
        """
        base = self.slit_dir / prefix
        if not base.is_dir():
            return []

        refs = []
        for ref_file in base.rglob('*'):
            if ref_file.is_file():
                name = ref_file.relative_to(base).as_posix()
                refs.append((name, ref_file.read_text().strip()))

        return sorted(refs)

    def get_current_branch(self) -> Optional[str]:
        """
        Get the current branch name.

        Returns:
            Branch name or None if in detached HEAD state
        """
        if not self.head_file.exists():
            return None

        content = self.head_file.read_text().strip()
        if content.startswith('ref: refs/heads/'):
            return content[16:]
        return None

    def require_branch(self) -> str:
        """
        Current branch name; stacks cannot live on a detached HEAD.

        Raises:
            GeneralError: If HEAD is detached
        """
        branch = self.get_current_branch()
        if branch is None:
            raise GeneralError("not on a branch (HEAD is detached)")
        return branch

    def resolve_head(self) -> Optional[str]:
        """
        Resolve HEAD to a commit hash.

        Returns:
            Commit hash or None if HEAD doesn't point at a commit yet
        """
        if not self.head_file.exists():
            return None

        content = self.head_file.read_text().strip()
        if content.startswith('ref: '):
            return self.read_ref(content[5:])
        return content or None

    def update_head(self, commit_hash: str) -> None:
        """Move the current branch (or a detached HEAD) to a commit."""
        branch = self.get_current_branch()
        if branch is not None:
            self.write_ref(f'refs/heads/{branch}', commit_hash)
        else:
            self.repo.read_commit(commit_hash)
            self.head_file.write_text(commit_hash + '\n')
