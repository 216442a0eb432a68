"""Work tree materialization for Slit.

The work tree mirrors the tree of the branch head. The stack engine moves
it between trees with ``checkout``, writes conflict markers into it when a
merge fails, and reads it back when the user resolves conflicts by hand.
"""

import logging
from typing import Dict, Iterable, List, Optional

from slit.core.hash import hash_blob_data
from slit.core.objects import Blob

logger = logging.getLogger(__name__)


class Worktree:
    """Reads and writes the files of a repository's work tree."""

    def __init__(self, repo):
        """
        Initialize work tree handler.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.root = repo.work_tree

    def _write(self, path: str, data: bytes) -> None:
        full_path = self.root / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)

    def _remove(self, path: str) -> None:
        full_path = self.root / path
        if full_path.is_file():
            full_path.unlink()

        parent = full_path.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def file_hash(self, path: str) -> Optional[str]:
        """Blob id of a work tree file, or None if it does not exist."""
        full_path = self.root / path
        if not full_path.is_file():
            return None
        return hash_blob_data(full_path.read_bytes())

    def list_files(self) -> List[str]:
        """Every file in the work tree outside the repository directory."""
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob('*')
            if path.is_file() and self.repo.slit_dir not in path.parents
        )

    def local_changes(self, head_files: Dict[str, str]) -> List[str]:
        """
        Tracked paths whose work tree content differs from the head tree.

        Untracked files are ignored.

        Args:
            head_files: Flattened head tree

        Returns:
            Sorted list of changed or missing paths
        """
        return sorted(
            path for path, blob_hash in head_files.items()
            if self.file_hash(path) != blob_hash
        )

    def checkout(self, from_files: Dict[str, str], to_files: Dict[str, str]) -> None:
        """
        Move the work tree from one flattened tree to another.

        Only paths that differ between the two trees are touched.
        """
        for path in from_files:
            if path not in to_files:
                self._remove(path)

        for path, blob_hash in to_files.items():
            if from_files.get(path) != blob_hash or self.file_hash(path) != blob_hash:
                self._write(path, self.repo.read_blob(blob_hash))

        logger.debug("checkout: %d -> %d files", len(from_files), len(to_files))

    def reset_hard(
        self,
        current_files: Dict[str, str],
        to_files: Dict[str, str],
        extra_paths: Iterable[str] = (),
    ) -> None:
        """
        Force the work tree to a flattened tree, discarding local changes.

        Args:
            current_files: Tree the work tree is believed to hold
            to_files: Tree to materialize
            extra_paths: Additional paths to delete if not in ``to_files``
                (files created by a failed merge)
        """
        for path in set(current_files) | set(extra_paths):
            if path not in to_files:
                self._remove(path)

        for path, blob_hash in to_files.items():
            if self.file_hash(path) != blob_hash:
                self._write(path, self.repo.read_blob(blob_hash))

        logger.debug("reset --hard to %d files", len(to_files))

    def write_conflicts(self, conflicts) -> None:
        """Write the marked-up content of each conflict into the work tree."""
        for conflict in conflicts:
            self._write(conflict.path, conflict.marked_content)

    def has_conflict_markers(self, path: str) -> bool:
        """Whether a work tree file still contains conflict markers."""
        full_path = self.root / path
        if not full_path.is_file():
            return False
        for line in full_path.read_bytes().splitlines():
            if line.startswith((b'<<<<<<< ', b'>>>>>>> ')) or line == b'=======':
                return True
        return False

    def capture(self, base_files: Dict[str, str], paths: Iterable[str]) -> Dict[str, str]:
        """
        Record the work tree content of some paths on top of a tree.

        Files present on disk are written as blobs; missing ones are dropped.

        Args:
            base_files: Flattened tree to start from
            paths: Paths whose on-disk state should win

        Returns:
            New flattened tree
        """
        files = dict(base_files)
        for path in paths:
            full_path = self.root / path
            if full_path.is_file():
                files[path] = self.repo.write_object(Blob(full_path.read_bytes()))
            else:
                files.pop(path, None)
        return files
