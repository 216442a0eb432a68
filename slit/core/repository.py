"""Repository management for Slit."""

import zlib
from pathlib import Path
from typing import Dict, Optional

from slit.core.objects import SlitObject, Blob, Tree, Commit, Identity
from slit.errors import ObjectError


class Repository:
    """
    Represents a Slit repository.

    A repository manages the .slit directory structure and provides the
    object store primitives the stack engine is built on: reading and
    writing objects, flattening trees to ``{path: blob}`` maps and back,
    and creating commits.
    """

    def __init__(self, path: str = '.'):
        """
        Initialize repository.

        Args:
            path: Path to repository root (defaults to current directory)
        """
        self.work_tree = Path(path).resolve()
        self.slit_dir = self.work_tree / '.slit'
        self.objects_dir = self.slit_dir / 'objects'
        self.refs_dir = self.slit_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.hooks_dir = self.slit_dir / 'hooks'
        self.head_file = self.slit_dir / 'HEAD'
        self.config_file = self.slit_dir / 'config'
        self.conflict_file = self.slit_dir / 'CONFLICT'

        # Lazy loading to avoid circular imports
        self._ref_manager = None
        self._merge_engine = None
        self._worktree = None
        self._config = None

    @property
    def refs(self):
        """Get RefManager instance."""
        if self._ref_manager is None:
            from slit.core.refs import RefManager
            self._ref_manager = RefManager(self)
        return self._ref_manager

    @property
    def merge(self):
        """Get MergeEngine instance."""
        if self._merge_engine is None:
            from slit.operations.merge import MergeEngine
            self._merge_engine = MergeEngine(self)
        return self._merge_engine

    @property
    def worktree(self):
        """Get Worktree instance."""
        if self._worktree is None:
            from slit.core.worktree import Worktree
            self._worktree = Worktree(self)
        return self._worktree

    @property
    def config(self):
        """Get Config instance for this repository."""
        if self._config is None:
            from slit.core.config import Config
            self._config = Config(self.config_file)
        return self._config

    def init(self) -> 'Repository':
        """
        Initialize a new repository.

        Creates the .slit directory structure:
        .slit/
        ├── objects/       # Object database
        ├── refs/
        │   ├── heads/     # Branches
        │   ├── patches/   # One ref per patch, per branch
        │   └── stacks/    # Snapshot log tip, per branch
        ├── hooks/         # commit-msg and friends
        ├── HEAD           # Current branch
        └── config         # Repository configuration

        Returns:
            Repository: self for method chaining

        Raises:
            FileExistsError: If repository already exists
        """
        if self.slit_dir.exists():
            raise FileExistsError(f"Repository already exists at {self.slit_dir}")

        self.slit_dir.mkdir()
        self.objects_dir.mkdir()
        self.heads_dir.mkdir(parents=True)
        (self.refs_dir / 'patches').mkdir()
        (self.refs_dir / 'stacks').mkdir()
        self.hooks_dir.mkdir()

        self.head_file.write_text('ref: refs/heads/main\n')
        self.config_file.write_text('[core]\n\trepositoryformatversion = 0\n')

        return self

    @classmethod
    def find_repository(cls, path: str = '.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        Args:
            path: Starting path for search

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if (current / '.slit').is_dir():
                return cls(str(current))

            if current == current.parent:
                return None

            current = current.parent

    def object_path(self, hash: str) -> Path:
        """
        Get filesystem path for an object.

        Objects live in subdirectories named by the first 2 characters
        of the hash, with the remaining 38 characters as the filename.
        """
        return self.objects_dir / hash[:2] / hash[2:]

    def write_object(self, obj: SlitObject) -> str:
        """
        Write object to repository, zlib-compressed as <type> <size>\\0<content>.

        Args:
            obj: Object to write

        Returns:
            str: SHA-1 hash of the object
        """
        hash = obj.hash
        path = self.object_path(hash)

        if path.exists():
            return hash

        data = obj.serialize()
        header = f"{obj.type} {len(data)}\0".encode()

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(zlib.compress(header + data))

        return hash

    def read_object(self, hash: str) -> SlitObject:
        """
        Read object from repository.

        Args:
            hash: 40-character SHA-1 hash

        Returns:
            Deserialized object (Blob, Tree, or Commit)

        Raises:
            ObjectError: If object not found or has invalid format
        """
        path = self.object_path(hash)

        if not hash or not path.exists():
            raise ObjectError(f"object {hash} not found")

        content = zlib.decompress(path.read_bytes())

        null_idx = content.index(b'\0')
        header = content[:null_idx].decode()
        data = content[null_idx + 1:]

        try:
            obj_type, size_str = header.split(' ', 1)
            size = int(size_str)
        except ValueError:
            raise ObjectError(f"invalid object header: {header}")

        if len(data) != size:
            raise ObjectError(f"object size mismatch: expected {size}, got {len(data)}")

        if obj_type == 'blob':
            obj = Blob()
        elif obj_type == 'tree':
            obj = Tree()
        elif obj_type == 'commit':
            obj = Commit()
        else:
            raise ObjectError(f"unknown object type: {obj_type}")

        obj.deserialize(data)
        return obj

    def object_exists(self, hash: str) -> bool:
        """Check if object exists in repository."""
        return self.object_path(hash).exists()

    def read_commit(self, hash: str) -> Commit:
        """
        Read an object that must be a commit.

        Raises:
            ObjectError: If the object is missing or not a commit
        """
        obj = self.read_object(hash)
        if not isinstance(obj, Commit):
            raise ObjectError(f"object {hash[:7]} is a {obj.type}, not a commit")
        return obj

    def read_blob(self, hash: str) -> bytes:
        """Read the content of a blob."""
        obj = self.read_object(hash)
        if not isinstance(obj, Blob):
            raise ObjectError(f"object {hash[:7]} is a {obj.type}, not a blob")
        return obj.data

    def read_tree_files(self, tree_hash: str, prefix: str = '') -> Dict[str, str]:
        """
        Flatten a tree into a ``{path: blob_hash}`` dictionary.

        Args:
            tree_hash: Root tree hash
            prefix: Path prefix for entries (used when recursing)

        Returns:
            Dict mapping '/'-separated paths to blob hashes
        """
        files = {}
        tree = self.read_object(tree_hash)
        if not isinstance(tree, Tree):
            raise ObjectError(f"object {tree_hash[:7]} is a {tree.type}, not a tree")

        for entry in tree.entries:
            path = f"{prefix}/{entry.name}" if prefix else entry.name
            if entry.type == 'blob':
                files[path] = entry.hash
            else:
                files.update(self.read_tree_files(entry.hash, path))

        return files

    def write_tree_files(self, files: Dict[str, str]) -> str:
        """
        Write nested tree objects for a ``{path: blob_hash}`` dictionary.

        Args:
            files: Mapping of '/'-separated paths to blob hashes

        Returns:
            Hash of the root tree
        """
        root = {}
        for path, blob_hash in files.items():
            parts = path.split('/')
            node = root
            for part in parts[:-1]:
                node = node.setdefault(part, {})
            node[parts[-1]] = blob_hash

        return self._write_tree_node(root)

    def _write_tree_node(self, node: dict) -> str:
        """Recursively write tree objects."""
        tree = Tree()

        for name, value in sorted(node.items()):
            if isinstance(value, dict):
                tree.add_entry('040000', 'tree', self._write_tree_node(value), name)
            else:
                tree.add_entry('100644', 'blob', value, name)

        return self.write_object(tree)

    def create_commit(
        self,
        tree: str,
        parent: Optional[str],
        author: Identity,
        message: str,
        committer: Optional[Identity] = None,
        author_time: Optional[int] = None,
    ) -> str:
        """
        Create and store a commit with at most one parent.

        Args:
            tree: Tree hash
            parent: Parent commit hash, or None for a root commit
            author: Author identity
            message: Commit message
            committer: Committer identity (defaults to the author)
            author_time: Preserve an existing author timestamp

        Returns:
            Hash of the new commit
        """
        commit = Commit.create(
            tree_hash=tree,
            parent_hashes=[parent] if parent else [],
            author=author,
            committer=committer or author,
            message=message,
            author_time=author_time,
        )
        return self.write_object(commit)

    def empty_tree(self) -> str:
        """Hash of the empty tree (written on demand)."""
        return self.write_object(Tree())

    def __repr__(self) -> str:
        return f"Repository(path={self.work_tree})"
