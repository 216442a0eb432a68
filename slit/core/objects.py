"""Slit objects: blobs, trees, commits and the identities recorded on them."""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from slit.core.hash import hash_object
from slit.errors import GeneralError


_IDENTITY_RE = re.compile(r'^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$')


@dataclass(frozen=True)
class Identity:
    """
    A person recorded on a commit.

    Two identities are the same person only when both name and email match.
    """
    name: str
    email: str

    @classmethod
    def parse(cls, text: str) -> 'Identity':
        """
        Parse an identity from ``Name <email>`` form.

        Args:
            text: Identity string

        Returns:
            Identity

        Raises:
            GeneralError: If the string is not in ``Name <email>`` form
        """
        match = _IDENTITY_RE.match(text or '')
        if not match or not match.group('name'):
            raise GeneralError(f"invalid identity `{text}`: expected `Name <email>`")
        return cls(match.group('name'), match.group('email'))

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class SlitObject(ABC):
    """Base class for all objects stored in the object database."""

    def __init__(self):
        self._hash: Optional[str] = None

    @abstractmethod
    def serialize(self) -> bytes:
        """Serialize object to bytes."""

    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """Deserialize object from bytes."""

    @property
    def type(self) -> str:
        """Object type name (blob, tree, commit)."""
        return self.__class__.__name__.lower()

    @property
    def hash(self) -> str:
        """
        Object id.

        Objects are hashed with a header containing the type and size.
        Format: <type> <size>\\0<content>
        """
        if self._hash is None:
            data = self.serialize()
            header = f"{self.type} {len(data)}\0".encode()
            self._hash = hash_object(header + data)
        return self._hash


class Blob(SlitObject):
    """Raw file content, without name or permissions."""

    def __init__(self, data: Optional[bytes] = None):
        super().__init__()
        self.data = data or b''

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data
        self._hash = None

    def __repr__(self) -> str:
        return f"Blob(hash={self.hash[:7]}, size={len(self.data)})"


class TreeEntry:
    """
    A single entry in a tree.

    - mode: '100644' for files, '040000' for directories
    - type: 'blob' or 'tree'
    - hash: id of the referenced object
    - name: file or directory name (never contains '/')
    """

    def __init__(self, mode: str, obj_type: str, obj_hash: str, name: str):
        self.mode = mode
        self.type = obj_type
        self.hash = obj_hash
        self.name = name

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.type} {self.hash[:7]} {self.name})"

    def __lt__(self, other: 'TreeEntry') -> bool:
        return self.name < other.name


class Tree(SlitObject):
    """Directory listing pointing at blobs and subtrees."""

    def __init__(self):
        super().__init__()
        self.entries: list[TreeEntry] = []

    def add_entry(self, mode: str, obj_type: str, obj_hash: str, name: str) -> None:
        """
        Add entry to tree.

        Args:
            mode: File mode
            obj_type: Object type ('blob' or 'tree')
            obj_hash: Object hash
            name: Entry name
        """
        self.entries.append(TreeEntry(mode, obj_type, obj_hash, name))
        self.entries.sort()
        self._hash = None

    def serialize(self) -> bytes:
        """
        Serialize tree.

        Each entry is: mode (ASCII), space, name, null byte, 20-byte binary hash.
        """
        result = b''
        for entry in sorted(self.entries):
            result += f"{entry.mode} {entry.name}".encode() + b'\0' + bytes.fromhex(entry.hash)
        return result

    def deserialize(self, data: bytes) -> None:
        self.entries = []
        pos = 0

        while pos < len(data):
            space_pos = data.index(b' ', pos)
            mode = data[pos:space_pos].decode()

            null_pos = data.index(b'\0', space_pos)
            name = data[space_pos + 1:null_pos].decode()

            obj_hash = data[null_pos + 1:null_pos + 21].hex()
            obj_type = 'tree' if mode == '040000' else 'blob'
            self.add_entry(mode, obj_type, obj_hash, name)

            pos = null_pos + 21

        self._hash = None

    def __repr__(self) -> str:
        return f"Tree(entries={len(self.entries)})"


class Commit(SlitObject):
    """
    A commit: a tree snapshot plus parents, identities and a message.

    Serialized format:

        tree <tree-hash>
        parent <parent-hash>      (zero or more)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>

        <message>
    """

    def __init__(self):
        super().__init__()
        self.tree: str = ''
        self.parents: list[str] = []
        self.author: Optional[Identity] = None
        self.author_time: int = 0
        self.author_timezone: str = '+0000'
        self.committer: Optional[Identity] = None
        self.committer_time: int = 0
        self.committer_timezone: str = '+0000'
        self.message: str = ''

    @property
    def parent(self) -> Optional[str]:
        """First parent, or None for a root commit."""
        return self.parents[0] if self.parents else None

    @property
    def subject(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0]

    def serialize(self) -> bytes:
        lines = [f'tree {self.tree}']
        lines.extend(f'parent {parent}' for parent in self.parents)
        lines.append(f'author {self.author} {self.author_time} {self.author_timezone}')
        lines.append(f'committer {self.committer} {self.committer_time} {self.committer_timezone}')
        lines.append('')
        lines.append(self.message)
        return '\n'.join(lines).encode()

    def deserialize(self, data: bytes) -> None:
        lines = data.decode().split('\n')
        self.parents = []

        message_start = len(lines)
        for i, line in enumerate(lines):
            if not line:
                message_start = i + 1
                break

            if line.startswith('tree '):
                self.tree = line[5:]
            elif line.startswith('parent '):
                self.parents.append(line[7:])
            elif line.startswith('author '):
                ident, stamp, zone = line[7:].rsplit(' ', 2)
                self.author = Identity.parse(ident)
                self.author_time = int(stamp)
                self.author_timezone = zone
            elif line.startswith('committer '):
                ident, stamp, zone = line[10:].rsplit(' ', 2)
                self.committer = Identity.parse(ident)
                self.committer_time = int(stamp)
                self.committer_timezone = zone

        self.message = '\n'.join(lines[message_start:])
        self._hash = None

    @classmethod
    def create(
        cls,
        tree_hash: str,
        parent_hashes: list[str],
        author: Identity,
        committer: Identity,
        message: str,
        timestamp: Optional[int] = None,
        author_time: Optional[int] = None,
        timezone: str = '+0000'
    ) -> 'Commit':
        """
        Create a new commit.

        Args:
            tree_hash: Hash of tree object
            parent_hashes: List of parent commit hashes
            author: Author identity
            committer: Committer identity
            message: Commit message
            timestamp: Committer timestamp (defaults to current time)
            author_time: Author timestamp (defaults to the committer timestamp)
            timezone: Timezone offset (e.g., "+0000", "-0500")

        Returns:
            Commit: New commit object
        """
        commit = cls()
        commit.tree = tree_hash
        commit.parents = list(parent_hashes)
        commit.author = author
        commit.committer = committer
        commit.message = message

        if timestamp is None:
            timestamp = int(time.time())

        commit.committer_time = timestamp
        commit.author_time = timestamp if author_time is None else author_time
        commit.author_timezone = timezone
        commit.committer_timezone = timezone

        return commit

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        return f"Commit(hash={self.hash[:7]}{parent_info}, msg='{self.subject[:50]}')"
