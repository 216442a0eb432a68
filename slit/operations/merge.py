"""Merge operations for Slit.

Patches are moved around the stack by three-way merges of flattened trees:
to apply the diff ``base -> theirs`` onto ``ours``, every path is merged
from its three versions, and files changed on both sides are merged line
by line with a diff3 pass over ``difflib`` matching blocks.
"""

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Dict, Iterator, List, Optional, Tuple

from slit.core.objects import Blob

logger = logging.getLogger(__name__)


@dataclass
class MergeConflict:
    """Represents a merge conflict in a file."""
    path: str
    base_content: Optional[bytes]
    ours_content: Optional[bytes]
    theirs_content: Optional[bytes]
    marked_content: bytes = b''

    def __repr__(self) -> str:
        return f"MergeConflict({self.path})"


@dataclass
class MergeResult:
    """
    Result of a tree merge.

    ``merged_files`` always holds the cleanly merged paths, also when
    the merge failed, so the caller can materialize a partial result
    next to the conflict markers.
    """
    success: bool
    conflicts: List[MergeConflict]
    merged_tree_hash: Optional[str] = None
    merged_files: Dict[str, str] = field(default_factory=dict)
    message: str = ""

    def __repr__(self) -> str:
        if self.success:
            return "MergeResult(success)"
        return f"MergeResult(failed, conflicts={len(self.conflicts)})"


@dataclass
class TreeDiff:
    """Changes between two flattened trees."""
    added: Dict[str, str] = field(default_factory=dict)
    modified: Dict[str, str] = field(default_factory=dict)
    deleted: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.deleted)

    @property
    def paths(self) -> List[str]:
        return sorted(set(self.added) | set(self.modified) | set(self.deleted))


def _intersect(ra: Tuple[int, int], rb: Tuple[int, int]) -> Optional[Tuple[int, int]]:
    start = max(ra[0], rb[0])
    end = min(ra[1], rb[1])
    return (start, end) if start < end else None


def _sync_regions(base: List[bytes], ours: List[bytes], theirs: List[bytes]) -> List[tuple]:
    """
    Regions of ``base`` left untouched by both sides.

    Returns tuples ``(base_start, base_end, ours_start, ours_end,
    theirs_start, theirs_end)`` ending with an empty sentinel region.
    """
    ours_matches = SequenceMatcher(None, base, ours, autojunk=False).get_matching_blocks()
    theirs_matches = SequenceMatcher(None, base, theirs, autojunk=False).get_matching_blocks()

    regions = []
    io = it = 0
    while io < len(ours_matches) and it < len(theirs_matches):
        obase, omatch, olen = ours_matches[io]
        tbase, tmatch, tlen = theirs_matches[it]

        common = _intersect((obase, obase + olen), (tbase, tbase + tlen))
        if common:
            start, end = common
            osub = omatch + (start - obase)
            tsub = tmatch + (start - tbase)
            regions.append((start, end, osub, osub + end - start, tsub, tsub + end - start))

        if obase + olen < tbase + tlen:
            io += 1
        else:
            it += 1

    regions.append((len(base), len(base), len(ours), len(ours), len(theirs), len(theirs)))
    return regions


def merge_regions(base: List[bytes], ours: List[bytes], theirs: List[bytes]) -> Iterator[tuple]:
    """
    Walk the diff3 regions of three line lists.

    Yields one of:
    - ('unchanged', lines)
    - ('ours', lines) / ('theirs', lines) / ('same', lines)
    - ('conflict', base_lines, ours_lines, theirs_lines)
    """
    ib = io = it = 0
    for bstart, bend, ostart, oend, tstart, tend in _sync_regions(base, ours, theirs):
        if ostart > io or tstart > it or bstart > ib:
            base_chunk = base[ib:bstart]
            ours_chunk = ours[io:ostart]
            theirs_chunk = theirs[it:tstart]

            if ours_chunk == theirs_chunk:
                yield ('same', ours_chunk)
            elif ours_chunk == base_chunk:
                yield ('theirs', theirs_chunk)
            elif theirs_chunk == base_chunk:
                yield ('ours', ours_chunk)
            else:
                yield ('conflict', base_chunk, ours_chunk, theirs_chunk)

        if bend > bstart:
            yield ('unchanged', base[bstart:bend])

        ib, io, it = bend, oend, tend


def _terminated(lines: List[bytes]) -> List[bytes]:
    if lines and not lines[-1].endswith(b'\n'):
        return lines[:-1] + [lines[-1] + b'\n']
    return lines


def merge_content(
    base: bytes,
    ours: bytes,
    theirs: bytes,
    ours_label: str = 'ours',
    theirs_label: str = 'theirs',
) -> Tuple[bytes, bool]:
    """
    Line-based three-way merge of file content.

    Args:
        base: Common ancestor content
        ours: Content on the side being merged into
        theirs: Content being applied
        ours_label: Label for the ``<<<<<<<`` marker
        theirs_label: Label for the ``>>>>>>>`` marker

    Returns:
        (merged content, clean) - when not clean the content carries
        conflict markers around each conflicting region
    """
    base_lines = base.splitlines(keepends=True)
    ours_lines = ours.splitlines(keepends=True)
    theirs_lines = theirs.splitlines(keepends=True)

    result = []
    clean = True
    for region in merge_regions(base_lines, ours_lines, theirs_lines):
        if region[0] == 'conflict':
            clean = False
            _, _, ours_chunk, theirs_chunk = region
            result.append(f"<<<<<<< {ours_label}\n".encode())
            result.extend(_terminated(ours_chunk))
            result.append(b"=======\n")
            result.extend(_terminated(theirs_chunk))
            result.append(f">>>>>>> {theirs_label}\n".encode())
        else:
            result.extend(region[1])

    return b''.join(result), clean


class MergeEngine:
    """
    Handles tree merges for Slit.

    Supports:
    - Tree diffs
    - Three-way tree merges (applying one tree diff onto another tree)
    - diff3 content merges with conflict markers
    """

    def __init__(self, repo):
        """
        Initialize merge engine.

        Args:
            repo: Repository instance
        """
        self.repo = repo

    def diff_trees(self, old_tree: str, new_tree: str) -> TreeDiff:
        """
        Compute the changes from one tree to another.

        Args:
            old_tree: Tree hash before
            new_tree: Tree hash after

        Returns:
            TreeDiff with added, modified and deleted paths
        """
        diff = TreeDiff()
        if old_tree == new_tree:
            return diff

        old_files = self.repo.read_tree_files(old_tree)
        new_files = self.repo.read_tree_files(new_tree)

        for path, blob_hash in new_files.items():
            if path not in old_files:
                diff.added[path] = blob_hash
            elif old_files[path] != blob_hash:
                diff.modified[path] = blob_hash

        diff.deleted = sorted(path for path in old_files if path not in new_files)
        return diff

    def diff_commits(self, commit_a: str, commit_b: str) -> TreeDiff:
        """Changes between the trees of two commits."""
        return self.diff_trees(
            self.repo.read_commit(commit_a).tree,
            self.repo.read_commit(commit_b).tree,
        )

    def apply_diff(
        self,
        onto_tree: str,
        diff_base_tree: str,
        diff_tree: str,
        ours_label: str = 'current',
        theirs_label: str = 'patch',
    ) -> MergeResult:
        """
        Apply the diff ``diff_base_tree -> diff_tree`` onto ``onto_tree``.

        Args:
            onto_tree: Tree to apply the changes to
            diff_base_tree: Tree the changes were made against
            diff_tree: Tree holding the changes
            ours_label: Conflict marker label for ``onto_tree``
            theirs_label: Conflict marker label for the applied changes

        Returns:
            MergeResult with the merged tree or the conflicts
        """
        diff = self.diff_trees(diff_base_tree, diff_tree)
        if diff.is_empty or onto_tree == diff_tree:
            return MergeResult(
                success=True,
                conflicts=[],
                merged_tree_hash=onto_tree,
                merged_files=self.repo.read_tree_files(onto_tree),
            )

        if onto_tree == diff_base_tree:
            return MergeResult(
                success=True,
                conflicts=[],
                merged_tree_hash=diff_tree,
                merged_files=self.repo.read_tree_files(diff_tree),
            )

        logger.debug("apply_diff: merging %d changed paths", len(diff.paths))
        return self.merge_trees(diff_base_tree, onto_tree, diff_tree, ours_label, theirs_label)

    def merge_trees(
        self,
        base_tree: str,
        ours_tree: str,
        theirs_tree: str,
        ours_label: str = 'ours',
        theirs_label: str = 'theirs',
    ) -> MergeResult:
        """
        Perform a three-way merge of trees.

        Args:
            base_tree: Common ancestor tree hash
            ours_tree: Tree being merged into
            theirs_tree: Tree being merged in

        Returns:
            MergeResult with success status and any conflicts
        """
        merged_files, conflicts = self._merge_files(
            self.repo.read_tree_files(base_tree),
            self.repo.read_tree_files(ours_tree),
            self.repo.read_tree_files(theirs_tree),
            ours_label,
            theirs_label,
        )

        if conflicts:
            logger.debug("merge: %d conflict(s): %s", len(conflicts), [c.path for c in conflicts])
            return MergeResult(
                success=False,
                conflicts=conflicts,
                merged_files=merged_files,
                message=f"Merge conflicts in {len(conflicts)} file(s)",
            )

        return MergeResult(
            success=True,
            conflicts=[],
            merged_tree_hash=self.repo.write_tree_files(merged_files),
            merged_files=merged_files,
        )

    def _merge_files(
        self,
        base_files: Dict[str, str],
        ours_files: Dict[str, str],
        theirs_files: Dict[str, str],
        ours_label: str,
        theirs_label: str,
    ) -> Tuple[Dict[str, str], List[MergeConflict]]:
        """
        Merge flattened trees path by path.

        Returns:
            Tuple of (merged_files, conflicts)
        """
        merged_files = {}
        conflicts = []

        all_paths = set(base_files) | set(ours_files) | set(theirs_files)

        for path in sorted(all_paths):
            base_hash = base_files.get(path)
            ours_hash = ours_files.get(path)
            theirs_hash = theirs_files.get(path)

            # Same on both sides (or deleted on both)
            if ours_hash == theirs_hash:
                if ours_hash:
                    merged_files[path] = ours_hash
                continue

            # Only changed on our side
            if base_hash == theirs_hash:
                if ours_hash:
                    merged_files[path] = ours_hash
                continue

            # Only changed on their side
            if base_hash == ours_hash:
                if theirs_hash:
                    merged_files[path] = theirs_hash
                continue

            base_content = self.repo.read_blob(base_hash) if base_hash else None
            ours_content = self.repo.read_blob(ours_hash) if ours_hash else None
            theirs_content = self.repo.read_blob(theirs_hash) if theirs_hash else None

            if ours_content is None or theirs_content is None:
                # Modified on one side, deleted on the other
                conflicts.append(MergeConflict(
                    path=path,
                    base_content=base_content,
                    ours_content=ours_content,
                    theirs_content=theirs_content,
                    marked_content=self.generate_conflict_markers(
                        ours_content, theirs_content, ours_label, theirs_label
                    ),
                ))
                continue

            merged, clean = merge_content(
                base_content or b'', ours_content, theirs_content, ours_label, theirs_label
            )
            if clean:
                merged_files[path] = self.repo.write_object(Blob(merged))
            else:
                conflicts.append(MergeConflict(
                    path=path,
                    base_content=base_content,
                    ours_content=ours_content,
                    theirs_content=theirs_content,
                    marked_content=merged,
                ))

        return merged_files, conflicts

    def generate_conflict_markers(
        self,
        ours_content: Optional[bytes],
        theirs_content: Optional[bytes],
        ours_label: str = 'ours',
        theirs_label: str = 'theirs',
    ) -> bytes:
        """
        Wrap two whole-file versions in conflict markers.

        A missing side (deleted file) contributes nothing between its markers.
        """
        result = [f"<<<<<<< {ours_label}\n".encode()]

        if ours_content:
            result.append(ours_content)
            if not ours_content.endswith(b'\n'):
                result.append(b'\n')

        result.append(b"=======\n")

        if theirs_content:
            result.append(theirs_content)
            if not theirs_content.endswith(b'\n'):
                result.append(b'\n')

        result.append(f">>>>>>> {theirs_label}\n".encode())
        return b''.join(result)
