"""Operations module for tree-level algorithms.

This module contains:
- Tree diffs
- Three-way tree merges with diff3 content merging
"""

from slit.operations.merge import MergeEngine, MergeResult, MergeConflict, TreeDiff, merge_content

__all__ = [
    'MergeEngine', 'MergeResult', 'MergeConflict', 'TreeDiff', 'merge_content',
]
