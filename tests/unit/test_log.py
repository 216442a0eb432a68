"""Unit tests for the stack snapshot log."""

import pytest

from slit.errors import CommandError, DirtyWorkingTree, NotFound
from slit.stack.log import Snapshot, SnapshotLog
from slit.stack.model import PatchStack


def sequences(stack):
    return [snapshot.sequence for snapshot in stack.log.history()]


def test_initialize_records_first_entry(stack):
    tip = stack.log.tip()
    assert tip.sequence == 0
    assert tip.message == 'initialise'
    assert tip.state.applied == []
    assert tip.state.base == stack.branch_head


def test_log_is_a_commit_chain(stack, repo):
    stack.new_patch('p0', 'p0\n', {'a': b'a\n'})
    tip_id = repo.refs.read_ref('refs/stacks/main')
    commit = repo.read_commit(tip_id)
    assert set(repo.read_tree_files(commit.tree)) == {'stack.json'}
    assert commit.parent == stack.log.get(0).id


def test_capture_skips_identical_state(stack):
    state = stack.state
    tip_id = stack.log.tip().id
    assert stack.log.capture(state, 'again') == tip_id
    assert sequences(stack) == [0]


def test_forced_capture_appends_identical_state(stack):
    state = stack.state
    tip_id = stack.log.tip().id
    assert stack.log.capture(state, 'conflicted', force=True) != tip_id
    assert sequences(stack) == [1, 0]
    assert stack.log.tip().state == state


def test_history_newest_first(foo_stack):
    assert sequences(foo_stack) == [6, 5, 4, 3, 2, 1, 0]
    assert foo_stack.log.get(3).message == 'new p2'


def test_get_unknown_sequence(foo_stack):
    with pytest.raises(NotFound):
        foo_stack.log.get(42)


def test_snapshot_dict_roundtrip():
    state = PatchStack('b' * 40, ['p0'], ['p1'], {'p0': '0' * 40, 'p1': '1' * 40})
    snapshot = Snapshot(3, 'undo to 3', state, kind='undo', position=3, limit=5)
    data = snapshot.to_dict()
    assert data['version'] == 1
    assert data['head'] == '0' * 40
    restored = Snapshot.from_dict(data)
    assert restored.state == state
    assert (restored.kind, restored.position, restored.limit) == ('undo', 3, 5)


class TestUndoRedo:
    """Test undo / redo navigation."""

    def test_undo_restores_previous_state(self, foo_stack, repo):
        p5 = foo_stack.state.commits['p5']
        foo_stack.undo()

        state = foo_stack.state
        assert state.applied == ['p0', 'p1', 'p2', 'p3', 'p4']
        assert 'p5' not in state.commits
        assert repo.refs.read_ref('refs/patches/main/p5') is None
        assert foo_stack.branch_head == state.commits['p4']
        assert (repo.work_tree / 'foo.txt').read_text() == 'foo 4\n'

        tip = foo_stack.log.tip()
        assert (tip.kind, tip.position, tip.limit) == ('undo', 5, 6)
        assert p5 != foo_stack.branch_head

    def test_consecutive_undos_continue(self, foo_stack):
        foo_stack.undo()
        foo_stack.undo(2)
        assert foo_stack.state.applied == ['p0', 'p1', 'p2']
        assert foo_stack.log.tip().position == 3

    def test_redo_after_undo(self, foo_stack, repo):
        original = foo_stack.state
        foo_stack.undo(3)
        foo_stack.redo()
        assert foo_stack.state.applied == ['p0', 'p1', 'p2', 'p3']
        foo_stack.redo(2)
        assert foo_stack.state == original
        assert repo.refs.read_ref('refs/patches/main/p5') == original.commits['p5']
        assert (repo.work_tree / 'foo.txt').read_text() == 'foo 5\n'

    def test_redo_past_limit(self, foo_stack):
        foo_stack.undo()
        with pytest.raises(CommandError, match="not enough undos to redo"):
            foo_stack.redo(2)

    def test_redo_without_undo(self, foo_stack):
        with pytest.raises(CommandError, match="no undo to redo"):
            foo_stack.redo()

    def test_undo_past_first_entry(self, foo_stack):
        with pytest.raises(CommandError, match="not enough undo information"):
            foo_stack.undo(7)
        assert foo_stack.log.tip().sequence == 6

    def test_undo_to_first_entry(self, foo_stack, repo):
        foo_stack.undo(6)
        assert foo_stack.state.applied == []
        assert not (repo.work_tree / 'foo.txt').exists()
        assert repo.refs.list_refs('refs/patches/main') == []

    def test_undo_refuses_local_changes(self, foo_stack, repo):
        (repo.work_tree / 'foo.txt').write_text('local edit\n')
        with pytest.raises(DirtyWorkingTree, match="--hard"):
            foo_stack.undo()
        assert foo_stack.log.tip().sequence == 6

    def test_hard_undo_discards_local_changes(self, foo_stack, repo):
        (repo.work_tree / 'foo.txt').write_text('local edit\n')
        foo_stack.undo(hard=True)
        assert (repo.work_tree / 'foo.txt').read_text() == 'foo 4\n'

    def test_navigation_is_logged(self, foo_stack):
        foo_stack.undo()
        foo_stack.redo()
        kinds = [snapshot.kind for snapshot in foo_stack.log.history()][:3]
        assert kinds == ['redo', 'undo', 'op']

    def test_bad_step_count(self, foo_stack):
        with pytest.raises(CommandError):
            foo_stack.undo(0)


def test_log_for_other_branch_is_empty(repo):
    log = SnapshotLog(repo, 'feature')
    assert not log.exists()
    assert log.tip() is None
    assert list(log.history()) == []
