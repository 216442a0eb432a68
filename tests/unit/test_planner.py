"""Unit tests for reorder planning."""

from slit.stack.model import PatchStack
from slit.stack.planner import plan_reorder


def make_stack(applied, unapplied=()):
    names = list(applied) + list(unapplied)
    return PatchStack('b' * 40, applied, unapplied, {name: name.ljust(40, '0') for name in names})


def test_adjacent_top_targets():
    plan = plan_reorder(make_stack(['p0', 'p1', 'p2']), ['p1', 'p2'])
    assert plan.site == 1
    assert plan.to_pop == ['p1', 'p2']
    assert plan.displaced == []
    assert plan.push_order == ['p1', 'p2']


def test_out_of_order_targets_keep_caller_order():
    plan = plan_reorder(make_stack(['p0', 'p1', 'p2', 'p3', 'p4', 'p5']), ['p5', 'p4'])
    assert plan.site == 4
    assert plan.push_order == ['p5', 'p4']
    assert plan.displaced == []


def test_non_adjacent_targets_displace_patches_between():
    plan = plan_reorder(make_stack(['p0', 'p1', 'p2', 'p3', 'p4']), ['p3', 'p1'])
    assert plan.site == 1
    assert plan.to_pop == ['p1', 'p2', 'p3', 'p4']
    assert plan.displaced == ['p2', 'p4']
    assert plan.push_order == ['p3', 'p1']


def test_mixed_applied_and_unapplied_targets():
    plan = plan_reorder(make_stack(['p0', 'p1', 'p2'], ['p3', 'p4']), ['p4', 'p1'])
    assert plan.site == 1
    assert plan.to_pop == ['p1', 'p2']
    assert plan.displaced == ['p2']
    assert plan.push_order == ['p4', 'p1']


def test_only_unapplied_targets_land_on_top():
    plan = plan_reorder(make_stack(['p0', 'p1'], ['p2', 'p3', 'p4']), ['p4', 'p2'])
    assert plan.site == 2
    assert plan.to_pop == []
    assert plan.displaced == []
    assert plan.push_order == ['p4', 'p2']
