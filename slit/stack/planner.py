"""Planning of stack reorders.

Bringing a set of patches together means popping everything above the
lowest of them, pushing them back in the wanted order and then pushing the
patches that were only in the way ("displaced") in their original order.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from slit.stack.model import PatchStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReorderPlan:
    """
    How to gather patches at one slot of the stack.

    Attributes:
        site: Index in the applied list where the gathered patches start
        to_pop: Applied patches popped to reach the site, bottom to top
        displaced: Popped patches that are not targets, original order
        push_order: Targets, in the order they are pushed
    """
    site: int
    to_pop: List[str] = field(default_factory=list)
    displaced: List[str] = field(default_factory=list)
    push_order: List[str] = field(default_factory=list)


def plan_reorder(stack: PatchStack, targets: Sequence[str]) -> ReorderPlan:
    """
    Plan gathering ``targets`` into a contiguous run.

    If any target is applied the run starts at the lowest applied target;
    otherwise it starts at the stack top. Targets keep the caller's order.

    Args:
        stack: Current stack
        targets: Distinct patch names, in the order they must be pushed

    Returns:
        ReorderPlan
    """
    applied_slots = [stack.applied.index(name) for name in targets if name in stack.applied]

    if applied_slots:
        site = min(applied_slots)
        to_pop = stack.applied[site:]
    else:
        site = len(stack.applied)
        to_pop = []

    wanted = set(targets)
    plan = ReorderPlan(
        site=site,
        to_pop=list(to_pop),
        displaced=[name for name in to_pop if name not in wanted],
        push_order=list(targets),
    )
    logger.debug("plan: %s", plan)
    return plan


def reapply(transaction, names: Sequence[str]) -> bool:
    """
    Push displaced patches back in order.

    Stops at the first conflict; patches from there on stay unapplied.

    Returns:
        True if every patch was pushed cleanly
    """
    for name in names:
        if not transaction.push_patch(name):
            logger.debug("reapply stopped at %s", name)
            return False
    return True
