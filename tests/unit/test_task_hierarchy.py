"""
Unit tests for parent status aggregation and propagation
"""

import pytest

from tasktracker.models import TaskStatus
from tasktracker.services.task_hierarchy import TaskHierarchyPropagator, aggregate_subtask_status

C, P, T, B = (
    TaskStatus.COMPLETED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.TODO,
    TaskStatus.BLOCKER,
)


@pytest.mark.parametrize(
    ("statuses", "expected"),
    [
        ([C, C, T], P),
        ([C, C, C], C),
        ([B, T], T),
        ([P, P], T),
        ([B, C], P),
        ([C], C),
        ([], None),
    ],
)
def test_aggregate_subtask_status(statuses, expected):
    assert aggregate_subtask_status(statuses) == expected


def test_blocked_subtask_does_not_block_parent():
    # a blocked child counts as "not completed" and nothing more
    assert aggregate_subtask_status([B, B]) == TaskStatus.TODO


@pytest.fixture
async def propagator(async_db_session):
    return TaskHierarchyPropagator(async_db_session)


@pytest.mark.asyncio
async def test_recompute_updates_parent(propagator, make_user, make_task):
    owner = await make_user()
    parent = await make_task(owner, title="Parent")
    await make_task(owner, title="A", status=C, parent_id=parent.id)
    await make_task(owner, title="B", status=C, parent_id=parent.id)
    await make_task(owner, title="C", status=T, parent_id=parent.id)

    changed = await propagator.recompute_parent_status(parent.id)

    assert [task.id for task in changed] == [parent.id]
    assert parent.status == TaskStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_recompute_without_subtasks_leaves_parent(propagator, make_user, make_task):
    owner = await make_user()
    parent = await make_task(owner, status=TaskStatus.BLOCKER)

    changed = await propagator.recompute_parent_status(parent.id)

    assert changed == []
    assert parent.status == TaskStatus.BLOCKER


@pytest.mark.asyncio
async def test_recompute_walks_up_ancestors(propagator, make_user, make_task):
    owner = await make_user()
    root = await make_task(owner, title="Root")
    middle = await make_task(owner, title="Middle", parent_id=root.id)
    await make_task(owner, title="Sibling of middle", status=T, parent_id=root.id)
    await make_task(owner, title="Leaf", status=C, parent_id=middle.id)

    changed = await propagator.recompute_parent_status(middle.id)

    assert [task.id for task in changed] == [middle.id, root.id]
    assert middle.status == TaskStatus.COMPLETED
    assert root.status == TaskStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_recompute_stops_when_status_unchanged(propagator, make_user, make_task):
    owner = await make_user()
    root = await make_task(owner, title="Root", status=TaskStatus.IN_PROGRESS)
    middle = await make_task(owner, title="Middle", status=T, parent_id=root.id)
    await make_task(owner, title="Done", status=C, parent_id=root.id)
    await make_task(owner, title="Leaf", status=T, parent_id=middle.id)

    changed = await propagator.recompute_parent_status(middle.id)

    assert changed == []
    assert root.status == TaskStatus.IN_PROGRESS
