"""
Unit tests for DepartmentService
"""

import pytest
from sqlalchemy import select

from tasktracker.core.exceptions import ConflictError, NotFoundError, PreconditionError
from tasktracker.core.logging import get_metric
from tasktracker.models import Department, User, UserRole
from tasktracker.schemas.department import (
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentUserAssignment,
)
from tasktracker.services.department_service import DepartmentService


@pytest.fixture
async def department_service(async_db_session):
    return DepartmentService(session=async_db_session)


async def _reload_user(session_maker, user_id: int) -> User:
    async with session_maker() as session:
        return await session.get(User, user_id)


async def _reload_department(session_maker, department_id: int) -> Department:
    async with session_maker() as session:
        return await session.get(Department, department_id)


@pytest.mark.asyncio
async def test_create_department_promotes_manager(department_service, make_user, async_db_session):
    user = await make_user("Alice")
    promotions = get_metric("manager_role_change", action="promote")

    created = await department_service.create_department(
        DepartmentCreate(name="Finance", manager_id=user.id)
    )

    assert created.manager_id == user.id
    await async_db_session.refresh(user)
    assert user.role == UserRole.MANAGER
    assert user.department_id == created.id
    assert get_metric("manager_role_change", action="promote") == promotions + 1


@pytest.mark.asyncio
async def test_finance_manager_reassignment(
    department_service, make_user, async_db_session, session_maker
):
    first = await make_user("Seven")
    second = await make_user("Nine")
    finance = await department_service.create_department(
        DepartmentCreate(name="Finance", manager_id=first.id)
    )
    await async_db_session.commit()

    updated = await department_service.update_department(
        finance.id, DepartmentUpdate(manager_id=second.id)
    )
    await async_db_session.commit()

    assert updated.manager_id == second.id
    assert (await _reload_user(session_maker, first.id)).role == UserRole.EMPLOYEE
    reloaded_second = await _reload_user(session_maker, second.id)
    assert reloaded_second.role == UserRole.MANAGER
    assert reloaded_second.department_id == finance.id


@pytest.mark.asyncio
async def test_create_department_conflict_when_manager_taken(
    department_service, make_user, async_db_session, session_maker
):
    user = await make_user()
    await department_service.create_department(DepartmentCreate(name="Sales", manager_id=user.id))
    await async_db_session.commit()

    with pytest.raises(ConflictError):
        await department_service.create_department(
            DepartmentCreate(name="Marketing", manager_id=user.id)
        )
    await async_db_session.rollback()

    async with session_maker() as session:
        names = (await session.execute(select(Department.name))).scalars().all()
    assert names == ["Sales"]


@pytest.mark.asyncio
async def test_update_department_conflict_leaves_store_unchanged(
    department_service, make_user, async_db_session, session_maker
):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    sales = await department_service.create_department(
        DepartmentCreate(name="Sales", manager_id=alice.id)
    )
    support = await department_service.create_department(
        DepartmentCreate(name="Support", manager_id=bob.id)
    )
    await async_db_session.commit()
    # rollback below expires the ORM instances
    alice_id, bob_id = alice.id, bob.id

    with pytest.raises(ConflictError):
        await department_service.update_department(
            support.id, DepartmentUpdate(manager_id=alice.id)
        )
    await async_db_session.rollback()

    assert (await _reload_department(session_maker, sales.id)).manager_id == alice_id
    assert (await _reload_department(session_maker, support.id)).manager_id == bob_id
    assert (await _reload_user(session_maker, alice_id)).role == UserRole.MANAGER
    assert (await _reload_user(session_maker, bob_id)).role == UserRole.MANAGER


@pytest.mark.asyncio
async def test_reappointing_current_manager_is_not_a_conflict(department_service, make_user):
    user = await make_user()
    dept = await department_service.create_department(
        DepartmentCreate(name="Ops", manager_id=user.id)
    )

    updated = await department_service.update_department(
        dept.id, DepartmentUpdate(name="Operations", manager_id=user.id)
    )

    assert updated.name == "Operations"
    assert updated.manager_id == user.id


@pytest.mark.asyncio
async def test_update_department_clears_manager_with_explicit_null(
    department_service, make_user, async_db_session
):
    user = await make_user()
    dept = await department_service.create_department(
        DepartmentCreate(name="Legal", manager_id=user.id)
    )

    updated = await department_service.update_department(
        dept.id, DepartmentUpdate.model_validate({"manager_id": None})
    )

    assert updated.manager_id is None
    await async_db_session.refresh(user)
    assert user.role == UserRole.EMPLOYEE


@pytest.mark.asyncio
async def test_update_department_omitted_manager_is_untouched(department_service, make_user):
    user = await make_user()
    dept = await department_service.create_department(
        DepartmentCreate(name="Legal", manager_id=user.id)
    )

    updated = await department_service.update_department(dept.id, DepartmentUpdate(name="Law"))

    assert updated.manager_id == user.id


@pytest.mark.asyncio
async def test_update_department_rejects_cycle(department_service):
    root = await department_service.create_department(DepartmentCreate(name="Root"))
    child = await department_service.create_department(
        DepartmentCreate(name="Child", parent_id=root.id)
    )
    grandchild = await department_service.create_department(
        DepartmentCreate(name="Grandchild", parent_id=child.id)
    )

    with pytest.raises(PreconditionError):
        await department_service.update_department(root.id, DepartmentUpdate(parent_id=root.id))
    with pytest.raises(PreconditionError):
        await department_service.update_department(
            root.id, DepartmentUpdate(parent_id=grandchild.id)
        )


@pytest.mark.asyncio
async def test_duplicate_name_is_scoped_to_parent(department_service):
    east = await department_service.create_department(DepartmentCreate(name="East"))
    west = await department_service.create_department(DepartmentCreate(name="West"))
    await department_service.create_department(DepartmentCreate(name="Sales", parent_id=east.id))
    await department_service.create_department(DepartmentCreate(name="Sales", parent_id=west.id))

    with pytest.raises(ConflictError):
        await department_service.create_department(
            DepartmentCreate(name="Sales", parent_id=east.id)
        )


@pytest.mark.asyncio
async def test_create_department_missing_references(department_service):
    with pytest.raises(NotFoundError):
        await department_service.create_department(DepartmentCreate(name="X", parent_id=999))
    with pytest.raises(NotFoundError):
        await department_service.create_department(DepartmentCreate(name="X", manager_id=999))


@pytest.mark.asyncio
async def test_delete_department_guard_and_demotion(
    department_service, make_user, async_db_session, session_maker
):
    manager = await make_user("Manager")
    parent = await department_service.create_department(
        DepartmentCreate(name="Engineering", manager_id=manager.id)
    )
    child = await department_service.create_department(
        DepartmentCreate(name="Platform", parent_id=parent.id)
    )
    member = await make_user("Member", department_id=parent.id)
    await async_db_session.commit()

    with pytest.raises(PreconditionError):
        await department_service.delete_department(parent.id)
    await async_db_session.rollback()

    await department_service.delete_department(child.id)
    # the manager's own home department is this one as well
    for user in (member, manager):
        await async_db_session.refresh(user)
        user.department_id = None
    await async_db_session.flush()

    await department_service.delete_department(parent.id)
    await async_db_session.commit()

    assert await _reload_department(session_maker, parent.id) is None
    assert (await _reload_user(session_maker, manager.id)).role == UserRole.EMPLOYEE


@pytest.mark.asyncio
async def test_delete_department_with_members_fails(department_service, make_user):
    dept = await department_service.create_department(DepartmentCreate(name="HR"))
    await make_user(department_id=dept.id)

    with pytest.raises(PreconditionError):
        await department_service.delete_department(dept.id)


@pytest.mark.asyncio
async def test_list_departments_builds_tree(department_service):
    root = await department_service.create_department(DepartmentCreate(name="Company"))
    await department_service.create_department(DepartmentCreate(name="Sales", parent_id=root.id))
    await department_service.create_department(DepartmentCreate(name="Finance", parent_id=root.id))
    await department_service.create_department(DepartmentCreate(name="Archive"))

    tree = await department_service.list_departments()

    assert [node.name for node in tree] == ["Archive", "Company"]
    assert [node.name for node in tree[1].children] == ["Finance", "Sales"]


@pytest.mark.asyncio
async def test_assign_user_by_email(department_service, make_user):
    dept = await department_service.create_department(DepartmentCreate(name="QA"))
    user = await make_user(email="qa@example.com")

    assigned = await department_service.assign_user(
        dept.id, DepartmentUserAssignment(email="qa@example.com")
    )

    assert assigned.id == user.id
    assert assigned.department_id == dept.id
