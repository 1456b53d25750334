"""
Shared fixtures: a file-backed SQLite database per test.

A file (not ``:memory:``) so that components opening their own sessions,
like the role reconciliation job, see what the test committed.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tasktracker.models import Base, Department, Task, TaskPriority, TaskStatus, User, UserRole


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'tasktracker.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def async_db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(async_db_session):
    counter = iter(range(1, 10_000))

    async def _make_user(
        name: str | None = None,
        *,
        role: UserRole = UserRole.EMPLOYEE,
        department_id: int | None = None,
        email: str | None = None,
    ) -> User:
        n = next(counter)
        user = User(
            ldap_uid=f"user{n}",
            name=name or f"User {n}",
            email=email,
            role=role,
            department_id=department_id,
        )
        async_db_session.add(user)
        await async_db_session.flush()
        await async_db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_department(async_db_session):
    async def _make_department(
        name: str,
        *,
        parent_id: int | None = None,
        manager_id: int | None = None,
    ) -> Department:
        department = Department(name=name, parent_id=parent_id, manager_id=manager_id)
        async_db_session.add(department)
        await async_db_session.flush()
        await async_db_session.refresh(department)
        return department

    return _make_department


@pytest.fixture
def make_task(async_db_session):
    async def _make_task(
        owner: User,
        *,
        title: str = "Task",
        status: TaskStatus = TaskStatus.TODO,
        department_id: int | None = None,
        parent_id: int | None = None,
    ) -> Task:
        task = Task(
            title=title,
            description=f"{title} description",
            status=status,
            priority=TaskPriority.MEDIUM,
            deadline=datetime.now(timezone.utc) + timedelta(days=7),
            created_by_id=owner.id,
            department_id=department_id,
            parent_id=parent_id,
        )
        async_db_session.add(task)
        await async_db_session.flush()
        await async_db_session.refresh(task)
        return task

    return _make_task
