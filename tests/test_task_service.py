from __future__ import annotations

from datetime import date

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.errors import AuthorizationError, NotFoundError, ValidationError
from taskboard.models import TaskPriority, TaskStatus, User
from taskboard.schemas import TaskCreate, TaskUpdate
from taskboard.services import TaskService, UserService, ensure_task_access, is_task_assignee
from taskboard.services.tasks import TaskPage, coerce_positive_int, parse_task_id


async def _create_user(session: AsyncSession, name: str, email: str) -> User:
    return await UserService(session).create_user(name=name, email=email, password="example-password")


async def test_create_defaults_and_round_trip(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)

    created = await service.create_task(
        alice,
        TaskCreate(title="  Write report  ", description="Quarterly numbers", due_date=date(2030, 1, 15)),
    )

    assert created.id is not None
    assert created.title == "Write report"
    assert created.status is TaskStatus.PENDING
    assert created.priority is TaskPriority.MEDIUM
    assert created.assigned_to_id == alice.id
    assert created.created_by_id == alice.id

    fetched = await service.get_task(alice, created.id)
    assert fetched.title == "Write report"
    assert fetched.description == "Quarterly numbers"
    assert fetched.due_date == date(2030, 1, 15)
    assert fetched.assigned_to.name == "Alice"
    assert fetched.created_by.email == "alice@example.com"


async def test_creator_loses_access_once_assigned_elsewhere(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    bob = await _create_user(session, "Bob", "bob@example.com")
    service = TaskService(session)

    task = await service.create_task(alice, TaskCreate(title="Hand over", assigned_to=bob.id))
    assert task.assigned_to_id == bob.id
    assert task.created_by_id == alice.id

    with pytest.raises(AuthorizationError):
        await service.get_task(alice, task.id)
    with pytest.raises(AuthorizationError):
        await service.update_task(alice, task.id, TaskUpdate(title="Hijacked"))
    with pytest.raises(AuthorizationError):
        await service.delete_task(alice, task.id)

    visible = await service.get_task(bob, task.id)
    assert visible.title == "Hand over"


async def test_reassignment_moves_access_to_new_assignee(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    bob = await _create_user(session, "Bob", "bob@example.com")
    service = TaskService(session)

    task = await service.create_task(alice, TaskCreate(title="Pass it on"))
    updated = await service.update_task(alice, task.id, TaskUpdate(assigned_to=bob.id))

    assert updated.assigned_to.email == "bob@example.com"
    with pytest.raises(AuthorizationError):
        await service.get_task(alice, task.id)
    assert (await service.get_task(bob, task.id)).id == task.id


async def test_missing_assignee_is_a_validation_error(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)

    with pytest.raises(ValidationError) as excinfo:
        await service.create_task(alice, TaskCreate(title="Orphan", assigned_to=9999))

    assert excinfo.value.errors[0].field == "assignedTo"
    assert excinfo.value.errors[0].message == "Assigned user not found"

    task = await service.create_task(alice, TaskCreate(title="Mine"))
    with pytest.raises(ValidationError):
        await service.update_task(alice, task.id, TaskUpdate(assigned_to=4242))


async def test_update_applies_only_supplied_fields(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)
    task = await service.create_task(
        alice,
        TaskCreate(title="Original", description="Keep me", priority=TaskPriority.HIGH),
    )

    renamed = await service.update_task(alice, task.id, TaskUpdate.model_validate({"title": "Renamed"}))
    assert renamed.title == "Renamed"
    assert renamed.description == "Keep me"
    assert renamed.priority is TaskPriority.HIGH

    cleared = await service.update_task(alice, task.id, TaskUpdate.model_validate({"description": ""}))
    assert cleared.description == ""
    assert cleared.title == "Renamed"

    completed = await service.update_task(alice, task.id, TaskUpdate(status=TaskStatus.COMPLETED))
    assert completed.status is TaskStatus.COMPLETED
    reopened = await service.update_task(alice, task.id, TaskUpdate(status=TaskStatus.PENDING))
    assert reopened.status is TaskStatus.PENDING


async def test_missing_and_malformed_ids_are_not_found(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)

    for task_id in (12345, "not-an-id", "-1", "0", "١٢", str(2**70)):
        with pytest.raises(NotFoundError):
            await service.get_task(alice, task_id)


async def test_delete_removes_task(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)
    task = await service.create_task(alice, TaskCreate(title="Temporary"))

    await service.delete_task(alice, task.id)

    with pytest.raises(NotFoundError):
        await service.get_task(alice, task.id)


async def test_pagination_over_twelve_tasks(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)
    for index in range(12):
        await service.create_task(alice, TaskCreate(title=f"Task {index}"))

    first = await service.list_tasks(alice, page=1, limit=5)
    assert len(first.tasks) == 5
    assert first.total == 12
    assert first.total_pages == 3
    assert first.has_next is True
    assert first.has_prev is False
    assert [task.title for task in first.tasks] == [f"Task {index}" for index in range(11, 6, -1)]

    last = await service.list_tasks(alice, page="3", limit="5")
    assert len(last.tasks) == 2
    assert last.has_next is False
    assert last.has_prev is True


async def test_listing_is_scoped_to_assignee_and_filters(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    bob = await _create_user(session, "Bob", "bob@example.com")
    service = TaskService(session)

    await service.create_task(alice, TaskCreate(title="High one", priority=TaskPriority.HIGH))
    low = await service.create_task(alice, TaskCreate(title="Low one", priority=TaskPriority.LOW))
    await service.update_task(alice, low.id, TaskUpdate(status=TaskStatus.COMPLETED))
    await service.create_task(alice, TaskCreate(title="For Bob", assigned_to=bob.id))

    everything = await service.list_tasks(alice)
    assert {task.title for task in everything.tasks} == {"High one", "Low one"}

    high = await service.list_tasks(alice, priority="High")
    assert [task.title for task in high.tasks] == ["High one"]

    completed = await service.list_tasks(alice, status=TaskStatus.COMPLETED)
    assert [task.title for task in completed.tasks] == ["Low one"]

    unfiltered = await service.list_tasks(alice, status="", priority="")
    assert unfiltered.total == 2

    unknown = await service.list_tasks(alice, status="archived")
    assert unknown.tasks == []
    assert unknown.total == 0

    bobs = await service.list_tasks(bob)
    assert [task.title for task in bobs.tasks] == ["For Bob"]


async def test_invalid_paging_falls_back_to_defaults(session: AsyncSession) -> None:
    alice = await _create_user(session, "Alice", "alice@example.com")
    service = TaskService(session)

    page = await service.list_tasks(alice, page="zero", limit="-4")

    assert page.page == 1
    assert page.limit == 10


async def test_list_users_orders_by_name(session: AsyncSession) -> None:
    await _create_user(session, "Zoe", "zoe@example.com")
    await _create_user(session, "Adam", "adam@example.com")

    users = await TaskService(session).list_users()

    assert [user.name for user in users] == ["Adam", "Zoe"]


def test_assignee_predicate() -> None:
    owner = User(id=1, name="Owner", email="owner@example.com", hashed_password="x")
    other = User(id=2, name="Other", email="other@example.com", hashed_password="x")

    class _Task:
        assigned_to_id = 1

    assert is_task_assignee(owner, _Task()) is True
    assert is_task_assignee(other, _Task()) is False
    ensure_task_access(owner, _Task())
    with pytest.raises(AuthorizationError):
        ensure_task_access(other, _Task())


def test_task_page_flags() -> None:
    empty = TaskPage(tasks=[], total=0, page=1, limit=10)
    assert empty.total_pages == 0
    assert empty.has_next is False
    assert empty.has_prev is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3", 3),
        (7, 7),
        ("0005", 5),
        ("0", 10),
        ("-2", 10),
        ("abc", 10),
        (None, 10),
        (True, 10),
        ("²", 10),
        ("9" * 25, 2**63 - 1),
        (2**70, 2**63 - 1),
    ],
)
def test_coerce_positive_int(raw: object, expected: int) -> None:
    assert coerce_positive_int(raw, 10) == expected


def test_parse_task_id_rejects_out_of_range() -> None:
    assert parse_task_id("42") == 42
    assert parse_task_id(" 7 ") == 7
    assert parse_task_id("0") is None
    assert parse_task_id(str(2**63)) is None
    assert parse_task_id(False) is None
    assert parse_task_id("9" * 5000) is None
    assert parse_task_id("0" * 30 + "42") == 42
