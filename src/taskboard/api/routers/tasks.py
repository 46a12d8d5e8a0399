"""Routes handling task CRUD operations for the calling user."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from ...deps import CurrentUserDependency, TaskServiceDependency
from ...models import Task
from ...schemas import (
    ErrorResponse,
    MessageResponse,
    PaginationMeta,
    TaskCreate,
    TaskListResponse,
    TaskMutationResponse,
    TaskRead,
    TaskUpdate,
    UserPublic,
)
from ...services.tasks import TaskPage

router = APIRouter(prefix="/tasks", tags=["tasks"])

# Raw strings: malformed paging values fall back to defaults instead of failing.
PageQuery = Annotated[
    str | None,
    Query(description="1-based page number; anything but a positive integer means 1."),
]
LimitQuery = Annotated[
    str | None,
    Query(description="Page size; anything but a positive integer means the default (10)."),
]
StatusQuery = Annotated[
    str | None,
    Query(description="Only tasks with this status (`pending` or `completed`)."),
]
PriorityQuery = Annotated[
    str | None,
    Query(description="Only tasks with this priority (`Low`, `Medium` or `High`)."),
]

_TASK_ERROR_RESPONSES = {
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller is not the assignee"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Task not found"},
}
_VALIDATION_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Validation failed"},
}


def _map_task(task: Task) -> TaskRead:
    return TaskRead.model_validate(task)


def _map_page(page: TaskPage) -> TaskListResponse:
    return TaskListResponse(
        tasks=[_map_task(task) for task in page.tasks],
        pagination=PaginationMeta(
            current_page=page.page,
            total_pages=page.total_pages,
            total_tasks=page.total,
            limit=page.limit,
            has_next=page.has_next,
            has_prev=page.has_prev,
        ),
    )


@router.get(
    "",
    response_model=TaskListResponse,
    summary="List tasks assigned to the caller",
)
async def list_tasks(
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
    page: PageQuery = None,
    limit: LimitQuery = None,
    status: StatusQuery = None,
    priority: PriorityQuery = None,
) -> TaskListResponse:
    task_page = await service.list_tasks(
        current_user,
        status=status,
        priority=priority,
        page=page,
        limit=limit,
    )
    return _map_page(task_page)


@router.get(
    "/users",
    response_model=list[UserPublic],
    summary="List users tasks can be assigned to",
)
async def list_assignable_users(
    service: TaskServiceDependency,
    _: CurrentUserDependency,
) -> list[UserPublic]:
    users = await service.list_users()
    return [UserPublic.model_validate(user) for user in users]


@router.get(
    "/{task_id}",
    response_model=TaskRead,
    responses=_TASK_ERROR_RESPONSES,
    summary="Retrieve a task by id",
)
async def get_task(
    task_id: str,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskRead:
    task = await service.get_task(current_user, task_id)
    return _map_task(task)


@router.post(
    "",
    response_model=TaskMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_VALIDATION_RESPONSES,
    summary="Create a task",
)
async def create_task(
    payload: TaskCreate,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskMutationResponse:
    task = await service.create_task(current_user, payload)
    return TaskMutationResponse(message="Task created successfully", task=_map_task(task))


@router.put(
    "/{task_id}",
    response_model=TaskMutationResponse,
    responses={**_TASK_ERROR_RESPONSES, **_VALIDATION_RESPONSES},
    summary="Update the supplied fields of a task",
)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> TaskMutationResponse:
    task = await service.update_task(current_user, task_id, payload)
    return TaskMutationResponse(message="Task updated successfully", task=_map_task(task))


@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    responses=_TASK_ERROR_RESPONSES,
    summary="Delete a task",
)
async def delete_task(
    task_id: str,
    service: TaskServiceDependency,
    current_user: CurrentUserDependency,
) -> MessageResponse:
    await service.delete_task(current_user, task_id)
    return MessageResponse(message="Task deleted successfully")
