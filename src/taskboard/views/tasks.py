"""Browser views for the task board, task forms and HTMX card actions."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message, validate_csrf_token
from ..core.templates import is_htmx_request, partial_response, template_response
from ..deps import AuthenticatedSessionUserDependency, TaskServiceDependency
from ..errors import ApplicationError, ValidationError, field_errors_from_pydantic
from ..models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task, TaskPriority, TaskStatus, User
from ..schemas import TaskCreate, TaskUpdate
from ..schemas.task import DUE_DATE_MESSAGE, parse_due_date
from ..services.tasks import TaskPage

router = APIRouter(tags=["tasks"])

PAGE_SIZE_CHOICES = (5, 10, 20)
PAST_DUE_DATE_MESSAGE = "Due date cannot be in the past"
CSRF_EXPIRED_MESSAGE = "The form has expired. Please try again."
FLASH_TARGET = "#flash-messages"

_FORM_FIELDS = ("title", "description", "dueDate", "priority", "status", "assignedTo")


def _clean_text(raw: object) -> str:
    return str(raw or "").strip()


def _form_values(form: FormData) -> dict[str, str]:
    return {name: _clean_text(form.get(name)) for name in _FORM_FIELDS}


def _form_from_task(task: Task) -> dict[str, str]:
    return {
        "title": task.title,
        "description": task.description or "",
        "dueDate": task.due_date.isoformat() if task.due_date else "",
        "priority": task.priority.value,
        "status": task.status.value,
        "assignedTo": str(task.assigned_to_id),
    }


def _collect_errors(exc: PydanticValidationError) -> dict[str, str]:
    return {error.field: error.message for error in field_errors_from_pydantic(exc.errors())}


def _merge_service_errors(errors: dict[str, str], exc: ValidationError) -> None:
    if not exc.errors:
        errors.setdefault("form", exc.message)
    for error in exc.errors:
        errors.setdefault(error.field, error.message)


def _group_by_priority(tasks: list[Task]) -> list[tuple[TaskPriority, list[Task]]]:
    """Split one page of tasks into High, Medium and Low columns, keeping order."""

    columns: dict[TaskPriority, list[Task]] = {priority: [] for priority in TaskPriority}
    for task in tasks:
        columns[task.priority].append(task)
    return list(columns.items())


def _safe_next(raw: object) -> str | None:
    target = _clean_text(raw)
    if target.startswith("/") and not target.startswith("//"):
        return target
    return None


def _redirect(request: Request, target: str | None = None) -> RedirectResponse:
    return RedirectResponse(target or request.url_for("tasks:board"), status_code=303)


def _htmx_error(request: Request, exc: ApplicationError) -> Response:
    """Report a failed HTMX action in the flash area, leaving the card alone."""

    return partial_response(
        request,
        "partials/_messages.html",
        {"messages": [{"category": "error", "message": exc.message}]},
        status_code=exc.status_code,
        headers={"HX-Retarget": FLASH_TARGET, "HX-Reswap": "innerHTML"},
    )


def _require_csrf(request: Request, form: FormData) -> None:
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        raise ApplicationError(CSRF_EXPIRED_MESSAGE, code="csrf_invalid")


def _form_context(
    *,
    title: str,
    form: dict[str, str],
    errors: dict[str, str],
    users: list[User],
    task: Task | None = None,
) -> dict[str, Any]:
    return {
        "title": title,
        "form": form,
        "errors": errors,
        "users": users,
        "task": task,
        "priorities": list(TaskPriority),
        "statuses": list(TaskStatus),
        "title_max_length": TITLE_MAX_LENGTH,
        "description_max_length": DESCRIPTION_MAX_LENGTH,
        "today": date.today().isoformat(),
    }


def _board_context(request: Request, task_page: TaskPage, filters: dict[str, str]) -> dict[str, Any]:
    prev_url = next_url = None
    if task_page.has_prev:
        prev_url = str(request.url.include_query_params(page=task_page.page - 1))
    if task_page.has_next:
        next_url = str(request.url.include_query_params(page=task_page.page + 1))
    return {
        "title": "My tasks",
        "page": task_page,
        "columns": _group_by_priority(task_page.tasks),
        "filters": filters,
        "priorities": list(TaskPriority),
        "statuses": list(TaskStatus),
        "page_sizes": PAGE_SIZE_CHOICES,
        "prev_url": prev_url,
        "next_url": next_url,
    }


@router.get("", name="tasks:board")
async def board(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    priority: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> object:
    """Render the caller's tasks grouped by priority, one page at a time."""

    task_page = await service.list_tasks(
        current_user,
        status=status_filter,
        priority=priority,
        page=page,
        limit=limit,
    )
    filters = {
        "status": status_filter or "",
        "priority": priority or "",
        "limit": str(task_page.limit),
    }
    return template_response(request, "tasks/board.html", _board_context(request, task_page, filters))


@router.get("/new", name="tasks:new")
async def new_task_form(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    users = await service.list_users()
    form = {name: "" for name in _FORM_FIELDS}
    form["priority"] = TaskPriority.MEDIUM.value
    return template_response(
        request,
        "tasks/form.html",
        _form_context(title="New task", form=form, errors={}, users=users),
    )


@router.post("/new", name="tasks:create")
async def create_task(
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    """Validate the creation form and persist the task."""

    form = await request.form()
    values = _form_values(form)
    errors: dict[str, str] = {}

    if not validate_csrf_token(request.session, form.get("csrf_token")):
        errors["form"] = CSRF_EXPIRED_MESSAGE

    payload: TaskCreate | None = None
    try:
        payload = TaskCreate.model_validate(
            {
                "title": values["title"],
                "description": values["description"] or None,
                "dueDate": values["dueDate"],
                "priority": values["priority"] or TaskPriority.MEDIUM.value,
                "assignedTo": values["assignedTo"],
            }
        )
    except PydanticValidationError as exc:
        errors.update(_collect_errors(exc))

    if "dueDate" not in errors:
        try:
            due_date = parse_due_date(values["dueDate"])
        except ValueError:
            errors["dueDate"] = DUE_DATE_MESSAGE
        else:
            if due_date is not None and due_date < date.today():
                errors["dueDate"] = PAST_DUE_DATE_MESSAGE

    task: Task | None = None
    if payload is not None and not errors:
        try:
            task = await service.create_task(current_user, payload)
        except ValidationError as exc:
            _merge_service_errors(errors, exc)

    if task is None:
        users = await service.list_users()
        return template_response(
            request,
            "tasks/form.html",
            _form_context(title="New task", form=values, errors=errors, users=users),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    add_flash_message(request.session, "success", "Task created successfully.")
    return _redirect(request)


@router.get("/{task_id}", name="tasks:detail")
async def task_detail(
    task_id: str,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    task = await service.get_task(current_user, task_id)
    return template_response(request, "tasks/detail.html", {"title": task.title, "task": task})


@router.get("/{task_id}/edit", name="tasks:edit")
async def edit_task_form(
    task_id: str,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    task = await service.get_task(current_user, task_id)
    users = await service.list_users()
    return template_response(
        request,
        "tasks/form.html",
        _form_context(title="Edit task", form=_form_from_task(task), errors={}, users=users, task=task),
    )


@router.post("/{task_id}/edit", name="tasks:update")
async def update_task(
    task_id: str,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    """Apply the edit form; every field is submitted, so every field is written."""

    task = await service.get_task(current_user, task_id)
    form = await request.form()
    values = _form_values(form)
    errors: dict[str, str] = {}

    if not validate_csrf_token(request.session, form.get("csrf_token")):
        errors["form"] = CSRF_EXPIRED_MESSAGE

    raw_payload: dict[str, str] = {
        "title": values["title"],
        "description": values["description"],
        "dueDate": values["dueDate"],
        "status": values["status"],
        "priority": values["priority"],
    }
    if values["assignedTo"]:
        raw_payload["assignedTo"] = values["assignedTo"]

    payload: TaskUpdate | None = None
    try:
        payload = TaskUpdate.model_validate(raw_payload)
    except PydanticValidationError as exc:
        errors.update(_collect_errors(exc))

    updated: Task | None = None
    if payload is not None and not errors:
        try:
            updated = await service.update_task(current_user, task_id, payload)
        except ValidationError as exc:
            _merge_service_errors(errors, exc)

    if updated is None:
        users = await service.list_users()
        return template_response(
            request,
            "tasks/form.html",
            _form_context(title="Edit task", form=values, errors=errors, users=users, task=task),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    add_flash_message(request.session, "success", "Task updated successfully.")
    if updated.assigned_to_id != current_user.id:
        # Reassigned away: the detail page is no longer readable by the caller.
        return _redirect(request)
    return _redirect(request, str(request.url_for("tasks:detail", task_id=str(updated.id))))


@router.post("/{task_id}/toggle", name="tasks:toggle")
async def toggle_status(
    task_id: str,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    """Flip a task between pending and completed."""

    form = await request.form()
    htmx = is_htmx_request(request)
    try:
        _require_csrf(request, form)
        task = await service.get_task(current_user, task_id)
        task = await service.update_task(current_user, task_id, TaskUpdate(status=task.status.toggled))
    except ApplicationError as exc:
        if htmx:
            return _htmx_error(request, exc)
        raise

    if htmx:
        return partial_response(request, "tasks/_task_card.html", {"task": task})

    label = "completed" if task.status is TaskStatus.COMPLETED else "reopened"
    add_flash_message(request.session, "success", f"Task {label}.")
    return _redirect(request, _safe_next(form.get("next")))


@router.post("/{task_id}/delete", name="tasks:delete")
async def delete_task(
    task_id: str,
    request: Request,
    current_user: AuthenticatedSessionUserDependency,
    service: TaskServiceDependency,
) -> object:
    form = await request.form()
    htmx = is_htmx_request(request)
    try:
        _require_csrf(request, form)
        await service.delete_task(current_user, task_id)
    except ApplicationError as exc:
        if htmx:
            return _htmx_error(request, exc)
        raise

    if htmx:
        # An empty body swaps the card out of the board.
        return Response(status_code=status.HTTP_200_OK)

    add_flash_message(request.session, "success", "Task deleted successfully.")
    return _redirect(request)
