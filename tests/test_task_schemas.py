from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from taskboard.errors import field_errors_from_pydantic
from taskboard.models import TaskPriority, TaskStatus
from taskboard.schemas import TaskCreate, TaskUpdate


def _messages(exc: ValidationError) -> dict[str, str]:
    return {error.field: error.message for error in field_errors_from_pydantic(exc.errors())}


def test_title_length_boundaries() -> None:
    assert TaskCreate(title="x" * 200).title == "x" * 200
    assert TaskCreate(title="  padded  ").title == "padded"

    with pytest.raises(ValidationError) as too_long:
        TaskCreate(title="x" * 201)
    assert _messages(too_long.value) == {"title": "Title must be between 1 and 200 characters"}

    with pytest.raises(ValidationError) as blank:
        TaskCreate(title="   ")
    assert _messages(blank.value) == {"title": "Task title is required"}


def test_missing_title_is_required() -> None:
    with pytest.raises(ValidationError) as excinfo:
        TaskCreate.model_validate({})
    assert _messages(excinfo.value) == {"title": "Task title is required"}


def test_every_violation_is_reported() -> None:
    with pytest.raises(ValidationError) as excinfo:
        TaskCreate.model_validate(
            {
                "title": "",
                "description": "d" * 1001,
                "dueDate": "next tuesday",
                "priority": "Urgent",
                "assignedTo": "abc",
            }
        )

    assert _messages(excinfo.value) == {
        "title": "Task title is required",
        "description": "Description cannot exceed 1000 characters",
        "dueDate": "Please provide a valid date",
        "priority": "Priority must be Low, Medium, or High",
        "assignedTo": "Please provide a valid user ID",
    }


def test_create_accepts_camel_and_snake_case() -> None:
    camel = TaskCreate.model_validate({"title": "A", "dueDate": "2031-05-04T10:00:00Z", "assignedTo": "3"})
    snake = TaskCreate.model_validate({"title": "A", "due_date": "2031-05-04", "assigned_to": 3})

    assert camel.due_date == snake.due_date == date(2031, 5, 4)
    assert camel.assigned_to == snake.assigned_to == 3
    assert camel.priority is TaskPriority.MEDIUM


def test_create_treats_blank_optional_fields_as_absent() -> None:
    payload = TaskCreate.model_validate({"title": "A", "dueDate": "", "assignedTo": ""})

    assert payload.due_date is None
    assert payload.assigned_to is None


def test_create_ignores_server_managed_keys() -> None:
    payload = TaskCreate.model_validate({"title": "A", "status": "completed", "createdBy": 9, "id": 4})

    assert "status" not in payload.model_dump()
    assert "created_by" not in payload.model_dump()


def test_update_tracks_presence_not_truthiness() -> None:
    assert TaskUpdate.model_validate({}).changes() == {}
    assert TaskUpdate.model_validate({"description": ""}).changes() == {"description": ""}
    assert TaskUpdate.model_validate({"description": None}).changes() == {"description": None}
    assert TaskUpdate.model_validate({"dueDate": ""}).changes() == {"due_date": None}
    assert TaskUpdate.model_validate({"status": "completed"}).changes() == {"status": TaskStatus.COMPLETED}


@pytest.mark.parametrize(
    ("payload", "field", "message"),
    [
        ({"title": "  "}, "title", "Task title cannot be empty"),
        ({"title": None}, "title", "Task title cannot be empty"),
        ({"status": "done"}, "status", "Status must be pending or completed"),
        ({"status": None}, "status", "Status must be pending or completed"),
        ({"priority": None}, "priority", "Priority must be Low, Medium, or High"),
        ({"assignedTo": None}, "assignedTo", "Please provide a valid user ID"),
        ({"assignedTo": 0}, "assignedTo", "Please provide a valid user ID"),
    ],
)
def test_update_rejects_invalid_values(payload: dict[str, object], field: str, message: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        TaskUpdate.model_validate(payload)
    assert _messages(excinfo.value) == {field: message}
