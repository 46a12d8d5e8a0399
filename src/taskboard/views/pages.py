"""Public landing page."""

from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import RedirectResponse, Response

from ..core.templates import template_response
from ..deps import SessionUserDependency
from ..models import TaskPriority

router = APIRouter(tags=["web"])


@router.get("/", name="pages:home", response_model=None)
async def home(request: Request, current_user: SessionUserDependency) -> Response:
    """Send signed-in users straight to their board; everyone else sees the pitch."""

    if current_user is not None:
        return RedirectResponse(request.url_for("tasks:board"), status_code=303)
    return template_response(
        request,
        "pages/home.html",
        {"title": "Welcome", "priorities": list(TaskPriority)},
    )
