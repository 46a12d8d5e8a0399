from __future__ import annotations

from fastapi import APIRouter, Request, status
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message, login_user, logout_user, validate_csrf_token
from ..core.templates import template_response
from ..deps import (
    AuthenticatedSessionUserDependency,
    DatabaseSessionDependency,
    SessionUserDependency,
    SettingsDependency,
)
from ..errors import ApplicationError, field_errors_from_pydantic
from ..schemas import RegisterRequest
from ..schemas.auth import NAME_MIN_LENGTH, PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from ..services import AuthService

router = APIRouter(tags=["auth"])

_REGISTER_MESSAGES = {
    "name": f"Name must be at least {NAME_MIN_LENGTH} characters.",
    "email": "Please enter a valid email address.",
    "password": f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters.",
}


def _clean_email(raw: object) -> str:
    return str(raw or "").strip().lower()


def _clean_text(raw: object) -> str:
    return str(raw or "").strip()


def _form_payload(form: FormData) -> dict[str, str]:
    return {
        "email": _clean_email(form.get("email")),
        "name": _clean_text(form.get("name")),
    }


def _redirect_to_board(request: Request) -> RedirectResponse:
    return RedirectResponse(request.url_for("tasks:board"), status_code=303)


def _csrf_invalid_response(request: Request, context: dict[str, object], *, template: str) -> object:
    add_flash_message(request.session, "error", "The form has expired. Please try again.")
    return template_response(request, template, context, status_code=status.HTTP_400_BAD_REQUEST)


@router.get("/login", name="auth:login")
async def login_form(request: Request, current_user: SessionUserDependency) -> object:
    """Render the login form."""

    if current_user is not None and current_user.id is not None:
        return _redirect_to_board(request)
    return template_response(
        request,
        "auth/login.html",
        {
            "title": "Sign in",
            "form": {"email": ""},
            "errors": {},
        },
    )


@router.post("/login", name="auth:login:submit")
async def login_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Handle login form submissions."""

    form = await request.form()
    email = _clean_email(form.get("email"))
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        context = {"title": "Sign in", "form": {"email": email}, "errors": {}}
        return _csrf_invalid_response(request, context, template="auth/login.html")

    password = str(form.get("password") or "")

    errors: dict[str, str] = {}
    if not email:
        errors["email"] = "Email is required."
    if not password:
        errors["password"] = "Password is required."

    user = None
    if not errors:
        user = await AuthService(session, settings).authenticate_user(email, password)
        if user is None or user.id is None:
            errors["email"] = "Incorrect email or password."

    if errors or user is None or user.id is None:
        return template_response(
            request,
            "auth/login.html",
            {
                "title": "Sign in",
                "form": {"email": email},
                "errors": errors,
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    login_user(request.session, user.id)
    add_flash_message(request.session, "success", f"Welcome back, {user.name}!")
    return _redirect_to_board(request)


@router.get("/register", name="auth:register")
async def register_form(request: Request, current_user: SessionUserDependency) -> object:
    """Render the registration form."""

    if current_user is not None and current_user.id is not None:
        return _redirect_to_board(request)
    return template_response(
        request,
        "auth/register.html",
        {
            "title": "Create an account",
            "form": {"email": "", "name": ""},
            "errors": {},
        },
    )


@router.post("/register", name="auth:register:submit")
async def register_submit(
    request: Request,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> object:
    """Handle registration form submissions."""

    form = await request.form()
    payload = _form_payload(form)
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        context = {"title": "Create an account", "form": payload, "errors": {}}
        return _csrf_invalid_response(request, context, template="auth/register.html")

    password = str(form.get("password") or "")
    confirm_password = str(form.get("confirm_password") or "")

    errors: dict[str, str] = {}
    registration: RegisterRequest | None = None
    try:
        registration = RegisterRequest(name=payload["name"], email=payload["email"], password=password)
    except PydanticValidationError as exc:
        for error in field_errors_from_pydantic(exc.errors()):
            errors[error.field] = _REGISTER_MESSAGES.get(error.field, error.message)
    if password != confirm_password:
        errors.setdefault("confirm_password", "Passwords do not match.")

    user = None
    if registration is not None and not errors:
        try:
            user = await AuthService(session, settings).register_user(
                name=registration.name,
                email=registration.email,
                password=registration.password,
            )
        except ApplicationError as exc:
            errors["email"] = exc.message

    if errors or user is None or user.id is None:
        return template_response(
            request,
            "auth/register.html",
            {
                "title": "Create an account",
                "form": payload,
                "errors": errors,
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    login_user(request.session, user.id)
    add_flash_message(request.session, "success", "Your account has been created.")
    return _redirect_to_board(request)


@router.post("/logout", name="auth:logout")
async def logout(
    request: Request,
    _: AuthenticatedSessionUserDependency,
) -> RedirectResponse:
    """Sign the user out and clear their browser session."""

    form = await request.form()
    if not validate_csrf_token(request.session, form.get("csrf_token")):
        add_flash_message(request.session, "error", "Invalid sign out request.")
        return _redirect_to_board(request)

    logout_user(request.session)
    add_flash_message(request.session, "info", "You have been signed out.")
    return RedirectResponse(request.url_for("pages:home"), status_code=303)
