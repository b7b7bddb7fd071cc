"""
Server-rendered user administration pages.

Each page calls the users REST API through ApiClient and renders the result
with Jinja2. Outcomes of form posts are reported on the next page through
`success` / `error` query parameters.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from usermanager.config import get_settings
from usermanager.models.user import UserRole
from usermanager.web.api_client import ApiClient, ApiError, get_api_client

logger = logging.getLogger(__name__)
pagination = get_settings().pagination

router = APIRouter(prefix="/users", tags=["pages"])

# Templates
templates_path = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(templates_path),
    autoescape=select_autoescape(["html"]),
)


def _render_template_sync(template_name: str, context: dict) -> str:
    template = jinja_env.get_template(template_name)
    return template.render(**context)


async def render(template_name: str, context: dict, status_code: int = 200) -> HTMLResponse:
    """Render a template in the threadpool so the event loop is not blocked."""
    context = {"app_name": get_settings().APP_NAME, "roles": [r.value for r in UserRole], **context}
    content = await run_in_threadpool(_render_template_sync, template_name, context)
    return HTMLResponse(content=content, status_code=status_code)


def redirect_to_index(success: Optional[str] = None, error: Optional[str] = None) -> RedirectResponse:
    params = {key: value for key, value in (("success", success), ("error", error)) if value}
    url = "/users" + (f"?{urlencode(params)}" if params else "")
    return RedirectResponse(url=url, status_code=303)


def _empty_page(page_number: int, page_size: int) -> dict:
    return {
        "items": [],
        "total_count": 0,
        "page_number": page_number,
        "page_size": page_size,
        "total_pages": 0,
    }


@router.get("", response_class=HTMLResponse)
async def users_index(
    request: Request,
    page_number: int = Query(pagination.DEFAULT_PAGE_NUMBER),
    page_size: int = Query(pagination.DEFAULT_PAGE_SIZE),
    success: Optional[str] = None,
    error: Optional[str] = None,
    api: ApiClient = Depends(get_api_client),
):
    """User list page."""
    try:
        page = await api.list_users(page_number, page_size)
    except ApiError:
        page = _empty_page(page_number, page_size)
        error = "Unable to load the user list."

    return await render("index.html", {
        "request": request,
        "page": page,
        "success": success,
        "error": error,
    })


@router.get("/create", response_class=HTMLResponse)
async def create_page(request: Request):
    """Empty create form."""
    return await render("create.html", {"request": request, "form": {"role": UserRole.USER.value}, "errors": {}})


@router.post("/create", response_class=HTMLResponse)
async def create_submit(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    role: str = Form(UserRole.USER.value),
    api: ApiClient = Depends(get_api_client),
):
    """Create form submission: forwards to POST /api/users."""
    payload = {"username": username, "email": email, "password": password, "role": role}
    try:
        await api.create_user(payload)
    except ApiError as e:
        # Never echo the password back into the form
        form = {"username": username, "email": email, "role": role}
        return await render("create.html", {
            "request": request,
            "form": form,
            "errors": e.errors,
            "error": f"Failed to create user: {e.detail}",
        })

    return redirect_to_index(success="User created successfully.")


@router.get("/{user_id}/edit", response_class=HTMLResponse)
async def edit_page(
    request: Request,
    user_id: str,
    api: ApiClient = Depends(get_api_client),
):
    """Edit form prefilled from GET /api/users/{id}."""
    try:
        user = await api.get_user(user_id)
    except ApiError:
        return redirect_to_index(error="User not found.")

    form = {
        "user_id": user["id"],
        "username": user["username"],
        "email": user["email"],
        "role": user["role"],
        "is_active": user["is_active"],
    }
    return await render("edit.html", {"request": request, "form": form, "errors": {}})


@router.post("/{user_id}/edit", response_class=HTMLResponse)
async def edit_submit(
    request: Request,
    user_id: str,
    form_user_id: str = Form("", alias="user_id"),
    username: str = Form(""),
    email: str = Form(""),
    role: str = Form(UserRole.USER.value),
    is_active: bool = Form(False),
    api: ApiClient = Depends(get_api_client),
):
    """Edit form submission: forwards to PUT /api/users/{id}."""
    if form_user_id != user_id:
        return PlainTextResponse("User ID mismatch", status_code=400)

    payload = {
        "user_id": user_id,
        "username": username,
        "email": email,
        "role": role,
        "is_active": is_active,
    }
    try:
        await api.update_user(user_id, payload)
    except ApiError as e:
        return await render("edit.html", {
            "request": request,
            "form": payload,
            "errors": e.errors,
            "error": f"Failed to update user: {e.detail}",
        })

    return redirect_to_index(success="User updated successfully.")


@router.get("/{user_id}", response_class=HTMLResponse)
async def details_page(
    request: Request,
    user_id: str,
    api: ApiClient = Depends(get_api_client),
):
    """Read-only details page."""
    try:
        user = await api.get_user(user_id)
    except ApiError:
        return redirect_to_index(error="User not found.")

    return await render("details.html", {"request": request, "user": user})


@router.post("/{user_id}/delete")
async def delete_submit(
    user_id: str,
    api: ApiClient = Depends(get_api_client),
):
    """Delete button: forwards to DELETE /api/users/{id}."""
    try:
        await api.delete_user(user_id)
    except ApiError as e:
        logger.info(f"Delete of user {user_id} failed: {e.detail}")
        return redirect_to_index(error="Failed to delete user.")

    return redirect_to_index(success="User deleted successfully.")
