from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from evomanager.autologin import AutoLoginTrigger
from evomanager.deps import get_orchestrator, get_token_store, require_session
from evomanager.session import (
    LOGIN_PATH,
    SERVER_URL_FIELD,
    LoginFailure,
    LoginResult,
    SessionOrchestrator,
    instance_dashboard_path,
    logout,
    validate_login_input,
)
from evomanager.token_store import TokenStore, load_session

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(prefix="/manager", tags=["ui"])


def _flash_from_request(request: Request) -> dict[str, Any] | None:
    msg = request.query_params.get("msg")
    if not msg:
        return None
    kind = request.query_params.get("kind") or ""
    return {"message": msg, "kind": kind}


def _default_server_url(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def _render_login(
    request: Request,
    *,
    server_url: str | None = None,
    field_errors: dict[str, str] | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "title": "Login • Evolution Manager",
            "flash": _flash_from_request(request),
            "server_url": server_url if server_url is not None else _default_server_url(request),
            "errors": field_errors or {},
        },
        status_code=status_code,
    )


def _login_response(request: Request, result: LoginResult, server_url: str) -> Response:
    if isinstance(result, LoginFailure):
        # URL problems are input errors; key problems are authentication errors.
        status_code = 400 if SERVER_URL_FIELD in result.field_errors else 401
        return _render_login(
            request,
            server_url=server_url,
            field_errors=result.field_errors,
            status_code=status_code,
        )
    return RedirectResponse(url=result.target, status_code=302)


async def _submit_login(
    orchestrator: SessionOrchestrator, server_url: str, api_key: str
) -> LoginResult:
    """Validate the two fields, then run the login. Used by the form and by auto-login."""

    server_url = server_url.strip()
    api_key = api_key.strip()

    errors = validate_login_input(server_url, api_key)
    if errors:
        return LoginFailure(errors)
    return await orchestrator.login(server_url, api_key)


@router.get("", include_in_schema=False)
async def ui_index(store: TokenStore = Depends(get_token_store)) -> RedirectResponse:  # noqa: B008
    session = load_session(store)
    if session is None:
        return RedirectResponse(url=LOGIN_PATH, status_code=302)
    return RedirectResponse(url=instance_dashboard_path(session.instance_id), status_code=302)


@router.get("/login", response_class=HTMLResponse, response_model=None)
async def ui_login(request: Request) -> Response:
    orchestrator = get_orchestrator(request)

    async def submit(server_url: str, api_key: str) -> LoginResult:
        return await _submit_login(orchestrator, server_url, api_key)

    # One trigger per page load: this request is the login page's whole lifetime.
    trigger = AutoLoginTrigger(submit)
    result = await trigger.maybe_fire(request.query_params)
    if result is not None:
        server_url = (request.query_params.get("serverUrl") or "").strip()
        return _login_response(request, result, server_url)

    return _render_login(request)


@router.post("/login", response_model=None)
async def ui_login_post(
    request: Request,
    server_url: str = Form("", alias="serverUrl"),
    api_key: str = Form("", alias="apiKey"),
) -> Response:
    server_url = (server_url or "").strip()
    result = await _submit_login(get_orchestrator(request), server_url, api_key or "")
    return _login_response(request, result, server_url)


@router.post("/logout")
async def ui_logout(store: TokenStore = Depends(get_token_store)) -> RedirectResponse:  # noqa: B008
    logout(store)
    return RedirectResponse(url=f"{LOGIN_PATH}?msg=Logged+out", status_code=302)


@router.get("/instance/{instance_id}/dashboard", response_class=HTMLResponse, response_model=None)
async def ui_dashboard(
    request: Request,
    instance_id: str,
    store: TokenStore = Depends(require_session),  # noqa: B008
) -> Response:
    session = load_session(store)
    if session is None:
        return RedirectResponse(url=LOGIN_PATH, status_code=302)

    if instance_id != session.instance_id:
        return RedirectResponse(url=instance_dashboard_path(session.instance_id), status_code=302)

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "title": f"{session.instance_name or session.instance_id} • Evolution Manager",
            "flash": _flash_from_request(request),
            "session": session,
        },
    )
