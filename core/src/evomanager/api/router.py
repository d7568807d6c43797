from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from evomanager.api.models import (
    ApiResponse,
    LoginRequest,
    LoginTarget,
    SessionInfo,
    fail,
    ok,
)
from evomanager.deps import get_orchestrator, get_token_store
from evomanager.session import (
    LoginFailure,
    SessionOrchestrator,
    logout,
    validate_login_input,
)
from evomanager.token_store import TokenStore, load_session

router = APIRouter(prefix="/api", tags=["api"])


@router.post("/login", response_model=ApiResponse[LoginTarget])
async def api_login(
    body: LoginRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> ApiResponse[LoginTarget] | JSONResponse:
    server_url = body.server_url.strip()
    api_key = body.api_key.strip()

    errors = validate_login_input(server_url, api_key)
    if errors:
        return JSONResponse(
            status_code=400,
            content=fail(
                code="invalid_input",
                message="Invalid login input",
                details={"fieldErrors": errors},
            ).model_dump(mode="json"),
        )

    result = await orchestrator.login(server_url, api_key)
    if isinstance(result, LoginFailure):
        return JSONResponse(
            status_code=401,
            content=fail(
                code="login_failed",
                message="Login failed",
                details={"fieldErrors": result.field_errors},
            ).model_dump(mode="json"),
        )
    return ok(LoginTarget(target=result.target))


@router.get("/session", response_model=ApiResponse[SessionInfo])
async def api_session(
    store: TokenStore = Depends(get_token_store),  # noqa: B008
) -> ApiResponse[SessionInfo]:
    session = load_session(store)
    if session is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return ok(
        SessionInfo(
            api_url=session.api_url,
            instance_id=session.instance_id,
            instance_name=session.instance_name,
            version=session.version,
            client_name=session.client_name,
        )
    )


@router.post("/logout", response_model=ApiResponse[dict[str, bool]])
async def api_logout(
    store: TokenStore = Depends(get_token_store),  # noqa: B008
) -> ApiResponse[dict[str, bool]]:
    logout(store)
    return ok({"loggedOut": True})
