from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from evomanager import __version__
from evomanager.api.models import fail
from evomanager.api.router import router as api_router
from evomanager.config import ManagerConfig, load_manager_config, resolve_session_path
from evomanager.guard import LoginRequired, is_authorized
from evomanager.home import ManagerPaths, ensure_manager_layout, resolve_manager_home
from evomanager.http_client import build_async_client
from evomanager.session import LOGIN_PATH
from evomanager.token_store import InMemoryTokenStore, JsonFileTokenStore, TokenStore
from evomanager.ui.router import router as ui_router

logger = logging.getLogger(__name__)


def configure_file_logging(paths: ManagerPaths, config: ManagerConfig) -> None:
    log_path = paths.logs_dir / "manager.log"
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.logging.max_size_mb * 1024 * 1024,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(config.logging.level.upper())
    # Avoid adding duplicate handlers if reloaded
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        root.addHandler(file_handler)


def build_token_store(paths: ManagerPaths, config: ManagerConfig) -> TokenStore:
    if config.session.store == "memory":
        return InMemoryTokenStore()
    return JsonFileTokenStore(resolve_session_path(paths, config))


def create_app(*, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_manager_home()
        paths = ensure_manager_layout(home)
        config = load_manager_config(paths)

        configure_file_logging(paths, config)

        logger.info("Evolution Manager starting up")
        logger.info(f"Logs directory: {paths.logs_dir}")

        app.state.manager_home = home
        app.state.manager_paths = paths
        app.state.manager_config = config
        app.state.token_store = build_token_store(paths, config)

        async with build_async_client(config.http, transport=transport) as client:
            app.state.http_client = client
            yield

    app = FastAPI(title="Evolution Manager", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        # Path only: query strings may carry apiKey.
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(LoginRequired)
    async def _login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
        return RedirectResponse(url=LOGIN_PATH, status_code=302)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=fail(
                code="validation_error",
                message="Request validation failed",
                details=exc.errors(),
            ).model_dump(mode="json"),
        )

    def _status_to_code(status_code: int) -> str:
        if status_code == 401:
            return "unauthorized"
        if status_code == 403:
            return "forbidden"
        if status_code == 404:
            return "not_found"
        if status_code == 422:
            return "validation_error"
        if 400 <= status_code < 500:
            return "client_error"
        return "server_error"

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(
                code=_status_to_code(exc.status_code),
                message=str(exc.detail),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(
                code=_status_to_code(exc.status_code),
                message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=fail(code="internal_error", message="Internal server error").model_dump(
                mode="json"
            ),
        )

    app.include_router(api_router)
    app.include_router(ui_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> RedirectResponse:
        store = getattr(request.app.state, "token_store", None)
        if store is not None and is_authorized(store):
            return RedirectResponse(url="/manager", status_code=302)
        return RedirectResponse(url=LOGIN_PATH, status_code=302)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
