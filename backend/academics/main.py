"""FastAPI application entrypoint and HTTP controllers.

This module wires the academic administration API: logging, the request
id middleware, the exception handlers that render every failure as the
uniform `{status, message, errors, data}` envelope, the authentication
endpoints and the resource routers from `resources`.

Endpoints implemented here:
- POST /login
- POST /register
- POST /logout
- PUT /user/password
- GET /health
"""

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlmodel import Session
import json
import logging
import time
import uuid
from typing import Optional
from . import models, services
from .auth import get_current_token, get_current_user
from .config import settings
from .database import create_db_and_tables, get_session
from .errors import ApiError, ServerError
from .resources import routers
from .responses import created, envelope, ok
from .schemas import LoginIn, PasswordChangeIn, RegisterIn

app = FastAPI(title="Academic Administration API")
logger = logging.getLogger("academics.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps local frontends working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _log_request(request: Request, started: float, status_code: Optional[int] = None) -> None:
    """Emit one JSON line per request; a missing status marks a failure."""
    record = {
        "request_id": request.state.request_id,
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    if status_code is None:
        logger.exception("request_failed %s", json.dumps(record, ensure_ascii=True))
    else:
        logger.info("request_done %s", json.dumps(record, ensure_ascii=True))


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag each request with an id, echo it back and log the outcome."""
    request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        _log_request(request, started)
        raise
    response.headers["X-Request-ID"] = request.state.request_id
    _log_request(request, started, response.status_code)
    return response


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    errors = exc.errors
    if isinstance(exc, ServerError):
        # database details only leave the process in debug mode
        errors = exc.detail if settings.DEBUG else None
    return envelope(exc.status_code, exc.message, errors=errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "path", "query", "header"):
            loc = loc[1:]
        errors.setdefault(".".join(loc) or "body", []).append(err.get("msg", "invalid value"))
    return envelope(400, "Validation failed", errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    errors = {"code": type(exc).__name__, "message": str(exc)} if settings.DEBUG else None
    return envelope(500, "Unexpected server error", errors=errors)


@app.post('/login')
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate with email and password.

    Returns a bearer token and the user record; wrong credentials answer
    401 with null data.
    """
    user, token = services.AuthService(db).login(payload.email, payload.password)
    return ok('User authenticated successfully', {'token': token, 'user': services.public_user(user)})


@app.post('/register', status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Create an account and return its first bearer token."""
    user, token = services.AuthService(db).register(
        payload.name, payload.email, payload.password, payload.password_confirmation
    )
    return created('User registered successfully', {'token': token, 'user': services.public_user(user)})


@app.post('/logout')
def logout(token: models.AccessToken = Depends(get_current_token), db: Session = Depends(get_session)):
    """Revoke the token used for this request; other sessions stay valid."""
    services.AuthService(db).logout(token)
    return ok('Logged out successfully')


@app.put('/user/password')
def change_password(
    payload: PasswordChangeIn,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Change the caller's password.

    Every existing token of the user is revoked and a fresh one is
    returned.
    """
    token = services.AuthService(db).change_password(
        user, payload.current_password, payload.new_password, payload.new_password_confirmation
    )
    return ok('Password updated successfully', {'token': token})


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return ok("Service is healthy", {"status": "ok"})


for router in routers:
    app.include_router(router)
