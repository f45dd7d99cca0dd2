"""Uniform response envelope.

Every endpoint answers with `{status, message, errors, data}` and an HTTP
status equal to `status`.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(status: int, message: str, data: Any = None, errors: Optional[dict] = None) -> JSONResponse:
    body = {
        "status": status,
        "message": message,
        "errors": errors,
        "data": data,
    }
    return JSONResponse(status_code=status, content=jsonable_encoder(body))


def ok(message: str, data: Any = None) -> JSONResponse:
    return envelope(200, message, data=data)


def created(message: str, data: Any = None) -> JSONResponse:
    return envelope(201, message, data=data)
