from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    **extra: Any,
) -> JSONResponse:
    body: dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, by_alias=True))


def error(
    message: str,
    status_code: int,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    body: dict[str, Any] = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
