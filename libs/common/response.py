"""
공통 응답 형식
모든 엔드포인트는 `{status, message, data?, fieldError?}` 형태로 응답합니다.
"""
from enum import IntEnum
from typing import Any

from fastapi import status as http_status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

# 처리 중 예상하지 못한 오류가 발생했을 때 사용자에게 보여줄 메시지
SYSTEM_ERROR_MESSAGE = "시스템 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


class ResponseStatus(IntEnum):
    ERROR = 0
    SUCCESS = 1


def success_response(
    message: str,
    data: Any = None,
    status_code: int = http_status.HTTP_200_OK,
) -> JSONResponse:
    """성공 응답을 생성합니다. data가 None이면 응답에서 생략합니다."""
    content: dict[str, Any] = {
        "status": ResponseStatus.SUCCESS,
        "message": message,
    }
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_response(
    message: str,
    status_code: int,
    code: str | None = None,
    data: Any = None,
    field_error: list[dict] | None = None,
) -> JSONResponse:
    """실패 응답을 생성합니다."""
    content: dict[str, Any] = {
        "status": ResponseStatus.ERROR,
        "message": message,
    }
    if code:
        content["code"] = code
    if data is not None:
        content["data"] = data
    if field_error:
        content["fieldError"] = field_error
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
