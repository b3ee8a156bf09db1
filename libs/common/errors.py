"""
도메인 에러 정의
서비스 계층은 아래 에러를 즉시 발생시키고, 각 서비스의 main.py에 등록된
예외 핸들러가 공통 응답 형식으로 변환합니다.
"""
from typing import Any


class ShopError(Exception):
    """모든 도메인 에러의 기본 클래스"""

    status_code = 500
    default_code = "ERR-INTERNAL"

    def __init__(self, message: str, code: str | None = None, data: Any = None):
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.data = data


class ValidationError(ShopError):
    """잘못되었거나 누락된 입력"""

    status_code = 400
    default_code = "ERR-IVD-VALUE"


class NotFoundError(ShopError):
    """참조한 엔티티가 존재하지 않음"""

    status_code = 404
    default_code = "ERR-NOT-FOUND"


class ConflictError(ShopError):
    """중복 코드, 재고 부족, 이미 사용한 쿠폰 등 현재 상태와의 충돌"""

    status_code = 409
    default_code = "ERR-CONFLICT"


class StateError(ShopError):
    """허용되지 않는 상태 전이"""

    status_code = 400
    default_code = "ERR-IVD-STATE"


class InternalError(ShopError):
    """예상하지 못한 저장소/시스템 오류"""

    status_code = 500
    default_code = "ERR-INTERNAL"
