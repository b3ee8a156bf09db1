"""
공통 인증 모듈
외부 인증 서비스가 발급한 JWT access token을 검증합니다.
토큰 발급은 이 저장소의 범위가 아니며, 검증만 수행합니다.
"""
import logging
import os
from dataclasses import dataclass
from typing import Tuple

import jwt

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class AuthError(Exception):
    """인증 관련 에러"""
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
        logger.debug("AuthError: %s %s", code, message)


@dataclass(frozen=True)
class AuthUser:
    """토큰에서 추출한 요청자 정보"""
    user_id: int
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_jwt_config() -> Tuple[str, str]:
    """
    환경 변수에서 JWT 설정을 읽어옵니다.

    Returns:
        (secret_key, algorithm) 튜플
    """
    secret_key = os.getenv("JWT_SECRET_KEY") or os.getenv("SHOP_JWT_SECRET_KEY")
    algorithm = os.getenv("JWT_ALGORITHM", "HS256")

    if not secret_key:
        # 개발용 기본값 (프로덕션에서는 반드시 환경 변수로 설정)
        secret_key = "change-me-in-production"

    return (secret_key, algorithm)


def verify_access_token(access_token: str, secret_key: str | None = None, algorithm: str | None = None) -> AuthUser:
    """
    Access token을 검증하고 요청자 정보를 반환합니다.
    DB 조회 없이 토큰 자체의 `sub_id`, `role` 클레임만 사용합니다.

    Args:
        access_token: 검증할 access token (JWT)
        secret_key: 서명 키 (None이면 환경 변수에서 읽음)
        algorithm: JWT 알고리즘 (None이면 환경 변수 또는 HS256)

    Returns:
        AuthUser

    Raises:
        AuthError: 토큰이 유효하지 않은 경우
    """
    if not secret_key or not algorithm:
        secret_key, algorithm = get_jwt_config()

    try:
        payload = jwt.decode(
            access_token,
            secret_key,
            algorithms=[algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("ERR-IVD-PARAM", "access token이 만료되었습니다.")
    except jwt.InvalidTokenError as e:
        raise AuthError("ERR-IVD-PARAM", "access token이 유효하지 않습니다.") from e

    subject_id = payload.get("sub_id")
    if subject_id is None:
        raise AuthError("ERR-IVD-PARAM", "access token에 필수 정보가 없습니다.")

    try:
        user_id = int(subject_id)
    except (TypeError, ValueError) as e:
        raise AuthError("ERR-IVD-PARAM", "access token의 사용자 정보가 올바르지 않습니다.") from e

    return AuthUser(user_id=user_id, role=payload.get("role") or ROLE_USER)


def verify_access_token_from_env(access_token: str) -> AuthUser:
    """환경 변수의 JWT 설정으로 access token을 검증합니다."""
    secret_key, algorithm = get_jwt_config()
    return verify_access_token(access_token, secret_key, algorithm)
