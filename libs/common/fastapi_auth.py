"""
FastAPI에서 사용할 수 있는 인증 Dependency 헬퍼
"""
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from libs.common.auth import AuthError, AuthUser, verify_access_token_from_env

# Swagger UI에서 Bearer token을 입력할 수 있도록 HTTPBearer 설정
security = HTTPBearer(description="Access Token (Bearer)", auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(security),
) -> AuthUser:
    """
    Bearer token에서 요청자 정보를 추출합니다.

    Raises:
        HTTPException: 인증 실패 시 HTTP 401
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="",
        )

    try:
        return verify_access_token_from_env(credentials.credentials)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="",
        ) from e


async def get_admin_user(
    user: AuthUser = Depends(get_current_user),
) -> AuthUser:
    """관리자 권한이 있는 요청자만 통과시킵니다 (그 외 HTTP 403)."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="",
        )
    return user


# Type alias for dependency injection
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
AdminUser = Annotated[AuthUser, Depends(get_admin_user)]
