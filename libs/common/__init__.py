"""
Shop 공통 라이브러리
모든 서비스에서 사용할 수 있는 공통 기능을 제공합니다.
"""

from libs.common.auth import (
    ROLE_ADMIN,
    ROLE_USER,
    AuthError,
    AuthUser,
    get_jwt_config,
    verify_access_token,
    verify_access_token_from_env,
)
from libs.common.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    ShopError,
    StateError,
    ValidationError,
)
from libs.common.fastapi_auth import AdminUser, CurrentUser, get_admin_user, get_current_user, security
from libs.common.response import (
    SYSTEM_ERROR_MESSAGE,
    ResponseStatus,
    error_response,
    success_response,
)
from libs.common.timezone import KST_TIMEZONE, ensure_kst, now_kst, to_db_datetime

__all__ = [
    "ROLE_ADMIN",
    "ROLE_USER",
    "AuthError",
    "AuthUser",
    "verify_access_token",
    "verify_access_token_from_env",
    "get_jwt_config",
    "get_current_user",
    "get_admin_user",
    "CurrentUser",
    "AdminUser",
    "security",
    "ShopError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StateError",
    "InternalError",
    "ResponseStatus",
    "SYSTEM_ERROR_MESSAGE",
    "success_response",
    "error_response",
    "KST_TIMEZONE",
    "now_kst",
    "ensure_kst",
    "to_db_datetime",
]
