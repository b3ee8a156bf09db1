import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common import SYSTEM_ERROR_MESSAGE, InternalError, ShopError, error_response

from services.shop.app.db.connection import settings

# JWT 설정을 환경 변수로 설정 (libs/common/auth.py가 os.getenv()로 읽을 수 있도록)
# Settings에서 읽은 값을 환경 변수로 설정 (이미 환경 변수가 있으면 덮어쓰지 않음)
os.environ.setdefault("JWT_SECRET_KEY", settings.JWT_SECRET_KEY)
os.environ.setdefault("JWT_ALGORITHM", settings.JWT_ALGORITHM)

from services.shop.app.api.v1.router import router  # noqa: E402
from services.shop.app.db.session import engine  # noqa: E402
from services.shop.app.db.tables import create_tables  # noqa: E402
from services.shop.app.dependencies import get_expiry_jobs  # noqa: E402

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# 인증/권한 실패 시 메시지
HTTP_ERROR_MESSAGES = {
    status.HTTP_401_UNAUTHORIZED: "로그인이 필요합니다.",
    status.HTTP_403_FORBIDDEN: "접근 권한이 없습니다.",
    status.HTTP_404_NOT_FOUND: "요청한 경로를 찾을 수 없습니다.",
    status.HTTP_405_METHOD_NOT_ALLOWED: "허용되지 않은 요청 방식입니다.",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES:
        create_tables(engine)

    expiry_jobs = get_expiry_jobs() if settings.ENABLE_SCHEDULER else None
    if expiry_jobs is not None:
        expiry_jobs.start()
    try:
        yield
    finally:
        if expiry_jobs is not None:
            await expiry_jobs.stop()


app = FastAPI(
    title="Shop Service (쇼핑몰 서비스)",
    description="Sporting Goods Shop Back-end Server",
    lifespan=lifespan,
)

# CORS 설정
# 환경 변수 ALLOWED_ORIGINS가 설정되어 있으면 우선 사용
# 없으면 개발 환경일 때 기본 localhost 리스트 사용
if settings.ALLOWED_ORIGINS:
    allowed_origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
elif settings.is_development:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite 기본 포트
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]
else:
    # 프로덕션 환경: 환경 변수가 없으면 빈 리스트 (모든 오리진 차단)
    allowed_origins = []

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return error_response(exc.message, exc.status_code, code=exc.code, data=exc.data)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) and exc.detail else None
    if message is None:
        message = HTTP_ERROR_MESSAGES.get(exc.status_code, SYSTEM_ERROR_MESSAGE)
    return error_response(message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    field_error = []
    for error in exc.errors():
        # ("body", "orderItems", 0, "quantity") -> "orderItems.0.quantity"
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field_error.append({"field": ".".join(location), "message": error.get("msg", "")})
    return error_response(
        "입력값이 올바르지 않습니다.",
        status.HTTP_400_BAD_REQUEST,
        code="ERR-IVD-VALUE",
        field_error=field_error,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError(SYSTEM_ERROR_MESSAGE)
    return error_response(error.message, error.status_code, code=error.code)


app.include_router(router)


# 서비스가 살아있는지 확인하는 헬스 체크 엔드포인트
@app.get("/")
def read_root():
    return {"service": "Shop Service", "status": "running"}
