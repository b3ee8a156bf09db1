from contextlib import contextmanager
from typing import Callable, ContextManager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from services.shop.app.db.connection import settings

SessionScope = Callable[[], ContextManager[Session]]


def build_engine(database_url: str) -> Engine:
    options = {"pool_pre_ping": True, "future": True}
    if database_url.startswith("sqlite"):
        # 요청 처리 스레드(asyncio.to_thread)마다 커넥션을 공유할 수 있도록 허용
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        options["pool_recycle"] = 3600
    return create_engine(database_url, **options)


def make_session_scope(session_factory: sessionmaker) -> SessionScope:
    """sessionmaker를 감싼 session_scope 컨텍스트 매니저를 만듭니다."""

    @contextmanager
    def _scope():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _scope


engine = build_engine(settings.SHOP_DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

session_scope = make_session_scope(SessionLocal)
