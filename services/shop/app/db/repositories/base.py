"""
SQL Repository 공통 기반
"""
import asyncio
import json
from typing import Any, Callable

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from services.shop.app.db.session import SessionScope, session_scope


class _SQLRepositoryBase:
    """SQL Repository 기본 클래스"""
    def __init__(self, session_factory: SessionScope = session_scope):
        self._session_factory = session_factory

    async def _run_in_thread(self, func: Callable):
        """동기 함수를 비동기로 실행"""
        return await asyncio.to_thread(func)


def expanding_text(query: str, *names: str) -> TextClause:
    """`IN :names` 형태의 파라미터를 리스트로 바인딩할 수 있는 text() 쿼리를 만듭니다."""
    return text(query).bindparams(*(bindparam(name, expanding=True) for name in names))


def dump_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def load_json(value: str | None, default: Any = None) -> Any:
    if value is None or value == "":
        return default
    return json.loads(value)
