"""
한국표준시(KST) 관련 유틸리티
주문, 쿠폰, 할인 프로그램의 모든 시각 비교는 KST 기준으로 처리합니다.
"""
from datetime import datetime, timedelta, timezone

# 한국표준시 (KST = UTC+9)
KST_TIMEZONE = timezone(timedelta(hours=9))


def now_kst() -> datetime:
    """현재 시간을 KST로 반환합니다."""
    return datetime.now(KST_TIMEZONE)


def ensure_kst(value: datetime | str | None) -> datetime | None:
    """
    DB에서 읽은 값을 KST 시간대의 datetime으로 맞춥니다.

    MySQL 드라이버는 naive datetime을, SQLite는 ISO 문자열을 돌려주므로
    두 경우를 모두 처리합니다. 시간대가 없으면 KST로 간주합니다.

    Args:
        value: datetime, ISO 형식 문자열 또는 None

    Returns:
        KST 시간대의 datetime 또는 None
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=KST_TIMEZONE)
    return value.astimezone(KST_TIMEZONE)


def to_db_datetime(value: datetime | None) -> datetime | None:
    """
    저장용 datetime으로 변환합니다 (KST 기준 naive datetime).

    DB 컬럼은 시간대 정보 없이 KST 시각을 저장합니다.
    """
    if value is None:
        return None
    return ensure_kst(value).replace(tzinfo=None)
