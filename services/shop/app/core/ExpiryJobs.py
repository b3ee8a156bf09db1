"""
쿠폰/할인 프로그램 만료 처리 작업
종료 일시가 지난 레코드의 저장 상태를 Expired로 변경합니다. 여러 번 실행해도 결과는 같습니다.
"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Protocol

from libs.common import now_kst

logger = logging.getLogger(__name__)


def seconds_until_next_tick(now: datetime, interval_seconds: int) -> float:
    """
    다음 실행 시각까지 남은 초를 계산합니다.
    실행 시각은 벽시계 기준 interval의 배수(예: 매 정시, 매 5분)에 맞춥니다.
    """
    elapsed = now.timestamp() % interval_seconds
    return interval_seconds - elapsed


class CouponExpiryPort(Protocol):
    async def expire_coupons(self, now: datetime) -> int:
        ...


class ProgramExpiryPort(Protocol):
    async def expire_programs(self, now: datetime) -> int:
        ...


class ExpiryJobs:
    """만료 처리 스케줄러"""

    def __init__(
        self,
        coupon_repository: CouponExpiryPort,
        discount_repository: ProgramExpiryPort,
        coupon_interval_seconds: int = 3600,
        discount_interval_seconds: int = 300,
    ):
        self.coupon_repository = coupon_repository
        self.discount_repository = discount_repository
        self.coupon_interval_seconds = coupon_interval_seconds
        self.discount_interval_seconds = discount_interval_seconds
        self._tasks: list[asyncio.Task] = []

    async def expire_coupons(self, now: datetime | None = None) -> int:
        count = await self.coupon_repository.expire_coupons(now or now_kst())
        if count:
            logger.info("Expired coupons: count=%d", count)
        return count

    async def expire_programs(self, now: datetime | None = None) -> int:
        """종료된 할인 프로그램을 만료 처리합니다 (취소된 프로그램 제외)."""
        count = await self.discount_repository.expire_programs(now or now_kst())
        if count:
            logger.info("Expired discount programs: count=%d", count)
        return count

    async def _run_periodically(
        self,
        name: str,
        interval_seconds: int,
        job: Callable[[], Awaitable[int]],
    ) -> None:
        logger.info("Expiry job scheduled: name=%s interval=%ss", name, interval_seconds)
        while True:
            await asyncio.sleep(seconds_until_next_tick(now_kst(), interval_seconds))
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception:
                # 다음 주기에 다시 시도
                logger.exception("Expiry job failed: name=%s", name)

    def start(self) -> None:
        """이벤트 루프에 만료 처리 작업을 등록합니다."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self._run_periodically("coupons", self.coupon_interval_seconds, self.expire_coupons)
            ),
            asyncio.create_task(
                self._run_periodically("discount_programs", self.discount_interval_seconds, self.expire_programs)
            ),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Expiry jobs stopped")
