import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """타임존 정보가 없는 시각은 UTC로 간주 (SQLite는 tz를 저장하지 않음)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_deadline(started_at: datetime, time_limit_minutes: int | None) -> datetime | None:
    """제출 마감 시각 = 저장된 시작 시각 + 제한 시간 (무제한이면 None)"""
    if not time_limit_minutes:
        return None
    return ensure_aware(started_at) + timedelta(minutes=time_limit_minutes)


def remaining_seconds(
    started_at: datetime,
    time_limit_minutes: int | None,
    now: datetime | None = None,
) -> int | None:
    """남은 시간 (초, 0 이상). 무제한이면 None"""
    deadline = compute_deadline(started_at, time_limit_minutes)
    if deadline is None:
        return None
    now = ensure_aware(now or utcnow())
    return max(0, int((deadline - now).total_seconds()))


def is_expired(
    started_at: datetime,
    time_limit_minutes: int | None,
    now: datetime | None = None,
) -> bool:
    deadline = compute_deadline(started_at, time_limit_minutes)
    if deadline is None:
        return False
    return ensure_aware(now or utcnow()) >= deadline


class AutoSubmitScheduler:
    """마감 시각에 자동 제출을 실행하는 응시별 백그라운드 타이머

    타이머는 보조 수단이며, 마감 판단은 항상 저장된 started_at 기준으로 다시 계산합니다.
    """

    def __init__(self, submit_callback: Callable[[int], Awaitable[object]]):
        self._submit_callback = submit_callback
        self._tasks: dict[int, asyncio.Task] = {}

    def schedule(self, attempt_id: int, deadline: datetime, now: datetime | None = None) -> None:
        """자동 제출 예약 (기존 예약은 교체)"""
        self.cancel(attempt_id)
        delay = max(0.0, (ensure_aware(deadline) - ensure_aware(now or utcnow())).total_seconds())
        task = asyncio.get_running_loop().create_task(
            self._run(attempt_id, delay),
            name=f"auto-submit-{attempt_id}",
        )
        self._tasks[attempt_id] = task
        logger.debug(f"자동 제출 예약: attempt_id={attempt_id}, delay={delay:.1f}s")

    def cancel(self, attempt_id: int) -> bool:
        """자동 제출 예약 취소 (수동 제출 시 호출)"""
        task = self._tasks.pop(attempt_id, None)
        if task is None:
            return False
        # 자동 제출 실행 중 submit 경로에서 호출된 경우 자기 자신은 취소하지 않음
        if task is asyncio.current_task() or task.done():
            return False
        task.cancel()
        logger.debug(f"자동 제출 예약 취소: attempt_id={attempt_id}")
        return True

    def is_scheduled(self, attempt_id: int) -> bool:
        task = self._tasks.get(attempt_id)
        return task is not None and not task.done()

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def _run(self, attempt_id: int, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            logger.info(f"제한 시간 종료, 자동 제출 실행: attempt_id={attempt_id}")
            await self._submit_callback(attempt_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"자동 제출 실패: attempt_id={attempt_id}, error={e.__class__.__name__}: {str(e)}",
                exc_info=True,
            )
        finally:
            if self._tasks.get(attempt_id) is asyncio.current_task():
                self._tasks.pop(attempt_id, None)

    async def shutdown(self) -> None:
        """모든 예약 취소 (애플리케이션 종료 시)"""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"자동 제출 타이머 종료: {len(tasks)}개 취소")
