"""
Cleanup Scheduler: 생성 파일 주기적 정리.

- 시작 시 1회 sweep, 이후 interval_seconds 마다 반복
- sweep은 threadpool에서 실행 (이벤트 루프 블로킹 방지)
- 진행 중인 다운로드/생성과 동기화하지 않음
"""

import asyncio
import logging

from src.core.artifacts import ArtifactStore
from src.domain.schemas import CleanupPolicy, SweepResult

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """
    ArtifactStore.sweep 주기 실행기.

    Usage:
        scheduler = CleanupScheduler(store, policy)
        scheduler.start()   # lifespan startup
        ...
        await scheduler.stop()  # lifespan shutdown
    """

    def __init__(self, store: ArtifactStore, policy: CleanupPolicy):
        self.store = store
        self.policy = policy
        self.runs = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> SweepResult:
        """sweep 1회 실행."""
        result = await asyncio.to_thread(self.store.sweep, self.policy)
        self.runs += 1
        if result.removed_files or result.errors:
            logger.info(
                f"Cleanup sweep: removed {result.removed_files}/{result.scanned_files} files, "
                f"{len(result.errors)} errors"
            )
        return result

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                # 다음 주기에 다시 시도
                logger.error(f"Cleanup sweep failed: {e}", exc_info=True)
            await asyncio.sleep(self.policy.interval_seconds)

    def start(self) -> None:
        """백그라운드 태스크 시작 (즉시 1회 sweep)."""
        if self.running:
            return
        logger.info(
            f"Starting cleanup scheduler: max_age={self.policy.max_age_seconds:.0f}s, "
            f"interval={self.policy.interval_seconds:.0f}s"
        )
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """백그라운드 태스크 종료."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
