"""
赛事调度器：周期性检查游戏与轮次状态
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set
from bracket.core.config import Settings, settings
from bracket.core.database import SessionLocal
from bracket.services.round_service import RoundService

logger = logging.getLogger(__name__)

class TournamentScheduler:
    """游戏检查与轮次检查两个独立的周期任务

    每次检查都新建数据库会话并从数据库重新读取当前状态。
    正在结算的轮次集合只在本进程内有效，多实例部署需要数据库层面的锁。
    """

    def __init__(self, session_factory=SessionLocal, config: Optional[Settings] = None):
        self.session_factory = session_factory
        self.config = config or settings
        self._processing_rounds: Set[int] = set()
        self._loops: list = []
        self._ticks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return bool(self._loops)

    def _round_service(self, db) -> RoundService:
        return RoundService(db, processing_rounds=self._processing_rounds, config=self.config)

    async def run_game_check(self) -> None:
        """执行一次游戏状态检查，错误只记录不抛出"""
        db = self.session_factory()
        try:
            await self._round_service(db).game_service.check_game_status()
        except Exception:
            logger.exception("游戏状态检查失败")
        finally:
            db.close()

    async def run_round_check(self) -> None:
        """执行一次轮次推进检查，错误只记录不抛出"""
        db = self.session_factory()
        try:
            await self._round_service(db).check_and_progress_round()
        except Exception:
            logger.exception("轮次推进检查失败")
        finally:
            db.close()

    async def _run_periodic(self, interval: float, check: Callable[[], Awaitable[None]]) -> None:
        # 每次检查作为独立任务启动，较慢的检查不会推迟下一次
        while True:
            await asyncio.sleep(interval)
            task = asyncio.create_task(check())
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)

    def start(self) -> None:
        """启动两个周期任务"""
        if self.is_running:
            logger.warning("调度器已在运行")
            return

        logger.info(
            "启动赛事调度: 游戏时长 %s 小时，轮次时长 %s 小时，每队 %s 人，检查间隔 %s/%s 秒",
            self.config.GAME_DURATION_HOURS, self.config.ROUND_DURATION_HOURS,
            self.config.PLAYERS_PER_TEAM,
            self.config.GAME_CHECK_INTERVAL, self.config.ROUND_CHECK_INTERVAL
        )
        self._loops = [
            asyncio.create_task(self._run_periodic(self.config.GAME_CHECK_INTERVAL, self.run_game_check)),
            asyncio.create_task(self._run_periodic(self.config.ROUND_CHECK_INTERVAL, self.run_round_check)),
        ]

    async def stop(self) -> None:
        """停止周期任务并等待进行中的检查结束"""
        if not self.is_running:
            return

        for task in self._loops:
            task.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []

        if self._ticks:
            await asyncio.gather(*list(self._ticks), return_exceptions=True)
        logger.info("赛事调度已停止")
