"""定时轮询任务模块。

由 APScheduler 按固定间隔触发轮询周期，同一时刻最多只有一个周期在运行。
抓取或解析失败时按配置的失败策略决定退出进程还是等待下次轮询。
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from apscheduler.schedulers.blocking import BlockingScheduler
from returns.result import Failure

from src.collector.logging_utils import get_collector_logger
from src.collector.polling_service import PollingService

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CYCLE_FAILED = 1

JOB_ID = "status_poll_job"


class Poller:
    """轮询器。

    状态流转：Idle -> Fetching -> Decoding -> Emitting -> Sleeping -> Idle。
    """

    def __init__(
        self,
        settings: Settings,
        service: PollingService | None = None,
        scheduler: BlockingScheduler | None = None,
    ) -> None:
        """初始化轮询器。

        Args:
            settings: 采集器配置
            service: 轮询服务（为 None 时按配置创建）
            scheduler: 调度器（为 None 时创建 BlockingScheduler）
        """
        self._settings = settings
        self._service = service or PollingService.from_settings(settings)
        self._scheduler = scheduler or BlockingScheduler(timezone=timezone.utc)
        self._exit_code = EXIT_OK
        self._log = get_collector_logger()

    @property
    def exit_code(self) -> int:
        """轮询器停止后的进程退出码。"""
        return self._exit_code

    def run_once(self) -> bool:
        """执行一次轮询周期。

        Returns:
            bool: 周期是否成功（抓取和解析都成功）
        """
        result = asyncio.run(self._service.run_cycle())
        return not isinstance(result, Failure)

    def poll_job(self) -> None:
        """定时轮询任务。

        由 APScheduler 定期调用。失败策略为 exit 时停止调度器，
        start() 随之返回非零退出码。
        """
        try:
            succeeded = self.run_once()
        except Exception as e:
            # 未预期的错误同样视为周期失败
            logger.exception(f"轮询周期出现未预期的错误: {e}")
            succeeded = False

        if succeeded:
            logger.info(f"下次轮询: {self._settings.poll_interval} 秒后")
            return

        if self._settings.failure_policy == "continue":
            logger.warning(
                f"轮询失败，{self._settings.poll_interval} 秒后重新轮询"
            )
            return

        self._exit_code = EXIT_CYCLE_FAILED
        self._scheduler.shutdown(wait=False)

    def start(self) -> int:
        """启动轮询，阻塞直到调度器停止。

        Returns:
            int: 进程退出码
        """
        self._scheduler.add_job(
            self.poll_job,
            "interval",
            seconds=self._settings.poll_interval,
            id=JOB_ID,
            name="轮询 nginx 状态页",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
        )
        logger.info(
            f"轮询器已启动，间隔: {self._settings.poll_interval} 秒，"
            f"状态页: {self._settings.status_url}"
        )

        try:
            self._scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.stop()
            self._log.log_poller_stopped("收到中断信号", self._exit_code)
            return self._exit_code

        reason = "周期失败" if self._exit_code != EXIT_OK else "调度器已关闭"
        self._log.log_poller_stopped(reason, self._exit_code)
        return self._exit_code

    def stop(self) -> None:
        """停止调度器。"""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
