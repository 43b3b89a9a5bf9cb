"""轮询服务编排。

协调 StatusClient、StatusDecoder、MetricEmitter 完成一次完整的
抓取 -> 解析 -> 发送周期。
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from returns.result import Failure, Result, Success

from src.collector.client import FetchError, StatusClient
from src.collector.decoder import DecodeError, StatusDecoder
from src.collector.domain.models import EmitReport
from src.collector.emitter import MetricEmitter
from src.collector.logging_utils import get_collector_logger
from src.collector.sink import StatsdSink
from src.monitoring import metrics

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)


class PollingService:
    """轮询服务。

    每次调用 run_cycle 都是独立的周期，不保留跨周期状态。
    """

    def __init__(
        self,
        client: StatusClient,
        decoder: StatusDecoder,
        emitter: MetricEmitter,
    ) -> None:
        """初始化轮询服务。

        Args:
            client: 状态页客户端
            decoder: 状态文档解析器
            emitter: 指标发送器
        """
        self._client = client
        self._decoder = decoder
        self._emitter = emitter
        self._log = get_collector_logger()

    @classmethod
    def from_settings(cls, settings: Settings) -> PollingService:
        """按配置创建轮询服务。

        Args:
            settings: 采集器配置

        Returns:
            PollingService: 轮询服务实例
        """
        return cls(
            client=StatusClient(settings.status_url, timeout=settings.fetch_timeout),
            decoder=StatusDecoder(
                schema_version=settings.schema_version,
                upstream_name=settings.upstream_name,
            ),
            emitter=MetricEmitter(
                sink_factory=lambda: StatsdSink(
                    settings.statsd_host,
                    settings.statsd_port,
                    prefix=settings.metric_prefix,
                ),
                upstream_name=settings.upstream_name,
            ),
        )

    async def run_cycle(self) -> Result[EmitReport, FetchError | DecodeError]:
        """执行一次轮询周期。

        抓取或解析失败时不会发送任何指标；发送阶段的单条失败不影响周期结果。

        Returns:
            Result[EmitReport, FetchError | DecodeError]:
                Success: 本周期发送统计
                Failure: 抓取或解析错误
        """
        start_time = time.monotonic()
        self._log.log_cycle_started(self._client.url)

        try:
            # 1. 抓取
            async with self._client:
                fetch_result = await self._client.fetch_status()

            if isinstance(fetch_result, Failure):
                error = fetch_result.failure()
                self._log.log_cycle_failed("fetch", type(error).__name__, error.message)
                metrics.cycles_total.labels(outcome="fetch_error").inc()
                return fetch_result

            # 2. 解析
            decode_result = self._decoder.decode(fetch_result.unwrap())
            if isinstance(decode_result, Failure):
                error = decode_result.failure()
                self._log.log_cycle_failed("decode", type(error).__name__, error.message)
                metrics.cycles_total.labels(outcome="decode_error").inc()
                return decode_result

            snapshot = decode_result.unwrap()

            # 3. 发送
            report = self._emitter.emit(snapshot)
        finally:
            metrics.cycle_duration_seconds.observe(time.monotonic() - start_time)

        metrics.cycles_total.labels(outcome="success").inc()
        metrics.emissions_total.labels(result="sent").inc(report.sent)
        metrics.emissions_total.labels(result="failed").inc(report.failed)
        metrics.last_success_timestamp_seconds.set_to_current_time()

        self._log.log_cycle_completed(
            peers=len(snapshot.peers),
            attempted=report.attempted,
            sent=report.sent,
            failed=report.failed,
            elapsed_ms=int((time.monotonic() - start_time) * 1000),
        )
        return Success(report)
