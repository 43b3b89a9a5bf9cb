"""指标展开与发送。

把 StatusSnapshot 展开为点分隔路径的指标列表，并逐条发送到 statsd。
"""

import logging
from collections.abc import Callable
from operator import attrgetter
from typing import Protocol

from src.collector.domain.models import Emission, EmitReport, MetricKind, StatusSnapshot
from src.collector.logging_utils import get_collector_logger
from src.collector.sink import SinkSendError

logger = logging.getLogger(__name__)

# 顶层指标：(路径, 类型, 快照属性)
TOP_LEVEL_METRICS: tuple[tuple[str, MetricKind, str], ...] = (
    ("connections.accepted", MetricKind.COUNTER, "connections.accepted"),
    ("connections.active", MetricKind.GAUGE, "connections.active"),
    ("connections.dropped", MetricKind.COUNTER, "connections.dropped"),
    ("connections.idle", MetricKind.GAUGE, "connections.idle"),
    ("requests.total", MetricKind.COUNTER, "requests.total"),
    ("requests.current", MetricKind.GAUGE, "requests.current"),
)

# 上游服务器指标：(路径后缀, 类型, PeerStats 属性)
PEER_METRICS: tuple[tuple[str, MetricKind, str], ...] = (
    ("active", MetricKind.GAUGE, "active"),
    ("requests", MetricKind.COUNTER, "requests"),
    ("fails", MetricKind.COUNTER, "fails"),
    ("unavail", MetricKind.COUNTER, "unavail"),
    ("sent", MetricKind.GAUGE, "sent"),
    ("received", MetricKind.GAUGE, "received"),
    ("responses.1xx", MetricKind.COUNTER, "responses.one_xx"),
    ("responses.2xx", MetricKind.COUNTER, "responses.two_xx"),
    ("responses.3xx", MetricKind.COUNTER, "responses.three_xx"),
    ("responses.4xx", MetricKind.COUNTER, "responses.four_xx"),
    ("responses.5xx", MetricKind.COUNTER, "responses.five_xx"),
    ("responses.total", MetricKind.COUNTER, "responses.total"),
    ("health_checks.fails", MetricKind.COUNTER, "health_checks.fails"),
    ("health_checks.unhealthy", MetricKind.COUNTER, "health_checks.unhealthy"),
)

_TOP_LEVEL_KINDS = {path: kind for path, kind, _ in TOP_LEVEL_METRICS}
_PEER_KINDS = {suffix: kind for suffix, kind, _ in PEER_METRICS}


def peer_prefix(index: int, upstream_name: str = "cache_servers") -> str:
    """返回第 index 个上游服务器的路径前缀。"""
    return f"upstreams.{upstream_name}.{index}."


def build_emissions(
    snapshot: StatusSnapshot,
    upstream_name: str = "cache_servers",
) -> list[Emission]:
    """把快照展开为有序的指标列表。

    每个数值字段恰好产生一条指标，值为 0 也不省略。

    Args:
        snapshot: 状态快照
        upstream_name: 上游组名称

    Returns:
        list[Emission]: 顶层指标在前，随后按服务器顺序排列
    """
    emissions = [
        Emission(path=path, kind=kind, value=attrgetter(attr)(snapshot))
        for path, kind, attr in TOP_LEVEL_METRICS
    ]

    for index, peer in enumerate(snapshot.peers):
        prefix = peer_prefix(index, upstream_name)
        emissions.extend(
            Emission(path=prefix + suffix, kind=kind, value=attrgetter(attr)(peer))
            for suffix, kind, attr in PEER_METRICS
        )

    return emissions


def classify(path: str, upstream_name: str = "cache_servers") -> MetricKind:
    """返回指标路径对应的类型。

    Args:
        path: 不含命名空间前缀的指标路径
        upstream_name: 上游组名称

    Returns:
        MetricKind: 计数器或仪表盘

    Raises:
        KeyError: 路径不属于已知指标
    """
    if path in _TOP_LEVEL_KINDS:
        return _TOP_LEVEL_KINDS[path]

    group = f"upstreams.{upstream_name}."
    if path.startswith(group):
        index, _, suffix = path[len(group):].partition(".")
        if index.isdigit() and suffix in _PEER_KINDS:
            return _PEER_KINDS[suffix]

    raise KeyError(path)


class MetricSink(Protocol):
    """指标发送端接口。"""

    def open(self) -> None: ...

    def close(self) -> None: ...

    def counter(self, path: str, value: int) -> None: ...

    def gauge(self, path: str, value: int) -> None: ...


class MetricEmitter:
    """指标发送器。

    发送是尽力而为的：单条指标失败只记录日志，不影响同一周期内的其余指标。
    """

    def __init__(
        self,
        sink_factory: Callable[[], MetricSink],
        upstream_name: str = "cache_servers",
    ) -> None:
        """初始化发送器。

        Args:
            sink_factory: 每个周期创建一个发送端
            upstream_name: 上游组名称
        """
        self._sink_factory = sink_factory
        self._upstream_name = upstream_name
        self._log = get_collector_logger()

    def emit(self, snapshot: StatusSnapshot) -> EmitReport:
        """展开并发送快照中的全部指标。

        Args:
            snapshot: 状态快照

        Returns:
            EmitReport: 发送结果统计
        """
        emissions = build_emissions(snapshot, self._upstream_name)
        return self.send_all(emissions)

    def send_all(self, emissions: list[Emission]) -> EmitReport:
        """逐条发送指标。

        发送端无法打开时，本周期全部指标计为失败。

        Args:
            emissions: 待发送的指标列表

        Returns:
            EmitReport: 发送结果统计
        """
        sent = 0
        failed = 0

        sink = self._sink_factory()
        try:
            sink.open()
        except SinkSendError as e:
            self._log.log_sink_unavailable(e.message, len(emissions))
            return EmitReport(attempted=len(emissions), sent=0, failed=len(emissions))

        try:
            for emission in emissions:
                try:
                    if emission.kind == MetricKind.COUNTER:
                        sink.counter(emission.path, emission.value)
                    else:
                        sink.gauge(emission.path, emission.value)
                    sent += 1
                except SinkSendError as e:
                    failed += 1
                    self._log.log_send_failed(emission.path, e.message)
        finally:
            sink.close()

        logger.debug(f"指标发送完成: {sent} 成功, {failed} 失败")
        return EmitReport(attempted=len(emissions), sent=sent, failed=failed)
