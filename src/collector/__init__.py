"""nginx plus 状态采集器包。

提供轮询 nginx plus 状态页并把计数器和仪表盘指标转发到 statsd 的功能。
"""

from src.collector.client import FetchError, StatusClient
from src.collector.decoder import DecodeError, StatusDecoder, to_document
from src.collector.domain.models import (
    Emission,
    EmitReport,
    MetricKind,
    PeerStats,
    SchemaVersion,
    StatusSnapshot,
)
from src.collector.emitter import MetricEmitter, build_emissions, classify
from src.collector.polling_service import PollingService
from src.collector.scheduled_job import Poller
from src.collector.sink import SinkSendError, StatsdSink

__all__ = [
    "FetchError",
    "StatusClient",
    "DecodeError",
    "StatusDecoder",
    "to_document",
    "Emission",
    "EmitReport",
    "MetricKind",
    "PeerStats",
    "SchemaVersion",
    "StatusSnapshot",
    "MetricEmitter",
    "build_emissions",
    "classify",
    "PollingService",
    "Poller",
    "SinkSendError",
    "StatsdSink",
]
