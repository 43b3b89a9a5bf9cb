"""Prometheus 监控模块。

提供轮询周期、指标发送结果的监控指标，以及可选的 /metrics 端点。
"""

from src.monitoring.metrics import (
    cycle_duration_seconds,
    cycles_total,
    emissions_total,
    last_success_timestamp_seconds,
)
from src.monitoring.server import start_metrics_server

__all__ = [
    "cycles_total",
    "cycle_duration_seconds",
    "emissions_total",
    "last_success_timestamp_seconds",
    "start_metrics_server",
]
