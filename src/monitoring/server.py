"""Prometheus 监控端点。

在独立端口上提供 /metrics 供 Prometheus 抓取采集器自身指标。
"""

import logging

from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int | None) -> bool:
    """启动 Prometheus 指标 HTTP 服务。

    Args:
        port: 监听端口，None 表示不启动

    Returns:
        bool: 是否已启动
    """
    if port is None:
        logger.debug("未配置 METRICS_PORT，跳过 Prometheus 端点")
        return False

    start_http_server(port)
    logger.info(f"Prometheus 指标端点已启动: :{port}/metrics")
    return True
