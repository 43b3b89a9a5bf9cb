"""采集器结构化日志工具。

提供结构化日志记录功能，包含上下文信息。
"""

import logging

logger = logging.getLogger(__name__)


class CollectorLogger:
    """采集器结构化日志记录器。

    提供带有上下文信息的结构化日志记录。
    """

    def __init__(self, component: str = "collector"):
        """初始化日志记录器。

        Args:
            component: 组件名称
        """
        self.component = component
        self._logger = logging.getLogger(f"src.{component}")

    def log_cycle_started(self, url: str) -> None:
        """记录轮询周期开始事件。

        Args:
            url: 状态页 URL
        """
        self._logger.info(
            "轮询开始",
            extra={
                "event": "cycle_started",
                "url": url,
            },
        )

    def log_cycle_completed(
        self,
        peers: int,
        attempted: int,
        sent: int,
        failed: int,
        elapsed_ms: int,
    ) -> None:
        """记录轮询周期完成事件。

        Args:
            peers: 上游服务器数量
            attempted: 尝试发送的指标数量
            sent: 发送成功的指标数量
            failed: 发送失败的指标数量
            elapsed_ms: 周期耗时（毫秒）
        """
        self._logger.info(
            f"轮询完成: {sent}/{attempted} 条指标已发送, {peers} 个上游服务器",
            extra={
                "event": "cycle_completed",
                "peers": peers,
                "attempted": attempted,
                "sent": sent,
                "failed": failed,
                "elapsed_ms": elapsed_ms,
            },
        )

    def log_cycle_failed(
        self,
        stage: str,
        error_type: str,
        error_message: str,
    ) -> None:
        """记录轮询周期失败事件。

        Args:
            stage: 失败阶段（fetch / decode）
            error_type: 错误类型
            error_message: 错误信息
        """
        self._logger.error(
            f"轮询失败 ({stage}): {error_message}",
            extra={
                "event": "cycle_failed",
                "stage": stage,
                "error_type": error_type,
                "error_message": error_message,
            },
        )

    def log_send_failed(self, path: str, error_message: str) -> None:
        """记录单条指标发送失败事件。

        Args:
            path: 指标路径
            error_message: 错误信息
        """
        self._logger.warning(
            f"指标发送失败: {path}",
            extra={
                "event": "sink_send_failed",
                "path": path,
                "error_message": error_message,
            },
        )

    def log_sink_unavailable(self, error_message: str, dropped: int) -> None:
        """记录发送端不可用事件。

        Args:
            error_message: 错误信息
            dropped: 本周期丢弃的指标数量
        """
        self._logger.warning(
            f"statsd 不可用，本周期丢弃 {dropped} 条指标",
            extra={
                "event": "sink_unavailable",
                "error_message": error_message,
                "dropped": dropped,
            },
        )

    def log_poller_stopped(self, reason: str, exit_code: int) -> None:
        """记录轮询器停止事件。

        Args:
            reason: 停止原因
            exit_code: 进程退出码
        """
        self._logger.info(
            f"轮询器已停止: {reason}",
            extra={
                "event": "poller_stopped",
                "reason": reason,
                "exit_code": exit_code,
            },
        )


# 全局日志记录器实例
_collector_logger = CollectorLogger()


def get_collector_logger() -> CollectorLogger:
    """获取采集器日志记录器实例。

    Returns:
        CollectorLogger: 日志记录器实例
    """
    return _collector_logger
