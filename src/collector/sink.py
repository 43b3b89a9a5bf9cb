"""statsd 指标发送端。

封装 statsd UDP 客户端，按计数器 / 仪表盘两种方式发送指标。
"""

from statsd import StatsClient


class SinkSendError(Exception):
    """指标发送错误。

    单条指标发送失败时抛出，由发送方记录后继续发送后续指标。
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """初始化错误。

        Args:
            message: 错误消息
            path: 发送失败的指标路径（打开连接失败时为 None）
        """
        self.message = message
        self.path = path
        super().__init__(message)


class _ReportingStatsClient(StatsClient):
    """发送失败时抛出异常的 statsd 客户端。

    StatsClient 默认静默丢弃 socket 错误。
    """

    # 与 statsd 4.x 的 StatsClient._send 相同，只是不捕获 socket 错误
    def _send(self, data: str) -> None:
        self._sock.sendto(data.encode("ascii"), self._addr)


class StatsdSink:
    """statsd 发送端。

    每个轮询周期打开一次，发送完毕后关闭。
    """

    def __init__(self, host: str, port: int, prefix: str | None = None) -> None:
        """初始化发送端。

        Args:
            host: statsd 主机名
            port: statsd 端口
            prefix: 指标命名空间前缀
        """
        self._host = host
        self._port = port
        self._prefix = prefix or None
        self._client: StatsClient | None = None

    def __enter__(self) -> "StatsdSink":
        """进入上下文管理器。"""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """退出上下文管理器。"""
        self.close()

    def open(self) -> None:
        """创建 UDP socket。

        Raises:
            SinkSendError: 主机名无法解析或 socket 创建失败
        """
        if self._client is not None:
            return
        try:
            self._client = _ReportingStatsClient(
                host=self._host,
                port=self._port,
                prefix=self._prefix,
            )
        except (OSError, UnicodeError) as e:
            # socket.gaierror 是 OSError 的子类
            raise SinkSendError(
                f"无法连接 statsd {self._host}:{self._port}: {e}"
            ) from e

    def close(self) -> None:
        """关闭 UDP socket。"""
        if self._client is not None:
            self._client.close()
            self._client = None

    def counter(self, path: str, value: int) -> None:
        """按给定值递增计数器。

        Raises:
            SinkSendError: 发送失败
        """
        self._send(path, value, gauge=False)

    def gauge(self, path: str, value: int) -> None:
        """把仪表盘指标设置为给定值。

        Raises:
            SinkSendError: 发送失败
        """
        self._send(path, value, gauge=True)

    def _send(self, path: str, value: int, *, gauge: bool) -> None:
        if self._client is None:
            raise SinkSendError("statsd 连接未打开", path)
        try:
            if gauge:
                self._client.gauge(path, value)
            else:
                self._client.incr(path, value)
        except (OSError, UnicodeError) as e:
            raise SinkSendError(f"指标发送失败 {path}: {e}", path) from e
