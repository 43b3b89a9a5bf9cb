"""采集器命令行入口。

解析命令行参数、构建配置、配置日志，然后启动轮询器。

Usage:
    python -m src.main -u http://localhost/status [-H host] [-p port] [-m prefix] [-i seconds]

Examples:
    python -m src.main -u http://nginx.local/status -H statsd.local -i 10
    python -m src.main -u http://nginx.local/status --schema-version legacy --once
"""

import argparse
import logging
import sys
from typing import NoReturn

from src.collector.domain.models import SchemaVersion
from src.collector.scheduled_job import EXIT_CYCLE_FAILED, EXIT_OK, Poller
from src.config import ConfigError, Settings, load_settings
from src.monitoring import start_metrics_server

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 127


class _ArgumentParser(argparse.ArgumentParser):
    """参数取值无效时抛出 ConfigError，而不是以退出码 2 退出。"""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(f"命令行参数无效: {message}")


def build_parser() -> argparse.ArgumentParser:
    """构建命令行参数解析器。

    所有参数都是可选的，未提供时回落到环境变量和默认值。
    """
    parser = _ArgumentParser(
        prog="nginx-statsd",
        description="轮询 nginx plus 状态页并把指标转发到 statsd",
    )
    parser.add_argument("-H", "--host", dest="statsd_host", help="statsd 主机名（默认 localhost）")
    parser.add_argument("-p", "--port", dest="statsd_port", type=int, help="statsd 端口（默认 8125）")
    parser.add_argument("-m", "--metric-path", dest="metric_prefix", help="指标路径前缀（默认 nginx.stats）")
    parser.add_argument("-i", "--interval", dest="poll_interval", type=int, help="轮询间隔秒数（默认 10）")
    parser.add_argument("-u", "--url", dest="status_url", help="nginx plus 状态页 URL")
    parser.add_argument(
        "-s",
        "--schema-version",
        dest="schema_version",
        choices=[v.value for v in SchemaVersion],
        help="状态文档结构版本（默认 auto）",
    )
    parser.add_argument("--upstream", dest="upstream_name", help="上游组名称（默认 cache_servers）")
    parser.add_argument("-t", "--timeout", dest="fetch_timeout", type=float, help="抓取超时秒数（默认 10）")
    parser.add_argument(
        "--failure-policy",
        dest="failure_policy",
        choices=["exit", "continue"],
        help="抓取或解析失败时退出进程还是等待下次轮询（默认 exit）",
    )
    parser.add_argument("--log-level", dest="log_level", help="日志级别（默认 INFO）")
    parser.add_argument("--metrics-port", dest="metrics_port", type=int, help="Prometheus 自身指标端口")
    parser.add_argument("--once", action="store_true", help="只执行一次轮询周期后退出")
    return parser


def configure_logging(level: str) -> None:
    """配置根日志记录器。"""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """命令行入口。

    Args:
        argv: 命令行参数（为 None 时使用 sys.argv）

    Returns:
        int: 进程退出码
    """
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
        overrides = {key: value for key, value in vars(args).items() if key != "once"}
        settings: Settings = load_settings(**overrides)
    except ConfigError as e:
        configure_logging("ERROR")
        parser.print_usage(sys.stderr)
        logger.error(e.message)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)
    logger.info(
        f"statsd: {settings.statsd_host}:{settings.statsd_port}，"
        f"前缀: {settings.metric_prefix}，结构版本: {settings.schema_version.value}"
    )

    poller = Poller(settings)

    if args.once:
        return EXIT_OK if poller.run_once() else EXIT_CYCLE_FAILED

    try:
        start_metrics_server(settings.metrics_port)
    except OSError as e:
        logger.error(f"无法启动 Prometheus 指标端点 (端口 {settings.metrics_port}): {e}")
        return EXIT_CONFIG_ERROR

    return poller.start()


if __name__ == "__main__":
    sys.exit(main())
