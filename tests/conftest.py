"""Pytest 配置文件。

提供测试 Fixtures 和配置。
"""

import json

import pytest

from src.config import Settings, load_settings

# 采集器读取的全部环境变量
COLLECTOR_ENV_VARS = (
    "STATSD_HOST",
    "STATSD_PORT",
    "METRIC_PREFIX",
    "STATUS_URL",
    "SCHEMA_VERSION",
    "UPSTREAM_NAME",
    "FETCH_TIMEOUT",
    "POLL_INTERVAL",
    "FAILURE_POLICY",
    "LOG_LEVEL",
    "METRICS_PORT",
)


@pytest.fixture(autouse=True)
def reset_env_before_each_test(monkeypatch):
    """在每个测试前清除采集器相关环境变量。

    这确保测试不依赖本地 .env 文件或 shell 中的值。
    """
    for name in COLLECTOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def sample_document() -> dict:
    """带一个上游服务器的状态文档（peers 结构）。"""
    return {
        "connections": {"accepted": 5, "active": 2, "dropped": 0, "idle": 1},
        "requests": {"total": 100, "current": 3},
        "upstreams": {
            "cache_servers": {
                "peers": [
                    {
                        "active": 1,
                        "requests": 10,
                        "fails": 0,
                        "unavail": 0,
                        "sent": 500,
                        "received": 900,
                        "responses": {
                            "1xx": 0,
                            "2xx": 9,
                            "3xx": 1,
                            "4xx": 0,
                            "5xx": 0,
                            "total": 10,
                        },
                        "health_checks": {"fails": 0, "unhealthy": 0},
                    }
                ]
            }
        },
    }


@pytest.fixture
def sample_payload(sample_document) -> bytes:
    """状态文档的原始响应内容。"""
    return json.dumps(sample_document).encode("utf-8")


@pytest.fixture
def test_settings() -> Settings:
    """测试配置 Fixture。

    提供测试用的配置值。
    """
    return load_settings(
        status_url="http://nginx.test/status",
        statsd_host="127.0.0.1",
        statsd_port=8125,
        poll_interval=1,
        log_level="WARNING",  # 测试时减少日志输出
    )
