"""状态快照领域模型。

定义 nginx plus 状态文档解析后的 Pydantic 数据模型，以及发送到 statsd 的指标模型。
"""

import math
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class SchemaVersion(str, Enum):
    """状态文档结构版本枚举。

    peers: upstreams.<name> 是对象，服务器列表位于 peers 键下
    legacy: upstreams.<name> 直接是服务器数组
    auto: 按文档实际结构自动识别
    """

    PEERS = "peers"
    LEGACY = "legacy"
    AUTO = "auto"


class MetricKind(str, Enum):
    """指标类型枚举。"""

    COUNTER = "counter"
    GAUGE = "gauge"


def _coerce_count(value: Any) -> Any:
    """把 JSON 数值转换为整数。

    null 视为 0；浮点数向零截断；非有限数值、布尔值和字符串拒绝。
    """
    if value is None:
        return 0
    if isinstance(value, (bool, str)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite number: {value}")
        return int(value)
    return value


def _none_as_empty(value: Any) -> Any:
    """嵌套对象为 null 时按空对象处理。"""
    if value is None:
        return {}
    return value


Count = Annotated[int, BeforeValidator(_coerce_count)]


class _Section(BaseModel):
    """状态文档中的一个对象节。

    未知字段忽略，缺失字段使用默认值。
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ConnectionStats(_Section):
    """客户端连接统计。"""

    accepted: Count = Field(default=0, description="累计接受的连接数")
    active: Count = Field(default=0, description="当前活跃连接数")
    dropped: Count = Field(default=0, description="累计丢弃的连接数")
    idle: Count = Field(default=0, description="当前空闲连接数")


class RequestStats(_Section):
    """客户端请求统计。"""

    total: Count = Field(default=0, description="累计请求数")
    current: Count = Field(default=0, description="当前处理中的请求数")


class ResponseCounters(_Section):
    """按状态码分类的响应计数。"""

    one_xx: Count = Field(default=0, alias="1xx")
    two_xx: Count = Field(default=0, alias="2xx")
    three_xx: Count = Field(default=0, alias="3xx")
    four_xx: Count = Field(default=0, alias="4xx")
    five_xx: Count = Field(default=0, alias="5xx")
    total: Count = Field(default=0)


class HealthCheck(_Section):
    """健康检查统计。"""

    fails: Count = Field(default=0, description="健康检查失败次数")
    unhealthy: Count = Field(default=0, description="被判定为不健康的次数")
    last_passed: bool | None = Field(default=None, description="最近一次检查是否通过")


class PeerStats(_Section):
    """上游服务器统计。

    在快照中的位置即为指标路径中的序号，不代表稳定的服务器身份。
    """

    active: Count = Field(default=0, description="当前活跃连接数")
    requests: Count = Field(default=0, description="累计转发请求数")
    fails: Count = Field(default=0, description="累计失败次数")
    unavail: Count = Field(default=0, description="累计不可用次数")
    sent: Count = Field(default=0, description="发送字节数")
    received: Count = Field(default=0, description="接收字节数")
    responses: Annotated[ResponseCounters, BeforeValidator(_none_as_empty)] = Field(
        default_factory=ResponseCounters
    )
    health_checks: Annotated[HealthCheck, BeforeValidator(_none_as_empty)] = Field(
        default_factory=HealthCheck
    )
    server: str | None = Field(default=None, description="服务器地址")
    state: str | None = Field(default=None, description="服务器状态")
    backup: bool | None = Field(default=None, description="是否为备份服务器")


class StatusSnapshot(_Section):
    """状态快照模型。

    每个轮询周期从状态文档重新构建，发送完成后丢弃。
    """

    connections: Annotated[ConnectionStats, BeforeValidator(_none_as_empty)] = Field(
        default_factory=ConnectionStats
    )
    requests: Annotated[RequestStats, BeforeValidator(_none_as_empty)] = Field(
        default_factory=RequestStats
    )
    peers: list[Annotated[PeerStats, BeforeValidator(_none_as_empty)]] = Field(
        default_factory=list, description="上游服务器列表"
    )
    nginx_version: str | None = Field(default=None, description="nginx 版本")
    address: str | None = Field(default=None, description="nginx 服务器地址")


class Emission(BaseModel):
    """单条指标发送记录。"""

    path: str = Field(..., description="点分隔的指标路径（不含前缀）")
    kind: MetricKind = Field(..., description="指标类型")
    value: int = Field(..., description="指标值")

    model_config = ConfigDict(frozen=True)


class EmitReport(BaseModel):
    """一个周期的发送结果统计。"""

    attempted: int = Field(default=0, ge=0, description="尝试发送的指标数量")
    sent: int = Field(default=0, ge=0, description="发送成功的指标数量")
    failed: int = Field(default=0, ge=0, description="发送失败的指标数量")
