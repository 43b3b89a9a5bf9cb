"""配置管理模块。

使用 Pydantic 加载和验证环境变量，命令行参数可以覆盖环境变量。
配置在启动时构建一次，之后以不可变对象的形式显式传递。
"""

from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.collector.domain.models import SchemaVersion

# 加载 .env 文件
load_dotenv()


class ConfigError(Exception):
    """配置错误。

    启动参数缺失或无效时抛出，只在进入轮询循环之前检查一次。
    """

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        """初始化错误。

        Args:
            message: 错误消息
            fields: 出错的配置项列表
        """
        self.message = message
        self.fields = fields or []
        super().__init__(message)


class Settings(BaseSettings):
    """采集器配置。

    从环境变量加载配置，使用 Pydantic 进行验证。
    """

    # statsd 配置
    statsd_host: str = Field(default="localhost", description="statsd 主机名")
    statsd_port: int = Field(
        default=8125, ge=1, le=65535, description="statsd 端口"
    )
    metric_prefix: str = Field(
        default="nginx.stats", description="所有指标路径前缀"
    )

    # 状态源配置
    status_url: str = Field(..., min_length=1, description="nginx plus 状态页 URL")
    schema_version: SchemaVersion = Field(
        default=SchemaVersion.AUTO,
        description="状态文档结构版本：peers / legacy / auto",
    )
    upstream_name: str = Field(
        default="cache_servers", min_length=1, description="上游组名称"
    )
    fetch_timeout: float = Field(
        default=10.0, gt=0, description="抓取超时时间（秒）"
    )

    # 轮询配置
    poll_interval: int = Field(default=10, ge=1, description="轮询间隔（秒）")
    failure_policy: Literal["exit", "continue"] = Field(
        default="exit",
        description="抓取或解析失败时的策略：exit 退出进程，continue 等待下次轮询",
    )

    # 日志配置
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="日志级别",
        validate_default=True,  # 确保默认值也经过验证
    )

    # 监控配置
    metrics_port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Prometheus 自身指标端口，未设置时不启动",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        """验证并标准化日志级别。"""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("schema_version", "failure_policy", mode="before")
    @classmethod
    def validate_lowercase(cls, v: Any) -> Any:
        """结构版本和失败策略不区分大小写。"""
        if isinstance(v, str):
            return v.strip().lower()
        return v


def load_settings(**overrides: Any) -> Settings:
    """构建配置实例。

    值为 None 的覆盖项会被忽略，从而回落到环境变量或默认值。

    Args:
        **overrides: 命令行传入的覆盖项（字段名 -> 值）

    Returns:
        Settings: 不可变的配置实例

    Raises:
        ConfigError: 必需配置缺失或取值无效
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        fields = [str(err["loc"][0]) for err in e.errors() if err.get("loc")]
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"配置无效: {details}", fields) from e
