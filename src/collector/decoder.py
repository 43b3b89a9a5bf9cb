"""状态文档解析器。

把 nginx plus 状态页的 JSON 响应解析为 StatusSnapshot 模型。
"""

import json
import logging
from typing import Any

from pydantic import ValidationError
from returns.result import Failure, Result, Success

from src.collector.domain.models import SchemaVersion, StatusSnapshot

logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """解析错误。

    响应不是合法 JSON，或结构与预期不兼容时返回。
    """

    def __init__(self, message: str, locations: list[str] | None = None) -> None:
        """初始化错误。

        Args:
            message: 错误消息
            locations: 出错字段的点分隔路径列表
        """
        self.message = message
        self.locations = locations or []
        super().__init__(message)


class StatusDecoder:
    """状态文档解析器。

    宽松解析：未知字段忽略，缺失字段按 0 处理；结构不兼容时整体失败，
    不会返回部分快照。
    """

    def __init__(
        self,
        schema_version: SchemaVersion = SchemaVersion.AUTO,
        upstream_name: str = "cache_servers",
    ) -> None:
        """初始化解析器。

        Args:
            schema_version: 状态文档结构版本
            upstream_name: 上游组名称
        """
        self._schema_version = SchemaVersion(schema_version)
        self._upstream_name = upstream_name

    def decode(self, payload: bytes | str) -> Result[StatusSnapshot, DecodeError]:
        """解析状态文档。

        Args:
            payload: 原始响应内容

        Returns:
            Result[StatusSnapshot, DecodeError]:
                Success: 解析后的快照
                Failure: DecodeError 错误信息
        """
        try:
            document = json.loads(payload)
        except (ValueError, TypeError) as e:
            # UnicodeDecodeError 是 ValueError 的子类
            return Failure(DecodeError(f"响应不是合法 JSON: {e}"))

        if not isinstance(document, dict):
            return Failure(
                DecodeError(f"响应格式错误: 期望 object，实际 {type(document).__name__}")
            )

        peers_result = self._extract_peers(document)
        if isinstance(peers_result, Failure):
            return peers_result

        try:
            snapshot = StatusSnapshot.model_validate(
                {
                    "connections": document.get("connections"),
                    "requests": document.get("requests"),
                    "peers": peers_result.unwrap(),
                    "nginx_version": document.get("nginx_version"),
                    "address": document.get("address"),
                }
            )
        except ValidationError as e:
            locations = [
                self._location(err["loc"]) for err in e.errors()
            ]
            logger.debug(f"状态文档校验失败: {e}")
            return Failure(
                DecodeError(
                    f"状态文档结构不兼容: {', '.join(locations)}",
                    locations,
                )
            )

        return Success(snapshot)

    def _extract_peers(self, document: dict) -> Result[list[Any], DecodeError]:
        """按结构版本取出上游服务器数组。

        Args:
            document: 已解析的 JSON 对象

        Returns:
            Result[list, DecodeError]: 原始服务器对象列表或错误
        """
        upstreams = document.get("upstreams")
        if upstreams is None:
            return Success([])
        if not isinstance(upstreams, dict):
            return Failure(
                DecodeError("upstreams 必须是 object", ["upstreams"])
            )

        location = f"upstreams.{self._upstream_name}"
        group = upstreams.get(self._upstream_name)
        if group is None:
            return Success([])

        if isinstance(group, list):
            if self._schema_version == SchemaVersion.PEERS:
                return Failure(
                    DecodeError(
                        f"{location} 是数组，与 peers 结构版本不符",
                        [location],
                    )
                )
            return Success(group)

        if isinstance(group, dict):
            if self._schema_version == SchemaVersion.LEGACY:
                return Failure(
                    DecodeError(
                        f"{location} 是 object，与 legacy 结构版本不符",
                        [location],
                    )
                )
            peers = group.get("peers")
            if peers is None:
                return Success([])
            if not isinstance(peers, list):
                return Failure(
                    DecodeError(f"{location}.peers 必须是数组", [f"{location}.peers"])
                )
            return Success(peers)

        return Failure(
            DecodeError(
                f"{location} 类型错误: {type(group).__name__}",
                [location],
            )
        )

    def _location(self, loc: tuple) -> str:
        """把 Pydantic 错误位置转换为文档中的点分隔路径。"""
        parts = [str(p) for p in loc]
        if parts and parts[0] == "peers":
            prefix = f"upstreams.{self._upstream_name}"
            if self._schema_version != SchemaVersion.LEGACY:
                prefix += ".peers"
            return ".".join([prefix, *parts[1:]])
        return ".".join(parts)


def to_document(
    snapshot: StatusSnapshot,
    schema_version: SchemaVersion = SchemaVersion.PEERS,
    upstream_name: str = "cache_servers",
) -> dict[str, Any]:
    """把快照转换回状态文档结构。

    AUTO 按 peers 结构输出。

    Args:
        snapshot: 状态快照
        schema_version: 输出的结构版本
        upstream_name: 上游组名称

    Returns:
        dict: 可序列化为 JSON 的状态文档
    """
    data = snapshot.model_dump(by_alias=True)
    peers = data.pop("peers")
    if schema_version == SchemaVersion.LEGACY:
        group: Any = peers
    else:
        group = {"peers": peers}
    data["upstreams"] = {upstream_name: group}
    return data
