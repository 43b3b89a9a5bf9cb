"""StatusDecoder 单元测试。

测试状态文档解析功能，包括宽松解析和结构版本选择。
"""

import json

import pytest
from returns.result import Failure, Success

from src.collector.decoder import DecodeError, StatusDecoder, to_document
from src.collector.domain.models import PeerStats, SchemaVersion, StatusSnapshot


def _encode(document) -> bytes:
    return json.dumps(document).encode("utf-8")


class TestStatusDecoder:
    """StatusDecoder 测试类。"""

    def test_decode_sample_document(self, sample_payload):
        """测试解析完整的状态文档。"""
        result = StatusDecoder().decode(sample_payload)

        assert isinstance(result, Success)
        snapshot = result.unwrap()
        assert snapshot.connections.accepted == 5
        assert snapshot.connections.active == 2
        assert snapshot.connections.idle == 1
        assert snapshot.requests.total == 100
        assert snapshot.requests.current == 3
        assert len(snapshot.peers) == 1

        peer = snapshot.peers[0]
        assert peer.sent == 500
        assert peer.received == 900
        assert peer.responses.two_xx == 9
        assert peer.responses.three_xx == 1
        assert peer.responses.total == 10

    def test_decode_ignores_unknown_fields(self, sample_document):
        """测试未知字段被忽略。"""
        sample_document["nginx_version"] = "1.25.3"
        sample_document["load_timestamp"] = 1700000000000
        sample_document["caches"] = {"http_cache": {"size": 1024}}
        sample_document["connections"]["brand_new_counter"] = 42
        peer = sample_document["upstreams"]["cache_servers"]["peers"][0]
        peer["weight"] = 1
        peer["server"] = "10.0.0.1:80"
        peer["state"] = "up"

        result = StatusDecoder().decode(_encode(sample_document))

        assert isinstance(result, Success)
        snapshot = result.unwrap()
        assert snapshot.nginx_version == "1.25.3"
        assert snapshot.peers[0].server == "10.0.0.1:80"
        assert snapshot.peers[0].state == "up"

    def test_decode_missing_fields_default_to_zero(self):
        """测试缺失字段按 0 处理。"""
        result = StatusDecoder().decode(
            _encode({"connections": {"accepted": 7}, "upstreams": {"cache_servers": {"peers": [{}]}}})
        )

        assert isinstance(result, Success)
        snapshot = result.unwrap()
        assert snapshot.connections.accepted == 7
        assert snapshot.connections.active == 0
        assert snapshot.requests.total == 0
        assert snapshot.peers[0] == PeerStats()

    def test_decode_empty_object(self):
        """测试空对象解析为默认快照。"""
        result = StatusDecoder().decode(b"{}")

        assert isinstance(result, Success)
        assert result.unwrap() == StatusSnapshot()

    def test_decode_null_values_default_to_zero(self):
        """测试 null 值按 0 / 空对象处理。"""
        result = StatusDecoder().decode(
            _encode({"connections": None, "requests": {"total": None}, "upstreams": None})
        )

        assert isinstance(result, Success)
        assert result.unwrap() == StatusSnapshot()

    def test_decode_truncates_float_values(self):
        """测试浮点数向零截断。"""
        result = StatusDecoder().decode(
            _encode({"connections": {"accepted": 12.9, "active": 3.0}})
        )

        assert isinstance(result, Success)
        snapshot = result.unwrap()
        assert snapshot.connections.accepted == 12
        assert snapshot.connections.active == 3

    def test_decode_invalid_json(self):
        """测试非 JSON 内容返回 DecodeError。"""
        result = StatusDecoder().decode(b"<html>502 Bad Gateway</html>")

        assert isinstance(result, Failure)
        assert isinstance(result.failure(), DecodeError)

    def test_decode_invalid_utf8(self):
        """测试无法解码的字节返回 DecodeError。"""
        result = StatusDecoder().decode(b"\xff\xfe\xfa")

        assert isinstance(result, Failure)

    @pytest.mark.parametrize("payload", [b"[]", b"42", b'"status"', b"null"])
    def test_decode_non_object_root(self, payload):
        """测试根节点不是 object 时返回 DecodeError。"""
        result = StatusDecoder().decode(payload)

        assert isinstance(result, Failure)
        assert "object" in result.failure().message

    def test_decode_wrong_section_type(self):
        """测试对象节类型错误时返回 DecodeError。"""
        result = StatusDecoder().decode(_encode({"connections": [1, 2, 3]}))

        assert isinstance(result, Failure)
        assert "connections" in result.failure().locations

    def test_decode_non_numeric_counter(self, sample_document):
        """测试计数器不是数值时返回 DecodeError，并指出字段位置。"""
        peer = sample_document["upstreams"]["cache_servers"]["peers"][0]
        peer["responses"]["5xx"] = "many"

        result = StatusDecoder().decode(_encode(sample_document))

        assert isinstance(result, Failure)
        error = result.failure()
        assert "upstreams.cache_servers.peers.0.responses.5xx" in error.locations

    @pytest.mark.parametrize("value", ["5", True])
    def test_decode_rejects_numeric_strings_and_booleans(self, value):
        """测试数字字符串和布尔值不会被当作数值接受。"""
        result = StatusDecoder().decode(_encode({"connections": {"accepted": value}}))

        assert isinstance(result, Failure)
        assert "connections.accepted" in result.failure().locations

    def test_decode_null_peer_is_zero_valued(self):
        """测试服务器数组中的 null 元素按全零服务器处理。"""
        document = {"upstreams": {"cache_servers": {"peers": [None, {"active": 3}]}}}

        result = StatusDecoder().decode(_encode(document))

        assert isinstance(result, Success)
        peers = result.unwrap().peers
        assert peers[0] == PeerStats()
        assert peers[1].active == 3

    def test_decode_rejects_non_finite_numbers(self):
        """测试 NaN / Infinity 返回 DecodeError。"""
        result = StatusDecoder().decode(b'{"connections": {"accepted": NaN}}')

        assert isinstance(result, Failure)


class TestSchemaVersion:
    """测试结构版本选择。"""

    def test_auto_detects_legacy_array(self, sample_document):
        """测试 auto 识别旧版数组结构。"""
        peers = sample_document["upstreams"]["cache_servers"]["peers"]
        sample_document["upstreams"]["cache_servers"] = peers

        result = StatusDecoder(SchemaVersion.AUTO).decode(_encode(sample_document))

        assert isinstance(result, Success)
        assert result.unwrap().peers[0].received == 900

    def test_auto_detects_peers_wrapper(self, sample_payload):
        """测试 auto 识别 peers 结构。"""
        result = StatusDecoder(SchemaVersion.AUTO).decode(sample_payload)

        assert isinstance(result, Success)
        assert len(result.unwrap().peers) == 1

    def test_legacy_version_decodes_array(self, sample_document):
        """测试 legacy 版本解析数组结构。"""
        sample_document["upstreams"]["cache_servers"] = [{"requests": 4}, {"requests": 8}]

        result = StatusDecoder(SchemaVersion.LEGACY).decode(_encode(sample_document))

        assert isinstance(result, Success)
        assert [p.requests for p in result.unwrap().peers] == [4, 8]

    def test_legacy_version_rejects_peers_wrapper(self, sample_payload):
        """测试 legacy 版本拒绝 peers 结构。"""
        result = StatusDecoder(SchemaVersion.LEGACY).decode(sample_payload)

        assert isinstance(result, Failure)
        assert result.failure().locations == ["upstreams.cache_servers"]

    def test_peers_version_rejects_array(self, sample_document):
        """测试 peers 版本拒绝数组结构。"""
        sample_document["upstreams"]["cache_servers"] = []

        result = StatusDecoder(SchemaVersion.PEERS).decode(_encode(sample_document))

        assert isinstance(result, Failure)

    def test_peers_wrapper_without_peers_key(self):
        """测试 peers 结构缺少 peers 键时视为无上游服务器。"""
        result = StatusDecoder(SchemaVersion.PEERS).decode(
            _encode({"upstreams": {"cache_servers": {"keepalive": 0}}})
        )

        assert isinstance(result, Success)
        assert result.unwrap().peers == []

    def test_peers_must_be_array(self):
        """测试 peers 不是数组时返回 DecodeError。"""
        result = StatusDecoder().decode(
            _encode({"upstreams": {"cache_servers": {"peers": {"0": {}}}}})
        )

        assert isinstance(result, Failure)
        assert result.failure().locations == ["upstreams.cache_servers.peers"]

    def test_missing_upstream_group(self):
        """测试缺少上游组时视为无上游服务器。"""
        result = StatusDecoder().decode(_encode({"upstreams": {"backend": {"peers": [{}]}}}))

        assert isinstance(result, Success)
        assert result.unwrap().peers == []

    def test_custom_upstream_name(self):
        """测试自定义上游组名称。"""
        result = StatusDecoder(upstream_name="backend").decode(
            _encode({"upstreams": {"backend": {"peers": [{}, {}]}}})
        )

        assert isinstance(result, Success)
        assert len(result.unwrap().peers) == 2

    def test_upstreams_wrong_type(self):
        """测试 upstreams 类型错误时返回 DecodeError。"""
        result = StatusDecoder().decode(_encode({"upstreams": ["cache_servers"]}))

        assert isinstance(result, Failure)

    def test_schema_version_accepts_string(self):
        """测试结构版本可以用字符串传入。"""
        decoder = StatusDecoder("legacy")

        result = decoder.decode(_encode({"upstreams": {"cache_servers": [{}]}}))

        assert isinstance(result, Success)


class TestToDocument:
    """测试快照到状态文档的转换。"""

    @pytest.mark.parametrize("version", [SchemaVersion.PEERS, SchemaVersion.LEGACY])
    def test_default_snapshot_survives_encode_decode(self, version):
        """测试默认快照编码后再解析得到相同的快照。"""
        payload = _encode(to_document(StatusSnapshot(), version))

        result = StatusDecoder(version).decode(payload)

        assert isinstance(result, Success)
        assert result.unwrap() == StatusSnapshot()

    def test_sample_snapshot_survives_encode_decode(self, sample_payload):
        """测试带上游服务器的快照编码后再解析保持不变。"""
        snapshot = StatusDecoder().decode(sample_payload).unwrap()

        document = to_document(snapshot, SchemaVersion.LEGACY)

        assert isinstance(document["upstreams"]["cache_servers"], list)
        assert document["upstreams"]["cache_servers"][0]["responses"]["2xx"] == 9
        assert StatusDecoder().decode(_encode(document)).unwrap() == snapshot
