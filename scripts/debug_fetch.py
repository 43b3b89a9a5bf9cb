#!/usr/bin/env python
"""Debug fetch: 诊断状态页解析问题。

获取一次 nginx plus 状态页，打印解析后的快照以及将要发送的指标列表，
不向 statsd 发送任何数据。

Usage:
    python scripts/debug_fetch.py <url> [--schema-version auto|peers|legacy] [--upstream NAME]

Examples:
    python scripts/debug_fetch.py http://localhost/status
    python scripts/debug_fetch.py http://nginx.local/status --schema-version legacy --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# 确保项目根目录在 sys.path 中
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from returns.result import Failure

from src.collector.client import StatusClient
from src.collector.decoder import StatusDecoder
from src.collector.domain.models import SchemaVersion
from src.collector.emitter import build_emissions


# ──────────────────────────────────────────────
# 1. CLI 参数解析
# ──────────────────────────────────────────────

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="诊断状态页解析：获取状态文档并打印将要发送的指标",
    )
    parser.add_argument("url", help="nginx plus 状态页 URL")
    parser.add_argument(
        "--schema-version",
        default=SchemaVersion.AUTO.value,
        choices=[v.value for v in SchemaVersion],
        help="状态文档结构版本（默认 auto）",
    )
    parser.add_argument("--upstream", default="cache_servers", help="上游组名称（默认 cache_servers）")
    parser.add_argument("--timeout", type=float, default=10.0, help="抓取超时秒数（默认 10）")
    parser.add_argument("--json", action="store_true", help="以 JSON 输出指标列表")
    return parser.parse_args()


# ──────────────────────────────────────────────
# 2. 抓取与解析
# ──────────────────────────────────────────────

async def fetch(url: str, timeout: float) -> bytes | None:
    async with StatusClient(url, timeout=timeout) as client:
        result = await client.fetch_status()
    if isinstance(result, Failure):
        print(f"抓取失败: {result.failure().message}", file=sys.stderr)
        return None
    return result.unwrap()


def main() -> int:
    args = parse_args()

    payload = asyncio.run(fetch(args.url, args.timeout))
    if payload is None:
        return 1

    decoder = StatusDecoder(SchemaVersion(args.schema_version), args.upstream)
    decoded = decoder.decode(payload)
    if isinstance(decoded, Failure):
        error = decoded.failure()
        print(f"解析失败: {error.message}", file=sys.stderr)
        for location in error.locations:
            print(f"  - {location}", file=sys.stderr)
        return 1

    snapshot = decoded.unwrap()
    emissions = build_emissions(snapshot, args.upstream)

    # ──────────────────────────────────────────────
    # 3. 输出
    # ──────────────────────────────────────────────
    if args.json:
        print(json.dumps([e.model_dump(mode="json") for e in emissions], indent=2))
        return 0

    print(f"nginx 版本: {snapshot.nginx_version or 'N/A'}")
    print(f"上游服务器: {len(snapshot.peers)}")
    for index, peer in enumerate(snapshot.peers):
        print(f"  [{index}] {peer.server or '?'} ({peer.state or 'unknown'})")
    print()
    width = max(len(e.path) for e in emissions)
    for emission in emissions:
        print(f"{emission.path:<{width}}  {emission.kind.value:<7}  {emission.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
