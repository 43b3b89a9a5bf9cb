"""Prometheus 指标定义。

定义采集器自身运行状态的 Prometheus 监控指标。
"""

from prometheus_client import Counter, Gauge, Histogram

# 轮询周期计数器
# 标签: outcome (周期结果: success, fetch_error, decode_error)
cycles_total = Counter(
    "collector_cycles_total",
    "Total poll cycles by outcome",
    ["outcome"],
)

# 轮询周期耗时直方图
# 分桶: 0.01s, 0.05s, 0.1s, 0.25s, 0.5s, 1.0s, 2.5s, 5.0s, 10.0s, 30.0s
cycle_duration_seconds = Histogram(
    "collector_cycle_duration_seconds",
    "Poll cycle duration in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# 指标发送计数器
# 标签: result (发送结果: sent, failed)
emissions_total = Counter(
    "collector_emissions_total",
    "Total metrics forwarded to statsd by result",
    ["result"],
)

# 最近一次成功周期的时间戳
last_success_timestamp_seconds = Gauge(
    "collector_last_success_timestamp_seconds",
    "Unix timestamp of the last successful poll cycle",
)
