"""nginx plus 状态页客户端。

封装状态页的 HTTP 调用，带有显式超时和错误处理。
"""

import asyncio
import logging

import httpx
from returns.result import Failure, Result, Success

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """状态页抓取错误。

    网络错误、超时或非 2xx 响应时返回。
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """初始化错误。

        Args:
            message: 错误消息
            status_code: HTTP 状态码（如果有）
        """
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StatusClient:
    """nginx plus 状态页客户端。

    不做重试，失败由轮询器决定下一步。
    """

    DEFAULT_TIMEOUT = 10.0  # 秒

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """初始化客户端。

        Args:
            url: 状态页 URL
            timeout: 整个请求的截止时间（秒）
        """
        self._url = url
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        """状态页 URL。"""
        return self._url

    async def __aenter__(self) -> "StatusClient":
        """进入上下文管理器。"""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """退出上下文管理器。"""
        await self.close()

    def _ensure_client(self) -> None:
        """确保 HTTP 客户端已初始化。"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )

    async def close(self) -> None:
        """关闭 HTTP 客户端。"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_status(self) -> Result[bytes, FetchError]:
        """获取状态文档。

        Returns:
            Result[bytes, FetchError]:
                Success: 响应原始内容
                Failure: FetchError 错误信息
        """
        self._ensure_client()
        assert self._client is not None

        try:
            # httpx 的超时只限制单次连接或读取，整个请求另设截止时间
            response = await asyncio.wait_for(self._client.get(self._url), self._timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.error(f"状态页请求超时 ({self._timeout}s): {e}")
            return Failure(FetchError(f"请求超时 ({self._timeout}s): {e}"))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # 包括 NetworkError、协议错误和无效 URL
            logger.error(f"状态页网络错误: {e}")
            return Failure(FetchError(f"网络错误: {e}"))

        status_code = response.status_code
        if not 200 <= status_code < 300:
            logger.error(f"状态页返回错误状态码: {status_code}")
            return Failure(
                FetchError(
                    f"HTTP 错误 {status_code}: {response.reason_phrase}",
                    status_code=status_code,
                )
            )

        logger.debug(f"状态页响应 {len(response.content)} 字节")
        return Success(response.content)
