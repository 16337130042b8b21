# src/rcon_core/network.py
"""
RCON 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 TCP 流的建立、发送、定长接收和关闭。
该模块屏蔽了 StreamReader / StreamWriter 的细节，向引擎层提供纯粹的 bytes 收发接口。

超时是传输边界上的可选旋钮 (config.timeout)，引擎内部没有任何超时或重试逻辑。
"""

import asyncio
import logging
from typing import Optional

from .config import RconConfig
from .exceptions import ConnectError, TransportReadError, TransportWriteError, TruncatedRead

logger = logging.getLogger(__name__)


class NetworkClient:
    """
    封装单条 asyncio TCP 连接的客户端。
    """

    def __init__(self, config: RconConfig):
        self.config = config
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @property
    def is_connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self) -> None:
        """
        建立到 config.host:config.port 的 TCP 连接。
        """
        target = (self.config.host, self.config.port)
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(*target), timeout=self.config.timeout
            )
            logger.debug(f"TCP 连接已建立: {target}")

        except asyncio.TimeoutError:
            raise ConnectError(f"连接超时 {target} ({self.config.timeout}s)") from None
        except OSError as e:
            raise ConnectError(f"连接失败 {target}: {e}") from e

    async def send(self, data: bytes) -> int:
        """
        将整个缓冲区作为一次逻辑写入发出。

        Returns:
            int: 被传输层接受的字节数。

        Raises:
            TransportWriteError: 连接未建立/已关闭，或底层写入失败。
        """
        if not self.is_connected:
            raise TransportWriteError("连接未建立或已关闭")

        # 此时 writer 绝不可能是 None
        assert self.writer is not None

        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            raise TransportWriteError(f"发送超时 ({self.config.timeout}s)") from None
        except OSError as e:
            raise TransportWriteError(f"发送失败: {e}") from e

        return len(data)

    async def receive_exactly(self, size: int) -> bytes:
        """
        阻塞直到读满 size 字节。绝不返回不完整的数据。

        Raises:
            TruncatedRead: 对端在读满之前关闭了连接。
            TransportReadError: 连接未建立、超时或底层读取失败。
        """
        if self.reader is None:
            raise TransportReadError("连接未建立")

        try:
            return await asyncio.wait_for(
                self.reader.readexactly(size), timeout=self.config.timeout
            )
        except asyncio.IncompleteReadError as e:
            raise TruncatedRead(
                f"连接在读满 {size} 字节前关闭 (已读 {len(e.partial)} 字节)",
                expected=size,
                received=len(e.partial),
            ) from None
        except asyncio.TimeoutError:
            raise TransportReadError(f"接收超时 ({self.config.timeout}s)") from None
        except OSError as e:
            raise TransportReadError(f"接收错误: {e}") from e

    async def close(self) -> None:
        """关闭 TCP 连接"""
        if self.writer:
            writer = self.writer
            self.writer = None
            self.reader = None

            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                # 对端已先行断开，关闭过程本身的错误不影响释放
                logger.debug(f"关闭连接时出现错误: {e}")
            logger.debug("TCP 连接已关闭")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
