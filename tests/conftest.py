# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig
from rcon_core.core import RconCore
from rcon_core.exceptions import TruncatedRead
from rcon_core.protocols.packets import Packet, encode
from rcon_core.state import CoreStatus


class FakeStream:
    """内存中的字节流，替代 NetworkClient。

    feed() 写入的数据包会按顺序被 receive_exactly() 读出；
    send() 收到的原始字节记录在 sent 中。
    """

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.sent: list[bytes] = []
        self.closed = False
        self.is_connected = True

    def feed(self, packet_id: int, packet_type: int, body: bytes = b"") -> None:
        self.buffer.extend(
            encode(Packet(size=len(body) + 10, id=packet_id, type=packet_type, body=body))
        )

    async def connect(self) -> None:
        self.is_connected = True

    async def send(self, data: bytes) -> int:
        self.sent.append(data)
        return len(data)

    async def receive_exactly(self, size: int) -> bytes:
        if len(self.buffer) < size:
            received = len(self.buffer)
            self.buffer.clear()
            raise TruncatedRead("流已结束", expected=size, received=received)
        data = bytes(self.buffer[:size])
        del self.buffer[:size]
        return data

    async def close(self) -> None:
        self.closed = True
        self.is_connected = False


@pytest.fixture
def valid_config() -> RconConfig:
    """[Fixture] 返回一个最小可用的 RconConfig 对象。"""
    return RconConfig(
        host="127.0.0.1",
        port=27015,
        password="test_password",
        timeout=None,
        encoding="utf-8",
    )


@pytest.fixture
def fake_stream() -> FakeStream:
    return FakeStream()


@pytest.fixture
def make_core(valid_config, fake_stream):
    """构造一个挂载了 FakeStream 的引擎。

    传入的 ids 会依次作为请求 ID 使用：
    authenticate 消耗 1 个，execute 消耗 2 个 (命令 + 哨兵)。
    """

    def _make(*ids: int, status: CoreStatus = CoreStatus.CONNECTED) -> RconCore:
        core = RconCore(valid_config, id_generator=iter(ids).__next__)
        core.net_client = fake_stream
        core._state.status = status
        return core

    return _make
