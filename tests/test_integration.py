# tests/test_integration.py
"""
端到端测试：dial -> authenticate -> execute -> close。

在 127.0.0.1 上运行一个最小的 Source 风格 RCON 服务器：
- 认证时先回一个空 ResponseValue，再回 AuthResponse (失败时 id 为 -1)；
- 命令响应按 CHUNK 字节拆分为多个分片；
- 对空 ResponseValue 回显一个空包和一个 0x0001 标记包。
"""

import asyncio
import struct

import pytest

from rcon_core import AuthenticationFailed, CoreStatus, dial
from rcon_core.commands import Player, list_players

PASSWORD = b"secret"
CHUNK = 8

RESPONSES = {
    b"status": b"hostname: test server\nplayers : 2 (16 max)\n",
    b"/players": b"Players (2):\n  alice (online)\n  bob\n",
    b"noop": b"",
}


def _frame(packet_id: int, packet_type: int, body: bytes) -> bytes:
    return struct.pack("<iii", len(body) + 10, packet_id, packet_type) + body + b"\x00\x00"


async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    try:
        while True:
            size, packet_id, packet_type = struct.unpack("<iii", await reader.readexactly(12))
            body = (await reader.readexactly(size - 8)).rstrip(b"\x00")

            if packet_type == 3:
                ok = body == PASSWORD
                writer.write(_frame(packet_id, 0, b""))
                writer.write(_frame(packet_id if ok else -1, 2, b""))
            elif packet_type == 2:
                reply = RESPONSES.get(body, b"Unknown command")
                for i in range(0, len(reply) or 1, CHUNK):
                    writer.write(_frame(packet_id, 0, reply[i : i + CHUNK]))
            elif packet_type == 0:
                writer.write(_frame(packet_id, 0, b""))
                writer.write(_frame(packet_id, 0, b"\x00\x01\x00\x00"))
            await writer.drain()
    except asyncio.IncompleteReadError:
        pass
    finally:
        writer.close()


async def _start_rcon_server():
    server = await asyncio.start_server(_handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, f"127.0.0.1:{port}"


@pytest.mark.asyncio
async def test_dial_execute_roundtrip():
    server, address = await _start_rcon_server()
    try:
        core = await dial(address, password="secret", timeout=2.0)
        try:
            assert core.state.status == CoreStatus.AUTHENTICATED

            assert await core.execute("status") == RESPONSES[b"status"].decode()
            assert await core.execute("noop") == ""
            assert await list_players(core) == [
                Player(name="alice", online=True),
                Player(name="bob", online=False),
            ]
            assert core.state.commands_executed == 3
        finally:
            await core.close()
    finally:
        server.close()
        await server.wait_closed()

    assert core.state.status == CoreStatus.CLOSED


@pytest.mark.asyncio
async def test_dial_wrong_password():
    server, address = await _start_rcon_server()
    try:
        with pytest.raises(AuthenticationFailed):
            await dial(address, password="wrong", timeout=2.0)
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_dial_without_password_only_connects():
    server, address = await _start_rcon_server()
    try:
        core = await dial(address, timeout=2.0)
        try:
            assert core.state.status == CoreStatus.CONNECTED
            await core.authenticate("secret")
            assert core.state.is_authenticated
        finally:
            await core.close()
    finally:
        server.close()
        await server.wait_closed()
