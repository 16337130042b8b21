# src/rcon_core/protocols/__init__.py
"""
RCON 协议层 (Protocol Layer)

本包负责协议数据包的纯粹构建 (Encode) 与解析 (Decode)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何状态管理 (State)。
- 不依赖于 core 或 network 层。
"""

from . import constants
from .constants import PacketType
from .packets import (
    Packet,
    RequestIdGenerator,
    decode,
    decode_header,
    encode,
    merge,
    new_packet,
    random_request_id,
)

# 公共 API
__all__ = [
    "constants",
    "PacketType",
    "Packet",
    "RequestIdGenerator",
    "new_packet",
    "random_request_id",
    "encode",
    "decode",
    "decode_header",
    "merge",
]
