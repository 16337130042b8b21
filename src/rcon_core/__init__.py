# src/rcon_core/__init__.py
"""
RCON-Core v1.0.0
基于 asyncio 的 Source RCON 远程控制台协议客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    parse_address,
)

# 暴露引擎与状态
from .core import RconCore, dial

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthenticationFailed,
    ConfigError,
    ConnectError,
    InvalidPacketOrder,
    InvalidResponseID,
    MalformedPacket,
    MismatchedPacketID,
    MismatchedPacketType,
    NetworkError,
    NoPacketsToMerge,
    PacketMergeError,
    ProtocolDesync,
    ProtocolError,
    RconError,
    StateError,
    TransportReadError,
    TransportWriteError,
    TruncatedRead,
)
from .protocols import Packet, PacketType
from .state import CoreStatus, RconState

__version__ = "1.0.0"

__all__ = [
    "RconCore",
    "RconConfig",
    "RconState",
    "CoreStatus",
    "Packet",
    "PacketType",
    "dial",
    "parse_address",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "RconError",
    "ConfigError",
    "StateError",
    "NetworkError",
    "ConnectError",
    "TransportReadError",
    "TransportWriteError",
    "TruncatedRead",
    "ProtocolError",
    "MalformedPacket",
    "InvalidResponseID",
    "InvalidPacketOrder",
    "ProtocolDesync",
    "PacketMergeError",
    "NoPacketsToMerge",
    "MismatchedPacketID",
    "MismatchedPacketType",
    "AuthenticationFailed",
]
