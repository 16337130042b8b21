# File: src/rcon_core/protocols/packets.py
"""
RCON 协议封包构建器 (Packet Codec)

负责 Packet 与其二进制字节流之间的相互转换，以及分片响应的合并。
本模块是无状态的 (Stateless)，不持有任何连接或会话信息，也不做任何 I/O。

帧结构 (全部小端序):
    size(4) | id(4) | type(4) | body(N) | 0x00 | 0x00
    其中 size = N + 10。
"""

import logging
import secrets
import struct
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..exceptions import (
    MalformedPacket,
    MismatchedPacketID,
    MismatchedPacketType,
    NoPacketsToMerge,
)
from .constants import Session, Wire

logger = logging.getLogger(__name__)

# 请求 ID 生成器：每次调用返回一个新的 int32
RequestIdGenerator = Callable[[], int]


@dataclass(frozen=True)
class Packet:
    """单个 RCON 数据包 (头部字段平铺在包上)。

    Attributes:
        size: 线上 size 字段，恒等于 len(body) + 10。
        id: 请求/响应关联 ID。
        type: 数据包类型，见 PacketType。
        body: 原始正文字节 (不含尾部两个空字节)。
    """

    size: int
    id: int
    type: int
    body: bytes = b""

    @property
    def payload_size(self) -> int:
        """正文长度 (size 扣除 id/type/尾部开销)。"""
        return self.size - Wire.OVERHEAD

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")


def random_request_id() -> int:
    """生成一个均匀随机的有符号 32 位请求 ID。

    不排除 -1 (保留的认证失败 ID)，碰撞概率可忽略。
    """
    value = secrets.randbits(32)
    if value > Session.INT32_MAX:
        value -= 1 << 32
    return value


def new_packet(
    packet_type: int,
    body: str | bytes = b"",
    id_generator: RequestIdGenerator = random_request_id,
) -> Packet:
    """构建一个出站请求包。size 总是由正文长度计算得出。

    Args:
        packet_type: 数据包类型。
        body: 正文。str 以 UTF-8 编码。
        id_generator: 请求 ID 来源。

    Returns:
        Packet: 新的请求包。
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return Packet(
        size=len(body) + Wire.OVERHEAD,
        id=id_generator(),
        type=packet_type,
        body=body,
    )


def encode(packet: Packet) -> bytes:
    """将 Packet 序列化为线上字节流，总长度为 size + 4。"""
    return (
        struct.pack(Wire.HEADER_FORMAT, packet.size, packet.id, packet.type)
        + packet.body
        + Wire.TRAILER
    )


def decode_header(header_bytes: bytes) -> tuple[int, int, int]:
    """解析 12 字节头部。

    Args:
        header_bytes: size / id / type 三个字段的原始字节。

    Returns:
        tuple[int, int, int]: (size, id, type)。

    Raises:
        MalformedPacket: 头部长度不是 12 字节，或 size 小于最小包长。
    """
    if len(header_bytes) != Wire.HEADER_SIZE:
        raise MalformedPacket(
            f"头部长度错误: 期望 {Wire.HEADER_SIZE} 字节，实际 {len(header_bytes)} 字节"
        )

    size, packet_id, packet_type = struct.unpack(Wire.HEADER_FORMAT, header_bytes)
    if size < Wire.MIN_SIZE:
        raise MalformedPacket(f"size 字段非法: {size} (最小 {Wire.MIN_SIZE})")
    return size, packet_id, packet_type


def decode(header_bytes: bytes, body_bytes: bytes) -> Packet:
    """由头部和 (size - 8) 字节包体还原 Packet。

    包体尾部的所有空字节都会被裁剪 (不只是两个)。

    Raises:
        MalformedPacket: 头部非法，或包体字节少于头部声明的长度。
    """
    size, packet_id, packet_type = decode_header(header_bytes)

    expected = size - Wire.SIZE_FIELD_EXCLUDED
    if len(body_bytes) < expected:
        raise MalformedPacket(
            f"包体不足: 声明 {expected} 字节，实际 {len(body_bytes)} 字节"
        )

    body = body_bytes[:expected].rstrip(b"\x00")
    return Packet(size=size, id=packet_id, type=packet_type, body=body)


def merge(packets: Sequence[Packet]) -> Packet:
    """将同一逻辑响应的多个分片合并为一个 Packet。

    分片必须按接收顺序传入，正文按此顺序拼接。

    Args:
        packets: 有序的分片序列。

    Returns:
        Packet: 合并后的包。只有一个分片时原样返回该对象 (不重算 size)。

    Raises:
        NoPacketsToMerge: 序列为空。
        MismatchedPacketID: 某分片的 id 与首个分片不同。
        MismatchedPacketType: 某分片的 type 与首个分片不同。
    """
    if not packets:
        raise NoPacketsToMerge("没有可合并的数据包")

    if len(packets) == 1:
        return packets[0]

    first = packets[0]
    payload_size = 0
    body = bytearray()

    for index, packet in enumerate(packets):
        if packet.id != first.id:
            raise MismatchedPacketID(
                f"分片 #{index} 的 ID 不一致: {packet.id} != {first.id}"
            )
        if packet.type != first.type:
            raise MismatchedPacketType(
                f"分片 #{index} 的类型不一致: {packet.type} != {first.type}"
            )
        payload_size += packet.payload_size
        body.extend(packet.body)

    logger.debug("merge: id=%d fragments=%d bytes=%d", first.id, len(packets), len(body))
    return Packet(
        size=payload_size + Wire.OVERHEAD,
        id=first.id,
        type=first.type,
        body=bytes(body),
    )
