# src/rcon_core/protocols/constants.py
"""
RCON 协议层 - 常量定义

本模块定义了所有协议相关的魔法数字、长度和固定值。
采用命名空间 (Class Namespace) 组织，不使用扁平全局变量。
"""

# =========================================================================
# 1. 数据包类型 (Packet Types)
# =========================================================================


class PacketType:
    """数据包头部的 type 字段。

    AUTH_RESPONSE 与 EXEC_COMMAND 共享数值 2，
    两者只能根据上下文 (刚刚发出的是哪种请求) 区分。
    """

    AUTH = 3
    AUTH_RESPONSE = 2
    EXEC_COMMAND = 2
    RESPONSE_VALUE = 0


# =========================================================================
# 2. 帧结构 (Wire Layout)
# =========================================================================


class Wire:
    # 头部三个字段均为 int32 小端序
    FIELD_FORMAT = "<i"
    HEADER_FORMAT = "<iii"
    FIELD_SIZE = 4
    HEADER_SIZE = 12  # size + id + type

    # size 字段本身不计入 size；size 覆盖 id + type + body + 2 字节尾部
    SIZE_FIELD_EXCLUDED = 8  # 读取 size 之后还需读取 (size - 8) 字节包体
    TERMINATOR = b"\x00"
    PADDING = b"\x00"
    TRAILER = TERMINATOR + PADDING

    # id(4) + type(4) + terminator(1) + padding(1)
    OVERHEAD = 10
    MIN_SIZE = OVERHEAD


# =========================================================================
# 3. 会话常量
# =========================================================================


class Session:
    # 服务器拒绝认证时，AuthResponse 的 id 固定为 -1
    FAILED_AUTH_ID = -1

    # 对空 ResponseValue 哨兵的最终回显正文 (尾部空字节裁剪后)
    SENTINEL_MARKER = b"\x00\x01"

    INT32_MIN = -(2**31)
    INT32_MAX = 2**31 - 1
