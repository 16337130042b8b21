# File: src/rcon_core/exceptions.py
"""
RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI/Bot）能进行精细的错误处理。

连接致命 (Connection-Fatal) 的异常包括所有 NetworkError，以及
ProtocolDesync / InvalidResponseID / InvalidPacketOrder。
遇到这些异常后唯一安全的恢复方式是关闭连接并重新 dial。
"""


class RconError(Exception):
    """RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 host/password)。
    2. 字段格式错误 (如端口不是整数、地址缺少端口)。
    3. 找不到配置文件或环境变量。
    """

    pass


class StateError(RconError):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 在未认证状态下尝试执行命令。
    2. 在同一连接上并发发起第二个请求。
    3. 连接已进入 ERROR / CLOSED 状态后继续使用。
    """

    pass


# =========================================================================
# 网络层 (I/O 级别)
# =========================================================================


class NetworkError(RconError):
    """网络层面的错误 (I/O 级别)。

    核心内部不做任何重试，此类错误总是意味着当前连接已不可信。
    """

    pass


class ConnectError(NetworkError):
    """TCP 连接无法建立 (DNS 失败、拒绝连接、超时)。"""

    pass


class TransportReadError(NetworkError):
    """从连接读取数据时底层 I/O 失败。"""

    pass


class TruncatedRead(TransportReadError):
    """对端在声明的长度读满之前关闭了连接。"""

    def __init__(self, message: str, expected: int = 0, received: int = 0) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received


class TransportWriteError(NetworkError):
    """向连接写入数据失败。短写不会重试。"""

    pass


# =========================================================================
# 协议层 (逻辑级别)
# =========================================================================


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。"""

    pass


class MalformedPacket(ProtocolError):
    """数据包结构损坏 (头部长度不对、size 字段非法、包体不足)。"""

    pass


class InvalidResponseID(ProtocolError):
    """认证响应的 ID 与请求 ID 不匹配，说明流已失步。"""

    pass


class InvalidPacketOrder(ProtocolError):
    """执行命令时收到了既不属于命令也不属于哨兵的数据包。"""

    def __init__(self, message: str, packet_id: int | None = None) -> None:
        super().__init__(message)
        self.packet_id = packet_id


class ProtocolDesync(ProtocolError):
    """致命的协议失步 (如认证阶段收到非 AuthResponse 类型的包)。

    不尝试任何恢复，由调用方决定崩溃还是重连。
    """

    pass


class PacketMergeError(ProtocolError):
    """分片合并失败的基类。"""

    pass


class NoPacketsToMerge(PacketMergeError):
    """待合并的分片序列为空。"""

    pass


class MismatchedPacketID(PacketMergeError):
    """分片的 ID 与首个分片不一致。"""

    pass


class MismatchedPacketType(PacketMergeError):
    """分片的类型与首个分片不一致。"""

    pass


# =========================================================================
# 业务层
# =========================================================================


class AuthenticationFailed(RconError):
    """认证被拒绝 (服务器返回 ID 为 -1 的 AuthResponse)。

    这是服务器明确给出的业务信号，而非传输错误。连接本身仍然可用，
    但在重新认证成功之前不应再执行任何命令。
    """

    def __init__(self, message: str = "认证失败: 密码被服务器拒绝") -> None:
        super().__init__(message)
