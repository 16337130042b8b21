# File: src/rcon_core/core.py
"""
RCON 核心引擎 (Core Engine)

职责：
1. 资源组装：State + Network + Config。
2. 协议编排：Auth 握手、命令执行与分片响应重组 (哨兵包技巧)。
3. 生命周期：Connect -> Authenticate -> Execute* -> Close。
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from .config import DEFAULT_ENCODING, RconConfig, parse_address
from .exceptions import (
    AuthenticationFailed,
    ConfigError,
    ConnectError,
    InvalidPacketOrder,
    InvalidResponseID,
    NetworkError,
    ProtocolDesync,
    ProtocolError,
    RconError,
    StateError,
    TransportWriteError,
)
from .network import NetworkClient
from .protocols.constants import PacketType, Session, Wire
from .protocols.packets import (
    Packet,
    RequestIdGenerator,
    decode,
    decode_header,
    encode,
    merge,
    new_packet,
    random_request_id,
)
from .state import CoreStatus, RconState

logger = logging.getLogger(__name__)

# 定义回调函数类型别名：支持同步或异步函数
StatusCallback = Callable[[CoreStatus, str], Any | Awaitable[Any]]


class RconCore:
    """RCON 客户端核心引擎 (Async)。

    一个实例对应一条 TCP 连接，同一时刻只允许一个请求在进行中。
    引擎内部不加锁；多个协程共享同一实例时，必须由调用方串行化访问。
    """

    def __init__(
        self,
        config: RconConfig,
        status_callback: StatusCallback | None = None,
        id_generator: RequestIdGenerator = random_request_id,
    ) -> None:
        """初始化核心引擎。

        Args:
            config: 全局配置对象。
            status_callback: 初始状态回调。也可以之后使用 add_listener 注册。
            id_generator: 请求 ID 来源，默认为进程级安全随机数。
        """
        self.config = config
        self._id_generator = id_generator

        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

        self._state = RconState()
        self.net_client = NetworkClient(config)
        self._busy = False

        self._update_status(CoreStatus.DISCONNECTED, "引擎已就绪")

    @property
    def state(self) -> RconState:
        """获取当前会话状态的只读副本。

        返回的是一个副本 (Copy)，修改它不会影响引擎内部状态。
        """
        return replace(self._state)

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    # =========================================================================
    # 生命周期
    # =========================================================================

    async def connect(self) -> None:
        """建立 TCP 连接。

        Raises:
            ConnectError: 连接无法建立 (包装底层传输错误)。
        """
        if self._state.is_connected:
            logger.warning("当前已连接，跳过连接")
            return

        if self.net_client.is_connected:
            # ERROR 状态下残留的旧连接
            await self.net_client.close()

        try:
            await self.net_client.connect()
        except ConnectError as e:
            self._fail(f"连接失败: {e}")
            raise

        self._state.commands_executed = 0
        self._update_status(CoreStatus.CONNECTED, f"已连接到 {self.config.address}")

    async def close(self) -> None:
        """释放传输连接。调用方应至多关闭一次。"""
        await self.net_client.close()
        self._update_status(CoreStatus.CLOSED, "连接已关闭")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # =========================================================================
    # 协议操作
    # =========================================================================

    async def authenticate(self, password: str | None = None) -> None:
        """执行认证握手。每条连接只需认证一次。

        Args:
            password: RCON 密码。缺省时使用 config.password。

        Raises:
            AuthenticationFailed: 服务器拒绝了密码 (响应 ID 为 -1)。
            InvalidResponseID: 响应 ID 与请求不匹配，流已失步。
            ProtocolDesync: 收到非 AuthResponse 类型的最终响应。
            NetworkError: 传输层失败。
            StateError: 连接未建立或已有请求在进行中。
        """
        self._check_ready((CoreStatus.CONNECTED, CoreStatus.AUTHENTICATED), "认证")
        if password is None:
            password = self.config.password

        self._busy = True
        try:
            await self._authenticate(password)

        except AuthenticationFailed as e:
            # 连接本身仍然可用，但必须重新认证后才能执行命令
            self._state.last_error = str(e)
            self._update_status(CoreStatus.CONNECTED, f"认证被拒绝: {e}")
            raise

        except (NetworkError, ProtocolError) as e:
            self._fail(f"认证异常: {e}")
            raise

        finally:
            self._busy = False

        self._update_status(CoreStatus.AUTHENTICATED, "认证成功")

    async def execute(self, command: str) -> str:
        """执行一条命令并返回 (可能由多个分片重组的) 响应正文。

        Args:
            command: 命令文本。

        Returns:
            str: 以 config.encoding 解码的响应正文。

        Raises:
            InvalidPacketOrder: 收到了既非命令也非哨兵 ID 的数据包。
            NetworkError: 传输层失败。
            StateError: 未认证、连接已失效或已有请求在进行中。
        """
        response = await self.execute_packet(command)
        return response.text(self.config.encoding)

    async def execute_packet(self, command: str) -> Packet:
        """同 execute，但返回合并后的原始 Packet。"""
        self._check_ready((CoreStatus.AUTHENTICATED,), "执行命令")

        self._busy = True
        self._state.status = CoreStatus.EXECUTING
        try:
            response = await self._execute(command)

        except (NetworkError, ProtocolError) as e:
            self._fail(f"命令执行异常: {e}")
            raise

        finally:
            self._busy = False
            if self._state.status == CoreStatus.EXECUTING:
                self._state.status = CoreStatus.AUTHENTICATED

        self._state.commands_executed += 1
        return response

    # =========================================================================
    # 读写原语
    # =========================================================================

    async def read_packet(self) -> Packet:
        """读取一个完整的数据包：12 字节头部 + (size - 8) 字节包体。

        Raises:
            TruncatedRead: 连接在读满声明长度前关闭。
            TransportReadError: 底层读取失败。
            MalformedPacket: 头部 size 字段非法。
        """
        header = await self.net_client.receive_exactly(Wire.HEADER_SIZE)
        size, _, _ = decode_header(header)
        body = await self.net_client.receive_exactly(size - Wire.SIZE_FIELD_EXCLUDED)

        packet = decode(header, body)
        logger.debug("recv: id=%d type=%d size=%d", packet.id, packet.type, packet.size)
        return packet

    async def write_packet(self, packet: Packet) -> None:
        """序列化并一次性写出整个数据包。短写不重试。

        Raises:
            TransportWriteError: 写入失败，或被接受的字节数与缓冲区长度不符。
        """
        data = encode(packet)
        written = await self.net_client.send(data)
        if written != len(data):
            raise TransportWriteError(f"写入长度不符: {written}/{len(data)} 字节")
        logger.debug("send: id=%d type=%d size=%d", packet.id, packet.type, packet.size)

    # =========================================================================
    # 内部实现
    # =========================================================================

    async def _authenticate(self, password: str) -> None:
        request = new_packet(PacketType.AUTH, self._encode(password), self._id_generator)
        await self.write_packet(request)

        response = await self.read_packet()
        self._check_auth_response_id(request, response)

        # 服务器可能先回一个空的 ResponseValue，再给出真正的 AuthResponse
        if response.type == PacketType.RESPONSE_VALUE:
            logger.debug("丢弃认证前的空 ResponseValue 包 (id=%d)", response.id)
            response = await self.read_packet()
            self._check_auth_response_id(request, response)

        if response.id == Session.FAILED_AUTH_ID:
            raise AuthenticationFailed()

        if response.type != PacketType.AUTH_RESPONSE:
            raise ProtocolDesync(f"认证阶段收到非预期的包类型: {response.type}")

    @staticmethod
    def _check_auth_response_id(request: Packet, response: Packet) -> None:
        if response.id not in (request.id, Session.FAILED_AUTH_ID):
            raise InvalidResponseID(
                f"认证响应 ID 不匹配: {response.id} (期望 {request.id})"
            )

    async def _execute(self, command: str) -> Packet:
        request = new_packet(
            PacketType.EXEC_COMMAND, self._encode(command), self._id_generator
        )
        # 服务器严格按请求顺序应答，哨兵的回显必然排在命令的全部分片之后
        sentinel = new_packet(PacketType.RESPONSE_VALUE, b"", self._id_generator)

        await self.write_packet(request)
        await self.write_packet(sentinel)

        fragments: list[Packet] = []
        while True:
            packet = await self.read_packet()

            if packet.id == request.id:
                fragments.append(packet)

            elif packet.id == sentinel.id:
                if packet.body == Session.SENTINEL_MARKER:
                    break
                logger.debug("哨兵回显尚未结束 (body=%r)，继续读取", packet.body)

            else:
                raise InvalidPacketOrder(
                    f"收到未知 ID 的数据包: {packet.id} "
                    f"(命令 {request.id}, 哨兵 {sentinel.id})",
                    packet_id=packet.id,
                )

        return merge(fragments)

    def _encode(self, text: str) -> bytes:
        try:
            return text.encode(self.config.encoding)
        except UnicodeEncodeError as e:
            raise ConfigError(
                f"文本包含 {self.config.encoding} 无法编码的字符: "
                f"{e.object[e.start : e.end]}"
            ) from e

    def _check_ready(self, allowed: tuple[CoreStatus, ...], action: str) -> None:
        if self._busy:
            raise StateError(f"无法{action}: 当前连接已有请求在进行中")
        if self._state.status not in allowed:
            raise StateError(f"无法{action}: 当前状态为 {self._state.status.name}")

    def _fail(self, msg: str) -> None:
        """记录连接致命错误并进入 ERROR 状态。"""
        self._state.last_error = msg
        self._update_status(CoreStatus.ERROR, msg)

    def _update_status(self, status: CoreStatus, msg: str) -> None:
        """更新内部状态并异步触发所有回调。"""
        self._state.status = status
        if status == CoreStatus.ERROR:
            logger.error(f"[{status.name}] {msg}")
        else:
            logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                if inspect.iscoroutinefunction(callback):
                    asyncio.create_task(callback(status, msg))  # type: ignore
                else:
                    loop = asyncio.get_running_loop()
                    loop.call_soon(callback, status, msg)
            except RuntimeError:
                # 应对 loop 尚未运行或已关闭的边缘情况
                pass


async def dial(
    address: str,
    password: str | None = None,
    *,
    timeout: float | None = None,
    encoding: str = DEFAULT_ENCODING,
    id_generator: RequestIdGenerator = random_request_id,
) -> RconCore:
    """连接到 "host:port"，并在提供密码时立即完成认证。

    Args:
        address: 服务器地址。
        password: RCON 密码。为 None 时只建立连接，不认证。
        timeout: 传输层超时秒数。
        encoding: 文本编码。
        id_generator: 请求 ID 来源。

    Returns:
        RconCore: 已连接 (且可能已认证) 的引擎。

    Raises:
        ConfigError: 地址格式无效。
        ConnectError: 连接无法建立。
        AuthenticationFailed: 密码被拒绝 (此时连接已被关闭)。
    """
    host, port = parse_address(address)
    config = RconConfig(
        host=host,
        port=port,
        password=password or "",
        timeout=timeout,
        encoding=encoding,
    )
    core = RconCore(config, id_generator=id_generator)
    await core.connect()

    if password is not None:
        try:
            await core.authenticate()
        except RconError:
            await core.close()
            raise
    return core
