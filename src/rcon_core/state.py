"""
RCON 核心库 - 状态模块

负责定义和存储连接会话的易变状态。
本模块不包含业务逻辑，仅作为数据容器供 Core 读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class CoreStatus(Enum):
    """核心引擎的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTED -> AUTHENTICATED <-> EXECUTING -> CLOSED
                       |   ^           |               |
                       |   +-----------+ (认证失败)    |
                       v                               v
                     ERROR                           ERROR
    """

    DISCONNECTED = auto()
    """初始状态，引擎已实例化但尚未建立 TCP 连接。"""

    CONNECTED = auto()
    """TCP 连接已建立，尚未认证 (或上一次认证被拒绝)。"""

    AUTHENTICATED = auto()
    """认证成功，可以执行命令。"""

    EXECUTING = auto()
    """正在执行一个请求/响应往返。同一时刻只允许一个。"""

    CLOSED = auto()
    """连接已被调用方关闭。"""

    ERROR = auto()
    """连接致命错误 (传输失败或协议失步)。只能关闭后重新连接。"""


@dataclass
class RconState:
    """存储 RCON 会话的易变状态数据。

    Attributes:
        status: 当前核心引擎的运行状态。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
        commands_executed: 本连接上已成功完成的命令数。
    """

    status: CoreStatus = CoreStatus.DISCONNECTED
    last_error: str = ""
    commands_executed: int = 0

    @property
    def is_connected(self) -> bool:
        """判断底层 TCP 连接是否处于可用状态。"""
        return self.status in (
            CoreStatus.CONNECTED,
            CoreStatus.AUTHENTICATED,
            CoreStatus.EXECUTING,
        )

    @property
    def is_authenticated(self) -> bool:
        """判断当前是否可以执行命令。

        EXECUTING 也视为已认证，因为一次执行结束后会回到 AUTHENTICATED。
        """
        return self.status in (CoreStatus.AUTHENTICATED, CoreStatus.EXECUTING)
