"""
RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 27015
DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class RconConfig:
    """RconCore 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: RCON 服务器主机名或 IP。
        port: RCON 服务器端口 (Source 引擎默认 27015)。
        password: RCON 密码。
        timeout: 连接与读取的超时秒数。None 表示无限等待。
        encoding: 命令与响应正文使用的文本编码。
    """

    host: str
    password: str
    port: int = DEFAULT_PORT
    timeout: float | None = None
    encoding: str = DEFAULT_ENCODING

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"server={self.host}:{self.port}, "
            f"password='******', "
            f"timeout={self.timeout}, "
            f"encoding='{self.encoding}'>"
        )


def parse_address(address: str) -> tuple[str, int]:
    """将 "host:port" 形式的地址拆分为主机与端口。

    支持 "[::1]:27015" 形式的 IPv6 地址。

    Args:
        address: 服务器地址字符串。

    Returns:
        tuple[str, int]: (host, port)。

    Raises:
        ConfigError: 地址缺少端口，或端口不是 1-65535 之间的整数。
    """
    host, sep, port_str = address.strip().rpartition(":")
    if not sep or not host:
        raise ConfigError(f"地址格式无效 (应为 host:port): {address}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    try:
        port = int(port_str)
    except ValueError:
        raise ConfigError(f"端口格式无效: {port_str}") from None

    if not 0 < port < 65536:
        raise ConfigError(f"端口超出范围: {port}")
    return host, port


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。
    如果提供了 `address` 键 ("host:port")，它会代替 `host` / `port`。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data:
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _get(key: str, default: Any) -> Any:
            """获取可选字段，缺失则使用默认值"""
            return raw_data.get(key, default)

        def _to_port(val: Any) -> int:
            try:
                port = int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"端口格式无效: {val}") from None
            if not 0 < port < 65536:
                raise ConfigError(f"端口超出范围: {port}")
            return port

        def _to_timeout(val: Any) -> float | None:
            """空字符串 / 0 / None 视为不设超时"""
            if val is None or val == "":
                return None
            try:
                timeout = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效: {val}") from None
            if timeout < 0:
                raise ConfigError(f"超时不能为负数: {timeout}")
            return timeout or None

        if raw_data.get("address"):
            host, port = parse_address(str(raw_data["address"]))
        else:
            host = str(_req("host"))
            port = _to_port(_get("port", DEFAULT_PORT))

        encoding = str(_get("encoding", DEFAULT_ENCODING))
        try:
            "".encode(encoding)
        except LookupError:
            raise ConfigError(f"未知的文本编码: {encoding}") from None

        # --- 构建对象 ---
        return RconConfig(
            host=host,
            port=port,
            password=str(_req("password")),
            timeout=_to_timeout(_get("timeout", None)),
            encoding=encoding,
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config = {}

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]

    elif "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        raw_config = data["rcon"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def read_env_config() -> dict[str, str]:
    """读取所有以 `RCON_` 开头的已知环境变量，不做校验。

    例如: `RCON_PASSWORD` -> `password`。
    """
    env_map = {
        "address": "ADDRESS",
        "host": "HOST",
        "port": "PORT",
        "password": "PASSWORD",
        "timeout": "TIMEOUT",
        "encoding": "ENCODING",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"RCON_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    return raw_data


def load_config_from_env() -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    raw_data = read_env_config()

    if not raw_data:
        raise ConfigError("未检测到 RCON_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
