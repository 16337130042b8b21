# src/rcon_core/cli.py
"""
RCON 命令行入口 (CLI)

用法:
    rcon --address 127.0.0.1:27015 --password secret status
    rcon --config config.toml --profile factorio     # 交互模式，逐行读取 stdin

配置来源优先级: --config 指定的 TOML 文件，否则为环境变量 (会先加载当前目录的 .env)，
最后由命令行参数覆盖。
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from . import __version__
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_toml,
    parse_address,
    read_env_config,
)
from .core import RconCore
from .exceptions import AuthenticationFailed, ConfigError, RconError

logger = logging.getLogger("RconCLI")

EXIT_OK = 0
EXIT_AUTH = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"
QUIT_COMMANDS = ("exit", "quit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon", description="通过 RCON 协议向游戏服务器发送命令。"
    )
    parser.add_argument("--config", type=Path, help="TOML 配置文件路径")
    parser.add_argument("--profile", default="default", help="TOML 中的预设名")
    parser.add_argument("--address", help="服务器地址 host:port")
    parser.add_argument("--password", help="RCON 密码")
    parser.add_argument("--timeout", type=float, help="传输层超时秒数")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="输出调试日志 (含收发包摘要)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs="*", help="要执行的命令；留空进入交互模式")
    return parser


def resolve_config(args: argparse.Namespace) -> RconConfig:
    """合并配置文件 / 环境变量 / 命令行参数。

    Raises:
        ConfigError: 合并后的配置仍缺少必要字段或格式错误。
    """
    raw: dict[str, Any]
    if args.config:
        raw = asdict(load_config_from_toml(args.config, args.profile))
    else:
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
            logger.debug(f"已加载配置文件: {env_path}")
        raw = dict(read_env_config())

    if args.address:
        raw.pop("address", None)
        raw["host"], raw["port"] = parse_address(args.address)
    if args.password is not None:
        raw["password"] = args.password
    if args.timeout is not None:
        raw["timeout"] = args.timeout

    return create_config_from_dict(raw)


def _print_response(body: str) -> None:
    sys.stdout.write(body if body.endswith("\n") else body + "\n")
    sys.stdout.flush()


async def _repl(core: RconCore) -> None:
    """逐行读取 stdin 并执行，直到 EOF 或 exit。"""
    while True:
        try:
            line = await asyncio.to_thread(input, "rcon> ")
        except EOFError:
            break

        command = line.strip()
        if not command:
            continue
        if command in QUIT_COMMANDS:
            break
        _print_response(await core.execute(command))


async def run(config: RconConfig, commands: list[str]) -> int:
    """连接、认证并执行命令，返回进程退出码。"""
    core = RconCore(config)
    try:
        await core.connect()
        await core.authenticate()

        if commands:
            for command in commands:
                _print_response(await core.execute(command))
        else:
            await _repl(core)

    except AuthenticationFailed as e:
        logger.error(f"认证被拒绝: {e}")
        return EXIT_AUTH
    except RconError as e:
        logger.error(f"运行时异常: {e}")
        return EXIT_ERROR
    finally:
        await core.close()

    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    try:
        config = resolve_config(args)
    except ConfigError as e:
        logger.error(f"配置错误: {e}")
        return EXIT_AUTH

    logger.debug(f"配置加载完成: {config!r}")

    try:
        return asyncio.run(run(config, args.command))
    except KeyboardInterrupt:
        logger.info("收到中断信号，正在退出...")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
