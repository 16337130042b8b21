# src/rcon_core/commands.py
"""
RCON 命令层 - Factorio 玩家名单

把服务器返回的换行分隔名单解析为结构化记录。
本模块只消费 RconCore.execute 的结果，不接触任何协议细节。

示例响应 (/players):
    Players (2):
      alice (online)
      bob
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core import RconCore

ONLINE_SUFFIX = "(online)"


@dataclass(frozen=True)
class Player:
    """服务器上登记的一名玩家。"""

    name: str
    online: bool = False


def _parse_player_line(line: str) -> Player:
    line = line.strip()
    if line.endswith(ONLINE_SUFFIX):
        return Player(name=line.split("(", 1)[0].strip(), online=True)
    return Player(name=line)


def _parse_roster(body: str, has_header: bool) -> list[Player]:
    lines = body.split("\n")
    if has_header:
        # 首行是 "Players (N):" 形式的汇总
        lines = lines[1:]
    return [_parse_player_line(line) for line in lines if line.strip()]


def parse_players(body: str) -> list[Player]:
    """解析 /players 的响应 (首行为汇总标题)。"""
    return _parse_roster(body, has_header=True)


def parse_admins(body: str) -> list[Player]:
    """解析 /admins 的响应 (没有标题行)。"""
    return _parse_roster(body, has_header=False)


async def list_players(core: "RconCore") -> list[Player]:
    """返回服务器上所有登记过的玩家。"""
    return parse_players(await core.execute("/players"))


async def list_admins(core: "RconCore") -> list[Player]:
    """返回服务器上所有管理员。"""
    return parse_admins(await core.execute("/admins"))
