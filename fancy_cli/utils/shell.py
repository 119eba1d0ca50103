"""子进程执行工具

通过 CommandExecutor 协议抽象子进程创建，方便测试替换和跨平台适配。
子进程继承父进程的 stdin/stdout/stderr，返回值仅为退出码。
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from typing import Protocol

from fancy_cli.core.exceptions import SpawnError

logger = logging.getLogger(__name__)


class CommandExecutor(Protocol):
    """命令执行器协议 - 启动子进程并阻塞等待其退出"""

    def spawn(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> int:
        """执行命令并返回退出码；无法创建子进程时抛 SpawnError"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def spawn(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> int:
        logger.debug("spawn: %s (cwd=%s)", cmd, cwd)
        try:
            r = subprocess.run(
                cmd, cwd=cwd, env=dict(env) if env is not None else None, check=False,
            )
        except OSError as e:
            raise SpawnError(f"无法启动子进程 {cmd[0]}: {e}") from e
        return r.returncode


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
