"""命令生命周期

具体命令继承 Command 并实现 init / exec，由 run_lifecycle 依次执行:

    check_version -> normalize_args -> init -> exec

任一阶段抛出异常即终止后续阶段。缺少 init 或 exec 的子类
在实例化时即失败 (TypeError)。

入口模块示例:

    class InitCommand(Command):
        def init(self):
            self.project_name = self._argv[0] if self._argv else ""
            self.force = bool(self._cmd.get("force"))

        def exec(self):
            ...

    def main(argv):
        return run_lifecycle(InitCommand(argv))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from fancy_cli.core import version_gate
from fancy_cli.core.config import LOWEST_PYTHON_VERSION
from fancy_cli.core.exceptions import ValidationError
from fancy_cli.utils.logger import is_verbose

logger = logging.getLogger(__name__)


class Command(ABC):
    """命令基类"""

    lowest_python_version: str = LOWEST_PYTHON_VERSION

    def __init__(self, argv: list[Any]) -> None:
        if argv is None:
            raise ValidationError("参数不能为空")
        if not isinstance(argv, list):
            raise ValidationError("参数必须为列表")
        if len(argv) < 1:
            raise ValidationError("参数列表不能为空")
        self._argv: list[Any] = argv
        self._cmd: dict[str, Any] = {}

    def check_version(self) -> None:
        version_gate.check_python_version(self.lowest_python_version)

    def normalize_args(self) -> None:
        """拆分末尾的选项对象: _cmd 为选项，_argv 为位置参数"""
        options = self._argv[-1]
        self._cmd = options if isinstance(options, dict) else {}
        self._argv = self._argv[:-1]

    @abstractmethod
    def init(self) -> None:
        """解析命令自身需要的参数"""

    @abstractmethod
    def exec(self) -> int | None:
        """命令主体逻辑"""


def run_lifecycle(command: Command) -> int:
    """按顺序执行四个阶段，返回退出码（失败为 1）"""
    stages = (
        command.check_version,
        command.normalize_args,
        command.init,
        command.exec,
    )
    result: Any = None
    try:
        for stage in stages:
            result = stage()
    except Exception as e:  # noqa: BLE001
        logger.error("%s", e)
        if is_verbose():
            logger.exception("详细错误信息")
        return 1
    return result if isinstance(result, int) and not isinstance(result, bool) else 0
