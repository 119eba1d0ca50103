"""运行时版本门禁

在 CLI 启动时与每个命令生命周期开始时各调用一次，
当前解释器版本低于最低要求时拒绝继续执行。
"""

from __future__ import annotations

import sys

from fancy_cli.core.exceptions import VersionError
from fancy_cli.utils import semver


def check(current_version: str, min_version: str) -> None:
    """current_version < min_version 时抛 VersionError，无副作用"""
    if semver.parse(current_version, loose=True) < semver.parse(min_version, loose=True):
        raise VersionError(current_version, min_version)


def check_python_version(min_version: str) -> str:
    """检查当前 Python 解释器版本，返回当前版本号"""
    current = ".".join(str(part) for part in sys.version_info[:3])
    check(current, min_version)
    return current
