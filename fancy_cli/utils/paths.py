"""路径工具

- format_path: 统一路径分隔符为 '/'（Windows 下 '\\' 会被替换）
- find_package_dir: 自下而上查找包含 package.json 的最近目录
"""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_MANIFEST = "package.json"


def format_path(p: str | os.PathLike[str] | None, sep: str = os.sep) -> str | None:
    if p is None:
        return None
    text = os.fspath(p)
    if sep == "/":
        return text
    return text.replace("\\", "/")


def find_package_dir(start: str | os.PathLike[str]) -> Path | None:
    current = Path(start).resolve()
    for candidate in (current, *current.parents):
        if (candidate / PACKAGE_MANIFEST).is_file():
            return candidate
    return None
