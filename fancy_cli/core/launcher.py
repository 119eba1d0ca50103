"""子进程入口

Dispatcher 以如下方式启动:

    python -m fancy_cli.core.launcher <入口文件绝对路径> <JSON 参数列表>

按路径加载入口模块，调用其 main(argv)，argv 即解码后的参数列表。
main 返回 int 时作为退出码，返回 None 视为 0；未捕获的异常
由解释器打印堆栈并以 1 退出。
"""

from __future__ import annotations

import hashlib
import importlib.util
import json
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

ENTRY_ATTR = "main"


def _module_file(entry_path: Path) -> Path:
    if entry_path.is_dir():
        return entry_path / "__init__.py"
    if not entry_path.suffix and entry_path.with_suffix(".py").is_file():
        return entry_path.with_suffix(".py")
    return entry_path


def load_entry(entry_path: str | Path) -> ModuleType:
    """按绝对路径加载入口模块，模块名由路径派生，互不覆盖"""
    path = _module_file(Path(entry_path))
    if not path.is_file():
        raise FileNotFoundError(f"入口文件不存在: {path}")
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]  # noqa: S324
    name = f"_fancy_entry_{digest}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"无法加载入口模块: {path}")
    module = importlib.util.module_from_spec(spec)
    # 入口所在目录加入 sys.path，保证模块内的相对依赖可被导入
    sys.path.insert(0, str(path.parent))
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def run(entry_path: str | Path, call_args: list[Any]) -> int:
    module = load_entry(entry_path)
    target = getattr(module, ENTRY_ATTR, None)
    if not callable(target):
        raise AttributeError(f"入口模块未定义可调用的 {ENTRY_ATTR}(): {entry_path}")
    result = target(call_args)
    if isinstance(result, int) and not isinstance(result, bool):
        return result
    return 0


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("用法: python -m fancy_cli.core.launcher <entry> <json-args>", file=sys.stderr)
        return 2
    entry_path, payload = args
    call_args = json.loads(payload)
    if not isinstance(call_args, list):
        print("参数必须为 JSON 数组", file=sys.stderr)
        return 2
    return run(entry_path, call_args)


if __name__ == "__main__":
    sys.exit(main())
