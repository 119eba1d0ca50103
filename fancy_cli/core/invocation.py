"""命令调用上下文

CLI 前端构造 InvocationContext，Dispatcher 将其序列化为
[*args, options] 形式的 JSON 列表传给子进程。

序列化时只保留 "自有、非内部" 字段:
  - 以 '_' 开头的字段视为内部字段
  - parent 为回指父命令的引用，丢弃以避免循环引用
  - 无法编码为 JSON 的值丢弃
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

INTERNAL_PREFIX = "_"
BACK_REFERENCE = "parent"


def _is_json_value(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def filter_options(source: Mapping[str, Any] | object) -> dict[str, Any]:
    """提取可跨进程传递的选项

    source 为映射时直接过滤其键；为普通对象时只取实例自身的属性
    (vars)，不包含类属性与继承属性。
    """
    items = source if isinstance(source, Mapping) else vars(source)
    result: dict[str, Any] = {}
    for key, value in items.items():
        if not isinstance(key, str):
            continue
        if key.startswith(INTERNAL_PREFIX) or key == BACK_REFERENCE:
            continue
        if not _is_json_value(value):
            logger.debug("丢弃不可序列化的选项: %s=%r", key, value)
            continue
        result[key] = value
    return result


@dataclass
class InvocationContext:
    """一次命令调用: 位置参数 + 选项"""

    command_name: str
    args: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    def call_args(self) -> list[Any]:
        """子进程入口收到的参数列表，末尾为过滤后的选项"""
        return [*self.args, filter_options(self.options)]

    def to_json(self) -> str:
        return json.dumps(self.call_args(), ensure_ascii=False)
