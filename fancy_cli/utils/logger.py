"""fancy-cli 日志配置

提供统一的日志配置，支持普通文本和结构化 JSON 两种输出格式，
并注册 SUCCESS 自定义级别用于提示安装/更新成功等结果。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

HEADING = "fancy"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, SUCCESS, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式，否则使用人类可读格式

    说明:
        - 输出到 stderr，不占用子命令的 stdout
        - 自动清理已有 handlers，避免重复输出
        - DEBUG 级别即 verbose 模式，错误时额外输出完整堆栈
    """
    root = logging.getLogger()

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(resolve_level(level))

    handler = logging.StreamHandler(sys.stderr)

    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = f"{HEADING} %(levelname)-7s %(message)s"
        handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(handler)


def resolve_level(level: str) -> int:
    """级别名转数值，兼容 verbose 别名，未知名称回退 INFO"""
    name = (level or "INFO").upper()
    if name == "VERBOSE":
        return logging.DEBUG
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def is_verbose() -> bool:
    return logging.getLogger().isEnabledFor(logging.DEBUG)


def log_success(logger: logging.Logger, msg: str, *args: object) -> None:
    logger.log(SUCCESS, msg, *args)


def reset_logging() -> None:
    """重置根日志器配置，常用于测试环境"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
