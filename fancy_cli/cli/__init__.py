"""fancy-cli 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
启动时构造一次 Config 存入 click 上下文，后续命令从上下文取用。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import click

from fancy_cli import __version__
from fancy_cli.core import version_gate
from fancy_cli.core.config import Config
from fancy_cli.core.exceptions import FancyCliError
from fancy_cli.utils.logger import is_verbose, setup_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _config() -> Config:
    """获取当前命令上下文中的配置"""
    return click.get_current_context().find_object(Config)


def _guard(fn: Callable[[], T]) -> T:
    """执行 fn；业务异常输出单行错误信息（debug 模式附带堆栈）并以 1 退出"""
    ctx = click.get_current_context()
    try:
        return fn()
    except FancyCliError as e:
        logger.error("%s", e)
        cfg = ctx.find_object(Config)
        debug = cfg.debug if cfg is not None else is_verbose()
        if debug:
            logger.exception("[%s] 详细错误信息", e.code)
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", "-d", is_flag=True, help="开启调试模式，输出详细日志")
@click.option("--target-path", default="", help="本地调试模块路径（跳过缓存）")
@click.pass_context
def main(ctx: click.Context, debug: bool, target_path: str) -> None:
    """fancy-cli - 命令按需安装与隔离执行"""
    # 先按命令行参数配置日志，Config 加载后再按配置重设
    setup_logging(level="DEBUG" if debug else "INFO")
    cfg = _guard(Config.from_env)
    if debug:
        cfg.debug = True
        cfg.log_level = "DEBUG"
    if target_path:
        cfg.target_path = target_path
    setup_logging(level=cfg.log_level)
    ctx.obj = cfg

    logger.info("cli %s", __version__)
    _guard(lambda: version_gate.check_python_version(cfg.lowest_python_version))
    logger.debug("home_path: %s", cfg.home_path)


# 注册各领域子命令
from fancy_cli.cli.cmd_exec import register as _reg_exec  # noqa: E402
from fancy_cli.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_exec(main)
_reg_cache(main)
