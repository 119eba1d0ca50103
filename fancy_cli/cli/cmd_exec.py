"""CLI - 按需安装并执行的命令"""

from __future__ import annotations

import click

from fancy_cli.cli import _config, _guard
from fancy_cli.core.dispatcher import Dispatcher
from fancy_cli.core.invocation import InvocationContext

# 被信号 N 终止的子进程按 shell 约定以 128+N 退出
SIGNAL_EXIT_BASE = 128


def register(group: click.Group) -> None:
    group.add_command(init)


def exit_code_for(code: int) -> int:
    """子进程返回码 -> CLI 退出码

    subprocess 对被信号 N 杀死的子进程返回 -N，直接退出会变成 256-N，
    这里换算为 128+N（如 SIGKILL -> 137）；非负值原样返回。
    """
    return SIGNAL_EXIT_BASE - code if code < 0 else code


def _dispatch(invocation: InvocationContext) -> None:
    dispatcher = Dispatcher(_config())
    code = _guard(lambda: dispatcher.dispatch(invocation.command_name, invocation))
    click.get_current_context().exit(exit_code_for(code))


@click.command()
@click.argument("project_name", required=False, default="")
@click.option("--force", "-f", is_flag=True, help="强制初始化项目（清空当前目录）")
def init(project_name: str, force: bool) -> None:
    """初始化项目"""
    args = [project_name] if project_name else []
    _dispatch(InvocationContext(command_name="init", args=args, options={"force": force}))
