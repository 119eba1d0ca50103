"""CLI - 本地缓存查询命令"""

from __future__ import annotations

import click

from fancy_cli.cli import _config, _guard
from fancy_cli.core.dispatcher import Dispatcher
from fancy_cli.core.exceptions import InstallError
from fancy_cli.core.package import LATEST, cache_path, list_cached_versions


def register(group: click.Group) -> None:
    group.add_command(cache)


@click.group()
def cache() -> None:
    """查看依赖包缓存"""


@cache.command(name="path")
@click.argument("command_name")
@click.option("--version", "version", default=LATEST, help="指定版本（latest 会查询注册表）")
def cache_entry_path(command_name: str, version: str) -> None:
    """输出命令对应依赖包的缓存目录"""
    cfg = _config()
    dispatcher = Dispatcher(cfg)

    def _resolve() -> str:
        package_name = dispatcher.package_name_for(command_name)
        ver = version
        if ver == LATEST:
            ver = dispatcher.registry.resolve_latest_version(package_name)
            if not ver:
                raise InstallError(f"注册表中没有可用版本: {package_name}")
        return str(cache_path(cfg.store_dir, package_name, ver))

    click.echo(_guard(_resolve))


@cache.command(name="versions")
@click.argument("command_name")
def cache_versions(command_name: str) -> None:
    """列出命令对应依赖包已缓存的版本"""
    cfg = _config()
    package_name = _guard(lambda: Dispatcher(cfg).package_name_for(command_name))
    versions = list_cached_versions(cfg.store_dir, package_name)
    if not versions:
        click.echo(f"本地没有已缓存版本: {package_name}")
        return
    for v in versions:
        click.echo(f"  {v}")
