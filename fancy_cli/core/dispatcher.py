"""命令分发器

dispatch(command_name, invocation) 流程:

  1. 命令名 -> 包名（Config.commands 映射表，未映射视为配置错误）
  2. 构造 Package:
     - 配置了 target_path: 直接指向本地模块，不做缓存与版本管理（本地调试）
     - 否则: <home>/dependencies/node_modules 下的版本化缓存，版本 "latest"
  3. 缓存模式下: 已存在则 update()，否则 install()
  4. 解析入口文件；无入口时直接返回 0，不启动子进程
  5. 在独立子进程中加载入口并传入 [*args, options]，继承 stdio 与 cwd
  6. 阻塞等待子进程结束，原样返回其退出码
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from fancy_cli.core.config import Config
from fancy_cli.core.exceptions import ConfigError
from fancy_cli.core.invocation import InvocationContext
from fancy_cli.core.package import LATEST, NpmRegistryClient, Package, PackageSpec, RegistryClient
from fancy_cli.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

LAUNCHER_MODULE = "fancy_cli.core.launcher"


class Dispatcher:
    """命令 -> 依赖包 -> 隔离子进程"""

    def __init__(
        self,
        config: Config,
        registry: RegistryClient | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or NpmRegistryClient(
            config.registry, timeout=config.registry_timeout,
        )
        self.executor = executor or get_executor()

    def package_name_for(self, command_name: str) -> str:
        package_name = self.config.commands.get(command_name)
        if not package_name:
            raise ConfigError(
                f"命令 '{command_name}' 未映射到任何包。"
                f"可用: {sorted(self.config.commands)}"
            )
        return package_name

    def build_package(self, command_name: str) -> Package:
        package_name = self.package_name_for(command_name)
        target_path = self.config.target_path
        logger.debug("target_path: %s", target_path)
        logger.debug("home_path: %s", self.config.home_path)

        if target_path:
            spec = PackageSpec(
                package_name=package_name,
                package_version=LATEST,
                target_path=str(Path(target_path).resolve()),
            )
        else:
            spec = PackageSpec(
                package_name=package_name,
                package_version=LATEST,
                target_path=str(self.config.dependencies_dir),
                store_dir=str(self.config.store_dir),
            )
            logger.debug("store_dir: %s", spec.store_dir)
        return Package(spec, self.registry)

    def ensure_ready(self, pkg: Package) -> None:
        """缓存模式下保证模块已安装且为最新版本；直连模式不做处理"""
        if not pkg.store_dir:
            return
        if pkg.exists():
            pkg.update()
        else:
            pkg.install()

    def dispatch(self, command_name: str, invocation: InvocationContext) -> int:
        pkg = self.build_package(command_name)
        self.ensure_ready(pkg)

        entry = pkg.get_entry_path()
        if not entry:
            logger.info("%s 没有可执行的入口文件，跳过", pkg.package_name)
            return 0

        logger.debug("入口文件: %s", entry)
        cmd = build_launch_command(entry, invocation)
        code = self.executor.spawn(cmd, cwd=os.getcwd(), env=child_env())
        logger.debug("命令执行结束: %s (exit=%d)", command_name, code)
        return code


def child_env() -> dict[str, str]:
    """继承父进程环境，并保证子进程能导入 fancy_cli 自身"""
    env = dict(os.environ)
    root = str(Path(__file__).resolve().parents[2])
    current = env.get("PYTHONPATH", "")
    if root not in current.split(os.pathsep):
        env["PYTHONPATH"] = os.pathsep.join(p for p in (root, current) if p)
    return env


def build_launch_command(entry: str, invocation: InvocationContext) -> list[str]:
    """子进程命令行: 当前解释器运行 launcher，入口与参数作为两个独立参数传入"""
    return [sys.executable, "-m", LAUNCHER_MODULE, entry, invocation.to_json()]
