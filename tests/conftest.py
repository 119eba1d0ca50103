"""测试共享 fixture - 假注册表 + 本地模块构造

FakeRegistry 模拟注册表的两个操作:
  resolve_latest_version() → 返回 latest，并记录调用次数
  fetch()                  → 在缓存目录写出一个最小模块，并记录拉取历史
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fancy_cli.core.config import Config
from fancy_cli.core.exceptions import InstallError
from fancy_cli.core.package import cache_path

DEFAULT_BODY = "def main(argv):\n    return 0\n"


def write_module(
    root: Path,
    *,
    name: str = "demo",
    version: str = "1.0.0",
    main: str | None = "lib/index.py",
    body: str = DEFAULT_BODY,
    manifest: bool = True,
) -> Path:
    """在 root 下写出 package.json 与入口文件"""
    root.mkdir(parents=True, exist_ok=True)
    if manifest:
        data: dict[str, str] = {"name": name, "version": version}
        if main:
            data["main"] = main
        (root / "package.json").write_text(json.dumps(data), encoding="utf-8")
    if main:
        entry = root / main
        entry.parent.mkdir(parents=True, exist_ok=True)
        entry.write_text(body, encoding="utf-8")
    return root


class FakeRegistry:
    def __init__(
        self,
        latest: str | None = "2.3.0",
        *,
        main: str | None = "lib/index.py",
        body: str = DEFAULT_BODY,
        manifest: bool = True,
        fail: bool = False,
    ) -> None:
        self.latest = latest
        self.main = main
        self.body = body
        self.manifest = manifest
        self.fail = fail
        self.resolve_calls = 0
        self.fetches: list[tuple[str, str]] = []

    def resolve_latest_version(self, name: str) -> str | None:
        self.resolve_calls += 1
        return self.latest

    def fetch(self, name: str, version: str, dest_root: Path, cache_root: Path) -> Path:
        if self.fail:
            raise InstallError(f"下载失败: {name}@{version}")
        self.fetches.append((name, version))
        dest = cache_path(cache_root, name, version)
        return write_module(
            dest, name=name, version=version,
            main=self.main, body=self.body, manifest=self.manifest,
        )


@pytest.fixture()
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    """独立 home 目录的配置"""
    return Config(home_path=str(tmp_path / "home"))


@pytest.fixture()
def registry_factory() -> type[FakeRegistry]:
    """需要自定义行为时使用: registry_factory(latest="1.0.0", main=None)"""
    return FakeRegistry


@pytest.fixture()
def module_writer():
    return write_module
