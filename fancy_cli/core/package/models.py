"""依赖包数据模型与缓存目录命名规则"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fancy_cli.utils import semver

LATEST = "latest"


def cache_dir_name(package_name: str, package_version: str) -> str:
    """(name, version) -> 缓存目录名

    @fancy-cli/init 1.1.2 -> _@fancy-cli_init@1.1.2@@fancy-cli/init

    完整包名作为后缀保留，不同 (name, version) 永不冲突，
    同一对输入跨进程总是得到相同结果。
    """
    prefix = package_name.replace("/", "_")
    return f"_{prefix}@{package_version}@{package_name}"


def cache_path(store_dir: str | Path, package_name: str, package_version: str) -> Path:
    return Path(store_dir).resolve() / cache_dir_name(package_name, package_version)


@dataclass
class PackageSpec:
    """单个依赖包的定位信息

    store_dir 为空时表示 target_path 处直接安装的模块（无版本复用），
    否则表示 store_dir 下按版本区分的缓存条目。
    """

    package_name: str
    package_version: str = LATEST
    target_path: str = ""
    store_dir: str = ""

    @property
    def namespaced(self) -> bool:
        return bool(self.store_dir)


def list_cached_versions(store_dir: str | Path, package_name: str) -> list[str]:
    """扫描 store_dir，列出某个包已缓存的全部版本（从旧到新）"""
    base = Path(store_dir)
    if not base.is_dir():
        return []
    prefix = f"_{package_name.replace('/', '_')}@"
    # 带 scope 的包名含 '/'，目录名只包含其第一段
    marker = f"@{package_name.split('/')[0]}"
    versions: list[str] = []
    for d in base.iterdir():
        rest = d.name[len(prefix):] if d.name.startswith(prefix) else ""
        if not rest.endswith(marker):
            continue
        version = rest[: -len(marker)]
        if version and cache_path(base, package_name, version).is_dir():
            versions.append(version)
    valid = sorted((v for v in versions if semver.is_valid(v)), key=semver.parse)
    return valid + sorted(v for v in versions if not semver.is_valid(v))
