"""依赖包缓存模块

- models.py:   PackageSpec 与缓存目录命名规则
- registry.py: 注册表客户端（版本解析 + 拉取）
- package.py:  Package 缓存生命周期（exists / install / update / 入口解析）
"""

from fancy_cli.core.package.models import (
    LATEST,
    PackageSpec,
    cache_dir_name,
    cache_path,
    list_cached_versions,
)
from fancy_cli.core.package.package import Package
from fancy_cli.core.package.registry import NpmRegistryClient, RegistryClient

__all__ = [
    "LATEST",
    "NpmRegistryClient",
    "Package",
    "PackageSpec",
    "RegistryClient",
    "cache_dir_name",
    "cache_path",
    "list_cached_versions",
]
