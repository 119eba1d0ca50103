"""依赖包缓存

单个 (名称, 版本) 依赖在本地磁盘上的完整生命周期:

  1. 版本解析: "latest" 在首次使用时经注册表解析为具体版本，仅解析一次
  2. 存在检查: 有 store_dir 时检查版本化缓存目录，否则检查 target_path
  3. 安装:     拉取 (name, version) 到缓存目录，不改变固定版本
  4. 更新:     查询最新版本，缓存不存在时才拉取，并采用最新版本号
  5. 入口解析: 读取模块根目录 package.json 的 main 字段

缓存目录布局:
    <store_dir>/_<name 中 / 替换为 _>@<version>@<name>/

缓存条目只增不删。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from fancy_cli.core.exceptions import EntryResolutionError, InstallError, ValidationError
from fancy_cli.core.package.models import LATEST, PackageSpec, cache_path
from fancy_cli.core.package.registry import RegistryClient
from fancy_cli.utils import semver
from fancy_cli.utils.paths import PACKAGE_MANIFEST, find_package_dir, format_path

logger = logging.getLogger(__name__)


class Package:
    """单个依赖包的缓存管理器，实例由一次命令分发独占"""

    def __init__(self, spec: PackageSpec, registry: RegistryClient) -> None:
        if not isinstance(spec, PackageSpec):
            raise ValidationError("Package 的 spec 参数必须为 PackageSpec")
        if not spec.package_name or not isinstance(spec.package_name, str):
            raise ValidationError("Package 的 package_name 不能为空")
        self.package_name = spec.package_name
        self.package_version = spec.package_version or LATEST
        self.target_path = spec.target_path
        self.store_dir = spec.store_dir
        self.registry = registry

    def __repr__(self) -> str:
        where = self.store_dir or self.target_path
        return f"Package({self.package_name}@{self.package_version}, {where})"

    # ------------------------------------------------------------------
    # 路径
    # ------------------------------------------------------------------

    @property
    def cache_file_path(self) -> Path:
        """当前版本的缓存目录（需先完成版本解析）"""
        return self.specific_cache_file_path(self.package_version)

    def specific_cache_file_path(self, package_version: str) -> Path:
        if not self.store_dir:
            raise ValidationError(f"{self.package_name} 未指定 store_dir，没有缓存目录")
        return cache_path(self.store_dir, self.package_name, package_version)

    @property
    def _dest_root(self) -> Path:
        if self.target_path:
            return Path(self.target_path)
        return Path(self.store_dir).parent

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def prepare(self) -> None:
        """确保 store_dir 存在，并把 "latest" 解析为具体版本"""
        if self.store_dir:
            try:
                Path(self.store_dir).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise InstallError(f"无法创建缓存目录 {self.store_dir}: {e}") from e
        if self.package_version == LATEST:
            self.package_version = self._latest_version()
            logger.debug("版本解析: %s@latest -> %s", self.package_name, self.package_version)

    def exists(self) -> bool:
        if self.store_dir:
            self.prepare()
            return self.cache_file_path.exists()
        return Path(self.target_path).exists()

    def install(self) -> Path:
        """拉取当前版本到缓存目录；失败抛 InstallError，不重试"""
        self.prepare()
        logger.info("安装 %s@%s", self.package_name, self.package_version)
        return self._fetch(self.package_version)

    def update(self) -> Path:
        """更新到最新版本

        最新版本的缓存已存在时不发起任何下载。无论是否下载，
        package_version 都会采用最新版本号（固定版本也会被推进）；
        若注册表报告的版本低于当前版本，则保留当前版本。
        """
        self.prepare()
        latest = self._latest_version()
        if semver.is_valid(latest) and semver.is_valid(self.package_version) and (
            semver.parse(latest) < semver.parse(self.package_version)
        ):
            logger.warning(
                "注册表最新版本 %s 低于当前版本 %s，保持不变: %s",
                latest, self.package_version, self.package_name,
            )
            return self.cache_file_path

        latest_path = self.specific_cache_file_path(latest)
        if not latest_path.exists():
            logger.info("更新 %s: %s -> %s", self.package_name, self.package_version, latest)
            latest_path = self._fetch(latest)
        else:
            logger.debug("已是最新版本: %s@%s", self.package_name, latest)
        self.package_version = latest
        return latest_path

    def get_entry_path(self) -> str | None:
        """入口文件的绝对路径（分隔符统一为 '/'）

        找不到 package.json 或未声明 main 时返回 None，表示无可执行内容。
        """
        root = self.cache_file_path if self.store_dir else Path(self.target_path)
        try:
            return self._resolve_entry(root)
        except EntryResolutionError as e:
            logger.debug("入口解析失败，视为无入口: %s", e)
            return None

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    def _latest_version(self) -> str:
        version = self.registry.resolve_latest_version(self.package_name)
        if not version:
            raise InstallError(f"注册表中没有可用版本: {self.package_name}")
        return version

    def _fetch(self, version: str) -> Path:
        try:
            return self.registry.fetch(
                self.package_name, version, self._dest_root, Path(self.store_dir),
            )
        except OSError as e:
            raise InstallError(f"安装失败: {self.package_name}@{version} - {e}") from e

    @staticmethod
    def _resolve_entry(root: Path) -> str | None:
        if not root.exists():
            return None
        pkg_dir = find_package_dir(root)
        if pkg_dir is None:
            return None
        manifest = pkg_dir / PACKAGE_MANIFEST
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise EntryResolutionError(f"无法读取 {manifest}: {e}") from e
        if not isinstance(data, dict):
            raise EntryResolutionError(f"{manifest} 顶层不是对象")
        main = data.get("main")
        if not main or not isinstance(main, str):
            return None
        return format_path((pkg_dir / main).resolve())
