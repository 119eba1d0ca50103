"""依赖包注册表客户端

职责:
- 查询 npm 风格注册表的包信息与版本列表
- 解析最新版本 / ^ 兼容范围内的最新版本
- 下载 tarball 并原子地落盘到缓存目录
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.request
from pathlib import Path, PurePosixPath
from typing import Any, Protocol

from fancy_cli.core.config import DEFAULT_REGISTRY, ORIGINAL_REGISTRY
from fancy_cli.core.exceptions import InstallError
from fancy_cli.core.package.models import cache_path
from fancy_cli.utils import semver
from fancy_cli.utils.net import require_http_url, url_join

logger = logging.getLogger(__name__)


class RegistryClient(Protocol):
    """注册表客户端协议 - Package 只依赖这两个操作"""

    def resolve_latest_version(self, name: str) -> str | None:
        """返回包的最新版本号，包不存在时返回 None"""
        ...

    def fetch(self, name: str, version: str, dest_root: Path, cache_root: Path) -> Path:
        """将 name@version 落盘到 cache_root 下的缓存目录，返回该目录"""
        ...


def _http_get(url: str, timeout: float) -> bytes:
    with urllib.request.urlopen(require_http_url(url, what="注册表请求"), timeout=timeout) as resp:  # nosec B310
        return resp.read()


def _checked_members(tf: tarfile.TarFile) -> list[tarfile.TarInfo]:
    """只允许普通文件与目录，且路径必须落在解压目录内"""
    members = tf.getmembers()
    for member in members:
        parts = PurePosixPath(member.name).parts
        if member.name.startswith(("/", "\\")) or ".." in parts:
            raise tarfile.TarError(f"tarball 成员路径越界: {member.name}")
        if not (member.isfile() or member.isdir()):
            raise tarfile.TarError(f"tarball 包含不支持的成员类型: {member.name}")
    return members


class NpmRegistryClient:
    """npm 风格注册表客户端"""

    def __init__(self, registry: str = "", timeout: float = 5.0) -> None:
        self.registry = registry or self.default_registry()
        self.timeout = timeout

    @staticmethod
    def default_registry(original: bool = False) -> str:
        return ORIGINAL_REGISTRY if original else DEFAULT_REGISTRY

    # ------------------------------------------------------------------
    # 版本查询
    # ------------------------------------------------------------------

    def get_info(self, name: str) -> dict[str, Any] | None:
        """获取包的注册表文档，包不存在时返回 None"""
        if not name:
            return None
        url = url_join(self.registry, name)
        try:
            raw = _http_get(url, self.timeout)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                logger.debug("注册表中不存在: %s", name)
                return None
            raise InstallError(f"查询包信息失败: {url} - HTTP {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise InstallError(f"查询包信息失败: {url} - {e}") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InstallError(f"注册表返回的不是合法 JSON: {url}") from e
        return data if isinstance(data, dict) else None

    def get_versions(self, name: str) -> list[str]:
        data = self.get_info(name)
        if not data:
            return []
        return list((data.get("versions") or {}).keys())

    @staticmethod
    def get_semver_versions(base_version: str, versions: list[str]) -> list[str]:
        """筛选满足 ^base_version 的版本，按从新到旧排序"""
        return [
            v for v in semver.sort_desc(versions)
            if semver.satisfies_caret(v, base_version)
        ]

    def get_semver_version(self, base_version: str, name: str) -> str | None:
        """^base_version 范围内的最新版本"""
        newer = self.get_semver_versions(base_version, self.get_versions(name))
        return newer[0] if newer else None

    def resolve_latest_version(self, name: str) -> str | None:
        """优先取 dist-tags.latest，否则取最高的正式版本"""
        data = self.get_info(name)
        if not data:
            return None
        tagged = (data.get("dist-tags") or {}).get("latest")
        if tagged and semver.is_valid(tagged):
            return tagged
        return semver.max_version((data.get("versions") or {}).keys())

    # ------------------------------------------------------------------
    # 拉取
    # ------------------------------------------------------------------

    def fetch(self, name: str, version: str, dest_root: Path, cache_root: Path) -> Path:
        """下载 name@version 的 tarball 并解压到缓存目录

        先解压到 cache_root 下的临时目录，再 os.replace 到最终路径；
        并发安装同一版本时，后完成者丢弃自己的临时副本。
        """
        dest = cache_path(cache_root, name, version)
        if dest.exists():
            logger.info("缓存命中: %s@%s -> %s", name, version, dest)
            return dest

        dist = self._dist_info(name, version)
        tarball_url = dist.get("tarball", "")
        if not tarball_url:
            raise InstallError(f"注册表未提供 tarball 地址: {name}@{version}")

        cache_root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=str(cache_root), prefix=".staging-"))
        try:
            logger.info("下载: %s", tarball_url)
            archive = staging / "package.tgz"
            try:
                archive.write_bytes(_http_get(tarball_url, self.timeout))
            except (urllib.error.URLError, OSError) as e:
                raise InstallError(f"下载失败: {tarball_url} - {e}") from e

            if dist.get("shasum"):
                self._verify_checksum(archive, dist["shasum"])

            unpacked = self._extract(archive, staging / "unpacked")
            dest.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.replace(unpacked, dest)
            except OSError:
                if not dest.exists():
                    raise
                logger.info("并发安装已完成，丢弃临时副本: %s", dest)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        self._link_current(dest_root, name, dest)
        logger.info("已安装 %s@%s -> %s", name, version, dest)
        return dest

    def _dist_info(self, name: str, version: str) -> dict[str, Any]:
        data = self.get_info(name)
        if not data:
            raise InstallError(f"注册表中不存在包: {name}")
        manifest = (data.get("versions") or {}).get(version)
        if not manifest:
            raise InstallError(f"注册表中不存在版本: {name}@{version}")
        return manifest.get("dist") or {}

    @staticmethod
    def _extract(archive: Path, target: Path) -> Path:
        """解压 tarball，返回包根目录（npm 包通常只有一个 package/ 顶层目录）

        解释器提供 tarfile.data_filter 时使用 "data" 过滤器；
        否则（3.9.17 / 3.10.12 / 3.11.4 之前的版本）逐个校验成员。
        """
        target.mkdir(parents=True)
        try:
            with tarfile.open(archive) as tf:
                if hasattr(tarfile, "data_filter"):
                    tf.extractall(path=str(target), filter="data")  # noqa: S202
                else:
                    tf.extractall(path=str(target), members=_checked_members(tf))  # noqa: S202
        except (OSError, tarfile.TarError) as e:
            raise InstallError(f"解压失败: {archive} - {e}") from e
        entries = list(target.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            return entries[0]
        return target

    @staticmethod
    def _verify_checksum(path: Path, expected: str) -> None:
        sha1 = hashlib.sha1()  # noqa: S324
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha1.update(chunk)
        actual = sha1.hexdigest()
        if actual != expected:
            raise InstallError(
                f"校验和不匹配 {path.name}: 期望 {expected}, 实际 {actual}",
            )

    @staticmethod
    def _link_current(dest_root: Path, name: str, dest: Path) -> None:
        """在 <dest_root>/node_modules/<name> 建立指向当前安装版本的链接"""
        link = dest_root / "node_modules" / name
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            if link.is_symlink() or link.exists():
                if not link.is_symlink():
                    return
                link.unlink()
            link.symlink_to(dest, target_is_directory=True)
        except OSError as e:
            logger.warning("无法创建链接 %s -> %s: %s", link, dest, e)
