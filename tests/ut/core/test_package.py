"""Package 缓存测试 - 路径规则 / 安装 / 更新 / 入口解析"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fancy_cli.core.exceptions import InstallError, ValidationError
from fancy_cli.core.package import (
    LATEST,
    Package,
    PackageSpec,
    cache_dir_name,
    cache_path,
    list_cached_versions,
)


def _namespaced(tmp_path: Path, registry, name: str = "init", version: str = LATEST) -> Package:
    store = tmp_path / "deps"
    return Package(
        PackageSpec(
            package_name=name, package_version=version,
            target_path=str(tmp_path), store_dir=str(store),
        ),
        registry,
    )


class TestCachePath:
    """缓存目录命名规则"""

    def test_scoped_layout(self) -> None:
        assert cache_dir_name("@fancy-cli/init", "1.1.2") == "_@fancy-cli_init@1.1.2@@fancy-cli/init"

    def test_plain_layout(self) -> None:
        assert cache_path("/cache/deps", "init", "2.3.0") == Path("/cache/deps/_init@2.3.0@init")

    def test_deterministic(self) -> None:
        assert cache_path("/cache/deps", "@a/b", "1.0.0") == cache_path("/cache/deps", "@a/b", "1.0.0")

    def test_distinct_pairs_never_collide(self) -> None:
        pairs = [
            ("a", "1.0.0"), ("a", "1.0.1"), ("b", "1.0.0"),
            ("a_b", "1.0.0"), ("a/b", "1.0.0"), ("@a/b", "1.0.0"), ("@a_b", "1.0.0"),
            ("a@1.0.0", "x"), ("a", "1.0.0@a"),
        ]
        paths = {str(cache_path("/s", n, v)) for n, v in pairs}
        assert len(paths) == len(pairs)

    def test_list_cached_versions(self, tmp_path: Path) -> None:
        for ver in ("1.10.0", "1.2.0", "1.9.3"):
            cache_path(tmp_path, "@fancy-cli/init", ver).mkdir(parents=True)
        cache_path(tmp_path, "other", "9.9.9").mkdir(parents=True)
        assert list_cached_versions(tmp_path, "@fancy-cli/init") == ["1.2.0", "1.9.3", "1.10.0"]
        assert list_cached_versions(tmp_path, "other") == ["9.9.9"]
        assert list_cached_versions(tmp_path / "nonexist", "other") == []


class TestConstruction:
    def test_requires_package_spec(self, fake_registry) -> None:
        with pytest.raises(ValidationError, match="PackageSpec"):
            Package({"package_name": "x"}, fake_registry)  # type: ignore[arg-type]

    def test_requires_name(self, fake_registry) -> None:
        with pytest.raises(ValidationError, match="不能为空"):
            Package(PackageSpec(package_name=""), fake_registry)

    def test_direct_package_has_no_cache_path(self, tmp_path: Path, fake_registry) -> None:
        pkg = Package(PackageSpec(package_name="x", target_path=str(tmp_path)), fake_registry)
        with pytest.raises(ValidationError, match="store_dir"):
            _ = pkg.cache_file_path


class TestExists:
    def test_direct_missing_does_not_contact_registry(self, tmp_path: Path, fake_registry) -> None:
        pkg = Package(
            PackageSpec(package_name="init", target_path=str(tmp_path / "missing")),
            fake_registry,
        )
        assert pkg.exists() is False
        assert fake_registry.resolve_calls == 0
        assert pkg.package_version == LATEST

    def test_direct_present(self, tmp_path: Path, fake_registry) -> None:
        pkg = Package(PackageSpec(package_name="init", target_path=str(tmp_path)), fake_registry)
        assert pkg.exists() is True

    def test_latest_resolved_once(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        assert pkg.exists() is False
        assert pkg.exists() is False
        assert pkg.package_version == "2.3.0"
        assert fake_registry.resolve_calls == 1

    def test_creates_store_dir(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.exists()
        assert (tmp_path / "deps").is_dir()

    def test_no_published_version(self, tmp_path: Path, registry_factory) -> None:
        pkg = _namespaced(tmp_path, registry_factory(latest=None))
        with pytest.raises(InstallError, match="没有可用版本"):
            pkg.exists()

    def test_unwritable_store_dir(self, tmp_path: Path, fake_registry) -> None:
        blocker = tmp_path / "home"
        blocker.write_text("not a directory", encoding="utf-8")
        pkg = Package(
            PackageSpec(package_name="init", target_path=str(blocker), store_dir=str(blocker / "deps")),
            fake_registry,
        )
        with pytest.raises(InstallError, match="无法创建缓存目录"):
            pkg.exists()
        assert fake_registry.resolve_calls == 0


class TestInstall:
    def test_cache_miss_installs_latest(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        assert pkg.exists() is False
        pkg.install()
        assert fake_registry.fetches == [("init", "2.3.0")]
        assert pkg.cache_file_path == (tmp_path / "deps" / "_init@2.3.0@init").resolve()
        assert pkg.exists() is True

    def test_pinned_version_unchanged(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry, version="1.0.0")
        pkg.install()
        assert pkg.package_version == "1.0.0"
        assert fake_registry.fetches == [("init", "1.0.0")]
        assert fake_registry.resolve_calls == 0

    def test_fetch_failure_surfaces(self, tmp_path: Path, registry_factory) -> None:
        pkg = _namespaced(tmp_path, registry_factory(fail=True))
        with pytest.raises(InstallError, match="下载失败"):
            pkg.install()
        assert pkg.exists() is False

    def test_os_error_wrapped(self, tmp_path: Path, fake_registry, monkeypatch) -> None:
        def _boom(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(fake_registry, "fetch", _boom)
        pkg = _namespaced(tmp_path, fake_registry)
        with pytest.raises(InstallError, match="安装失败"):
            pkg.install()


class TestUpdate:
    def test_up_to_date_no_fetch(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.install()
        fake_registry.fetches.clear()

        pkg2 = _namespaced(tmp_path, fake_registry)
        assert pkg2.exists() is True
        pkg2.update()
        assert fake_registry.fetches == []
        assert pkg2.package_version == "2.3.0"

    def test_newer_version_fetched_and_adopted(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.install()
        fake_registry.latest = "2.4.0"
        path = pkg.update()
        assert fake_registry.fetches[-1] == ("init", "2.4.0")
        assert pkg.package_version == "2.4.0"
        assert path == pkg.cache_file_path
        assert path.exists()

    def test_pinned_version_advanced(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry, version="1.0.0")
        pkg.install()
        pkg.update()
        assert pkg.package_version == "2.3.0"

    def test_twice_fetches_at_most_once(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry, version="1.0.0")
        pkg.install()
        fake_registry.fetches.clear()
        pkg.update()
        pkg.update()
        assert fake_registry.fetches == [("init", "2.3.0")]
        assert pkg.package_version == "2.3.0"

    def test_never_regresses(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry, version="3.0.0")
        pkg.install()
        pkg.update()
        assert pkg.package_version == "3.0.0"
        assert fake_registry.fetches == [("init", "3.0.0")]


class TestEntryPath:
    def test_resolves_main(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.install()
        entry = pkg.get_entry_path()
        assert entry is not None
        assert "\\" not in entry
        assert Path(entry).is_absolute()
        assert Path(entry) == pkg.cache_file_path / "lib" / "index.py"

    def test_repeated_calls_identical(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.install()
        assert pkg.get_entry_path() == pkg.get_entry_path()

    def test_missing_metadata_returns_none(self, tmp_path: Path, registry_factory) -> None:
        pkg = _namespaced(tmp_path, registry_factory(manifest=False))
        pkg.install()
        assert pkg.get_entry_path() is None

    def test_missing_main_returns_none(self, tmp_path: Path, registry_factory) -> None:
        pkg = _namespaced(tmp_path, registry_factory(main=None))
        pkg.install()
        assert pkg.get_entry_path() is None

    def test_malformed_metadata_returns_none(self, tmp_path: Path, fake_registry) -> None:
        pkg = _namespaced(tmp_path, fake_registry)
        pkg.install()
        (pkg.cache_file_path / "package.json").write_text("{not json", encoding="utf-8")
        assert pkg.get_entry_path() is None

    def test_nearest_ancestor_manifest(self, tmp_path: Path, module_writer) -> None:
        root = module_writer(tmp_path / "mod", main="cli.py")
        nested = root / "sub" / "dir"
        nested.mkdir(parents=True)
        pkg = Package(PackageSpec(package_name="x", target_path=str(nested)), None)  # type: ignore[arg-type]
        assert Path(pkg.get_entry_path()) == (root / "cli.py").resolve()

    def test_direct_target_path(self, tmp_path: Path, module_writer) -> None:
        root = module_writer(tmp_path / "local")
        (root / "package.json").write_text(json.dumps({"main": "lib/index.py"}), encoding="utf-8")
        pkg = Package(PackageSpec(package_name="x", target_path=str(root)), None)  # type: ignore[arg-type]
        assert Path(pkg.get_entry_path()) == (root / "lib" / "index.py").resolve()

    def test_missing_root_returns_none(self, tmp_path: Path) -> None:
        pkg = Package(PackageSpec(package_name="x", target_path=str(tmp_path / "gone")), None)  # type: ignore[arg-type]
        assert pkg.get_entry_path() is None
