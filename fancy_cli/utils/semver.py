"""语义化版本解析与比较

职责:
- 解析 MAJOR.MINOR.PATCH[-prerelease][+build] 版本号
- 按 semver 规则比较大小（预发布版本低于同号正式版本）
- ^ 兼容范围判断，用于挑选可升级版本
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable

from fancy_cli.core.exceptions import ValidationError

SEMVER_PATTERN_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# 宽松模式：允许省略 minor / patch，如 "3.9" 或 "v12"
LOOSE_PATTERN_RE = re.compile(
    r"^v?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        prerelease = f"-{'.'.join(self.prerelease)}" if self.prerelease else ""
        build = f"+{'.'.join(self.build)}" if self.build else ""
        return f"{base}{prerelease}{build}"

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _prerelease_key(self) -> tuple:
        # 数字标识符优先级低于字母标识符
        parts: list[tuple[int, int | str]] = []
        for ident in self.prerelease:
            if ident.isdigit():
                parts.append((0, int(ident)))
            else:
                parts.append((1, ident))
        return tuple(parts)

    def _cmp_key(self) -> tuple:
        # 无预发布标识的版本高于任何同号预发布版本；build 不参与比较
        if not self.prerelease:
            return (self.core, 1, ())
        return (self.core, 0, self._prerelease_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._cmp_key() == other._cmp_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._cmp_key() < other._cmp_key()

    def __hash__(self) -> int:
        return hash(self._cmp_key())


def parse(version: str, *, loose: bool = False) -> SemVer:
    """解析版本字符串，非法时抛 ValidationError"""
    text = (version or "").strip()
    m = (LOOSE_PATTERN_RE if loose else SEMVER_PATTERN_RE).match(text)
    if m is None:
        raise ValidationError(f"非法的版本号: {version!r}")
    prerelease = m.group("prerelease")
    build = m.group("build")
    return SemVer(
        major=int(m.group("major")),
        minor=int(m.group("minor") or 0),
        patch=int(m.group("patch") or 0),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
    )


def is_valid(version: str) -> bool:
    return SEMVER_PATTERN_RE.match((version or "").strip()) is not None


def gte(a: str, b: str, *, loose: bool = False) -> bool:
    return parse(a, loose=loose) >= parse(b, loose=loose)


def satisfies_caret(version: str, base: str) -> bool:
    """判断 version 是否落在 ^base 范围内

    ^1.2.3 := >=1.2.3 <2.0.0
    ^0.2.3 := >=0.2.3 <0.3.0
    ^0.0.3 := >=0.0.3 <0.0.4

    预发布版本仅在 base 本身为同号预发布版本时才参与匹配。
    """
    v = parse(version)
    b = parse(base, loose=True)
    if v < b:
        return False
    if v.prerelease and not (b.prerelease and v.core == b.core):
        return False
    if b.major > 0:
        return v.major == b.major
    if b.minor > 0:
        return v.major == 0 and v.minor == b.minor
    return v.core == b.core


def sort_desc(versions: Iterable[str]) -> list[str]:
    """按版本从新到旧排序，忽略非法版本号"""
    valid = [v for v in versions if is_valid(v)]
    return sorted(valid, key=parse, reverse=True)


def max_version(versions: Iterable[str], *, include_prerelease: bool = False) -> str | None:
    candidates = [
        v for v in sort_desc(versions)
        if include_prerelease or not parse(v).prerelease
    ]
    return candidates[0] if candidates else None
