"""注册表地址工具"""

from __future__ import annotations

from urllib.parse import urlsplit

from fancy_cli.core.exceptions import ValidationError

REGISTRY_SCHEMES = ("http", "https")


def require_http_url(url: str, *, what: str = "URL") -> str:
    """只放行带主机名的 http(s) 地址，原样返回 url

    注册表文档里的 tarball 地址同样经过这里，file:// 之类的地址
    会在发起请求前被拒绝。
    """
    parts = urlsplit(url)
    if parts.scheme.lower() not in REGISTRY_SCHEMES:
        raise ValidationError(f"{what} 必须是 http/https 地址，实际协议为 '{parts.scheme}': {url}")
    if not parts.netloc:
        raise ValidationError(f"{what} 缺少主机名: {url}")
    return url


def url_join(base: str, *parts: str) -> str:
    """拼接 URL 路径段，去除多余的斜杠"""
    segments = [base.rstrip("/")]
    segments.extend(p.strip("/") for p in parts if p)
    return "/".join(segments)
