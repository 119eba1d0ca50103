"""集中配置管理

启动时构造一次 Config，显式传入 Dispatcher / Package，
核心模块内部不读取任何环境变量。
支持从 YAML 文件加载 + 环境变量覆盖 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from fancy_cli.core.exceptions import ConfigError
from fancy_cli.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_HOME_DIR = ".fancy-cli"
DEFAULT_CACHE_DIR = "dependencies"
DEFAULT_REGISTRY = "https://registry.npmmirror.com"
ORIGINAL_REGISTRY = "https://registry.npmjs.org"
LOWEST_PYTHON_VERSION = "3.9.0"

DEFAULT_COMMANDS: dict[str, str] = {
    "init": "@fancy-cli/init",
}

ENV_PREFIX = "FANCY_CLI_"


@dataclass
class Config:
    """全局配置"""

    # 目录
    home_path: str = ""
    target_path: str = ""        # 非空时直接执行本地模块，跳过缓存
    cache_dir_name: str = DEFAULT_CACHE_DIR

    # 注册表
    registry: str = DEFAULT_REGISTRY
    registry_timeout: float = 5.0

    # 运行时
    lowest_python_version: str = LOWEST_PYTHON_VERSION
    commands: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COMMANDS))

    # 日志
    debug: bool = False
    log_level: str = "INFO"

    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.home_path:
            self.home_path = str(Path.home() / DEFAULT_HOME_DIR)

    @property
    def dependencies_dir(self) -> Path:
        """缓存根目录: <home>/dependencies"""
        return Path(self.home_path) / self.cache_dir_name

    @property
    def store_dir(self) -> Path:
        """版本化缓存目录: <home>/dependencies/node_modules"""
        return self.dependencies_dir / "node_modules"

    @classmethod
    def from_file(cls, path: str | Path, **overrides: object) -> Config:
        """从 YAML 文件加载配置，不存在则使用默认值

        Raises:
            ConfigError: 文件格式错误、过大或无法读取
        """
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"配置文件无效: {path} - {e}") from e
        data.update({k: v for k, v in overrides.items() if v not in (None, "")})
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        if "commands" in matched:
            merged = dict(DEFAULT_COMMANDS)
            merged.update(matched["commands"] or {})
            matched["commands"] = merged
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """按 环境变量 > <home>/config.yml > 默认值 的优先级构造配置

        识别的环境变量:
            FANCY_CLI_HOME_PATH    缓存主目录
            FANCY_CLI_TARGET_PATH  本地调试模块路径
            FANCY_CLI_REGISTRY     注册表地址
            FANCY_CLI_LOG_LEVEL    日志级别
            FANCY_CLI_CONFIG       配置文件路径
        """
        env = os.environ if environ is None else environ
        home_path = env.get(f"{ENV_PREFIX}HOME_PATH", "") or str(Path.home() / DEFAULT_HOME_DIR)
        config_path = env.get(f"{ENV_PREFIX}CONFIG", "") or str(Path(home_path) / "config.yml")
        log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL", "")
        cfg = cls.from_file(
            config_path,
            home_path=home_path,
            target_path=env.get(f"{ENV_PREFIX}TARGET_PATH", ""),
            registry=env.get(f"{ENV_PREFIX}REGISTRY", ""),
            log_level=log_level,
        )
        if log_level.upper() in ("DEBUG", "VERBOSE"):
            cfg.debug = True
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)
