"""统一异常体系

所有业务异常继承 FancyCliError，CLI 层据此输出单行友好提示，
debug 模式下额外输出完整堆栈。
"""

from __future__ import annotations


class FancyCliError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class VersionError(FancyCliError):
    """运行时版本过低"""

    code = "VERSION_TOO_OLD"

    def __init__(self, current: str, minimum: str) -> None:
        super().__init__(f"Python 版本过低: {current}，至少需要 {minimum} 版本以上")
        self.current = current
        self.minimum = minimum


class ConfigError(FancyCliError):
    """配置缺失或内容无效（如命令未映射到任何包）"""

    code = "CONFIG_ERROR"


class InstallError(FancyCliError):
    """依赖包版本解析或拉取失败"""

    code = "FETCH_FAILED"


class EntryResolutionError(FancyCliError):
    """包元数据缺失或格式错误，无法确定入口文件"""

    code = "ENTRY_RESOLUTION"


class SpawnError(FancyCliError):
    """子进程创建失败"""

    code = "SPAWN_FAILED"


class ValidationError(FancyCliError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []
