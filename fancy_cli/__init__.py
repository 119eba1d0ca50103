"""fancy-cli - 命令按需安装与隔离执行"""

__version__ = "1.0.0"
