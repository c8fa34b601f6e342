"""日志工具模块"""

import logging
import sys
from pathlib import Path
from typing import Optional
from tqdm import tqdm

class TqdmHandler(logging.Handler):
    """通过 tqdm.write 输出日志，不打断进度条"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)

class Logger:
    """日志管理器"""
    _instance = None
    _logger: Optional[logging.Logger] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._logger = logging.getLogger("MangaPdf")
            cls._instance._logger.setLevel(logging.INFO)
            cls._instance._logger.propagate = False

            cls._instance.formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            console_handler = TqdmHandler()
            console_handler.setFormatter(cls._instance.formatter)
            cls._instance._logger.addHandler(console_handler)
        return cls._instance

    @property
    def logger(self) -> logging.Logger:
        """获取日志器"""
        return self._logger

    def set_level(self, level: int) -> None:
        """设置日志级别"""
        self._logger.setLevel(level)

    def add_file_handler(self, log_path: Path) -> None:
        """添加文件处理器

        Args:
            log_path: 日志文件路径
        """
        if log_path:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
            file_handler.setFormatter(self.formatter)
            self._logger.addHandler(file_handler)

# 创建全局日志器实例
logger = Logger().logger
