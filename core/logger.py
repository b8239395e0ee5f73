"""
Sector Review 日志配置模块。

- logs/system.log: 请求、webhook、降级路径 (INFO+)
- logs/error.log: 上游失败与未处理异常 (ERROR+)
- console: WARNING+，uvicorn 自己的访问日志不受影响

SECTOR_REVIEW_LOG_LEVEL 可覆盖文件日志级别 (DEBUG / INFO / WARNING ...)。
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.paths import LOGS_DIR

ROOT_LOGGER_NAME = "sector_review"

MAX_BYTES = 5 * 1024 * 1024  # 5MB
BACKUP_COUNT = 3

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# uvicorn 的错误日志也写入 error.log
UVICORN_LOGGERS = ("uvicorn.error",)


def _level_from_env(default: int) -> int:
    raw = os.getenv("SECTOR_REVIEW_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    console_level: int = logging.WARNING,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    初始化日志系统，可重复调用（会替换已有 handler）。

    Args:
        log_level: 文件日志级别，环境变量优先
        console_level: 控制台日志级别
        logs_dir: 日志目录，默认 <data_dir>/logs
    """
    target = logs_dir or LOGS_DIR
    target.mkdir(parents=True, exist_ok=True)

    file_format = logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    system_handler = _rotating_handler(target / "system.log", _level_from_env(log_level), file_format)
    error_handler = _rotating_handler(target / "error.log", logging.ERROR, file_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    for handler in (system_handler, error_handler, console_handler):
        logger.addHandler(handler)

    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [h for h in server_logger.handlers if not isinstance(h, RotatingFileHandler)]
        server_logger.addHandler(error_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """get_logger("hevy") -> sector_review.hevy"""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
