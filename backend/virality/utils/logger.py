"""Celery worker 日志"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from virality.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
WORKER_LOG_FILE = "worker.log"


def get_logger(name: str) -> logging.Logger:
    """worker 进程不经过 main.setup_logging，这里按模块挂 stdout + worker.log"""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    os.makedirs(settings.log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(settings.log_dir, WORKER_LOG_FILE),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # 已有自己的 handler，不再冒泡到根 logger，避免 API 进程中重复输出
    logger.propagate = False
    return logger
