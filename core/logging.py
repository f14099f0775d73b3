# core/logging.py
import logging
from logging.handlers import RotatingFileHandler
from .config import get_settings


def setup_logging():
    """
    控制台输出 + 可选的滚动日志文件（settings.LOG_FILE 为空时不写文件）。
    重复调用是安全的：root logger 上已有的 handlers 会先被清理。
    """
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.setLevel(level)

    # 清理预先存在的 handlers（避免重复）
    if root.handlers:
        for h in list(root.handlers):
            root.removeHandler(h)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    if settings.LOG_FILE:
        fh = RotatingFileHandler(settings.LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    # 降低某些库的日志噪音
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
