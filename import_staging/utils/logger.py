# import_staging/utils/logger.py
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
import os

LOG_FILENAME = 'import.log'
LOG_BACKUP_COUNT = 7

def setup_logger(log_dir: str, level: str = 'INFO', debug: bool = False,
                 filename: str = LOG_FILENAME, backup_count: int = LOG_BACKUP_COUNT):
    """
    配置全局日志记录器，控制台和按天轮转的文件各一个 handler
    """
    if debug:
        level = 'DEBUG'

    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - [%(levelname)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 导入过程可能跨越多天，按天轮转
    file_handler = TimedRotatingFileHandler(
        os.path.join(log_dir, filename),
        when='midnight',
        interval=1,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info(f"日志记录器已设置，级别: {level}，日志文件: {os.path.join(log_dir, filename)}")
