"""
Logging configuration for the sound board backend
Console plus a size-rotated file under LOG_DIR
"""
import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Floor levels for third-party loggers that flood DEBUG/INFO
QUIET_LOGGERS = {
    "pymongo": logging.INFO,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
    "urllib3": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def resolve_level(log_level) -> int:
    """Accept an int or a level name such as "debug"; unknown names mean INFO"""
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_dir="logs", log_file="soundboard.log", log_level=logging.INFO, max_bytes=10 * 1024 * 1024, backup_count=5):
    """
    Route every logger to the console and a rotating file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_dir: Directory for the log file, created if missing
        log_file: Log file name inside log_dir
        log_level: Level as an int or a name
        max_bytes: Size at which the file rolls over
        backup_count: Rolled files kept next to the live one

    Returns:
        str: path of the live log file
    """
    level = resolve_level(log_level)

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file_path = log_path / log_file

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))

    logging.info(f"Logging to {log_file_path} at {logging.getLevelName(level)}")
    return str(log_file_path)
