import logging
import os


# Loggers that are too chatty at DEBUG for normal operation.
NOISY_LOGGERS = ('httpx', 'httpcore', 'uvicorn.access')


def setup_logging(log_file=None, log_level=None):
    """
    Configure the root logger for the API server and scripts

    Args:
        log_file: Append log records to this file as well (optional)
        log_level: Level name; defaults to LOG_LEVEL from config.py, then INFO

    Returns:
        The configured root logger
    """
    if log_level is None:
        try:
            from config import LOG_LEVEL
            log_level = LOG_LEVEL
        except ImportError:
            log_level = os.environ.get('LOG_LEVEL', 'INFO')

    numeric_level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Third-party request logs stay at WARNING unless we are debugging.
    quiet_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return root_logger


def get_logger(name):
    """
    Get a logger with the specified name

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
