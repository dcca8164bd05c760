import os
import logging
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

load_dotenv()

LOG_DIR = os.getenv('LOG_DIR', 'logs')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def setup_logger(name: str, log_file: str) -> logging.Logger:
    """Return a logger writing to ``LOG_DIR/log_file`` and to the console.

    Handlers are attached only once per logger name, so modules can call this
    at import time without duplicating output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    if logger.handlers:
        return logger

    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, log_file),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8',
        )
        file_handler.setFormatter(_formatter)
        logger.addHandler(file_handler)
    except OSError as ex:
        # Read-only filesystems still get console output
        logging.getLogger(__name__).warning(f"Could not open log file {log_file}: {ex}")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_formatter)
    logger.addHandler(console_handler)

    logger.propagate = False
    return logger
