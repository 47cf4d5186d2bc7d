"""
Logging setup and management for Failsim.

Every run writes a timestamped log file and mirrors the same timeline to
the console, so retries, workload outcomes and failover steps can be
reconstructed afterwards.
"""

import os
import logging
import datetime
import glob
from pathlib import Path

from colorama import Fore, Style

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s] %(message)s"

LEVEL_COLORS = {
    logging.DEBUG: Style.DIM,
    logging.INFO: Fore.WHITE,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class ColorFormatter(logging.Formatter):
    """Formatter that colors the level name of console records."""

    def __init__(self, fmt: str = LOG_FORMAT, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_color:
            return message
        color = LEVEL_COLORS.get(record.levelno, '')
        return f"{color}{message}{Style.RESET_ALL}"


def setup_logging(log_folder: str = 'logs', max_log_files: int = 5,
                  console: bool = True, use_color: bool = True) -> Path:
    """
    Set up logging configuration.

    Args:
        log_folder: Directory to store log files
        max_log_files: Maximum number of log files to keep
        console: Also write the timeline to stderr
        use_color: Color console output

    Returns:
        Path to the current log file
    """
    logs_folder = Path(log_folder)
    os.makedirs(logs_folder, exist_ok=True)

    # Generate unique log file name
    current_time = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    log_file = logs_folder / f'failsim-{current_time}.log'

    # Clean up old log files
    cleanup_old_logs(logs_folder, max_log_files)

    log_handler = logging.FileHandler(log_file, encoding='utf-8')
    log_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger()
    logger.setLevel(logging.INFO)
    logger.addHandler(log_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(ColorFormatter(use_color=use_color))
        logger.addHandler(console_handler)

    return log_file


def cleanup_old_logs(logs_folder: Path, max_files: int):
    """
    Remove old log files, keeping only the most recent ones.

    The file about to be created counts toward the limit.
    """
    existing_logs = sorted(glob.glob(str(logs_folder / 'failsim-*.log')))
    while len(existing_logs) >= max_files:
        try:
            os.remove(existing_logs.pop(0))
        except OSError as e:
            logging.warning(f"Could not remove old log file: {e}")
