"""
Logging configuration and utilities.

Console output is plain text on stderr. The optional log file is rendered as
JSON lines through structlog and rotated every midnight, keeping
``retention_days`` files.
"""

import logging
import logging.handlers
import sys
import time
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime, timedelta

import schedule
import structlog


_cleanup_thread: Optional[threading.Thread] = None

_SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    retention_days: int = 7,
    json_format: bool = True
) -> None:
    """
    Set up structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        retention_days: Number of days to retain log files
        json_format: Render the file log as JSON lines
    """
    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + _SHARED_PROCESSORS
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    # stdout carries command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_path,
            when='midnight',
            interval=1,
            backupCount=retention_days,
            encoding='utf-8'
        )
        file_handler.suffix = "%Y-%m-%d"

        if json_format:
            file_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(ensure_ascii=False),
                foreign_pre_chain=_SHARED_PROCESSORS,
            ))
        else:
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
            ))
        root_logger.addHandler(file_handler)

        _start_log_cleanup_scheduler(log_path.parent, retention_days)

    # requests/urllib3 are chatty at DEBUG
    for noisy in ("urllib3", "requests", "werkzeug"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Standard library logger; structured rendering happens in the handlers
    """
    return logging.getLogger(name)


def _start_log_cleanup_scheduler(logs_dir: Path, retention_days: int) -> None:
    """Start the daily log cleanup job (once per process)."""
    global _cleanup_thread

    if _cleanup_thread is not None and _cleanup_thread.is_alive():
        return

    def cleanup_job():
        try:
            cleanup_old_logs(logs_dir, retention_days)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Log cleanup failed: {e}")

    schedule.every().day.at("02:00").do(cleanup_job)

    def run_scheduler():
        while True:
            schedule.run_pending()
            time.sleep(60)

    _cleanup_thread = threading.Thread(target=run_scheduler, name="LogCleanup", daemon=True)
    _cleanup_thread.start()


def cleanup_old_logs(logs_dir: Path, retention_days: int = 7) -> int:
    """
    Delete log files older than the retention period.

    Args:
        logs_dir: Log directory
        retention_days: Days to keep

    Returns:
        Number of files removed
    """
    logs_dir = Path(logs_dir)
    if not logs_dir.exists():
        return 0

    cleaned_count = 0
    cutoff_date = datetime.now() - timedelta(days=retention_days)

    for log_file in logs_dir.glob("*.log*"):
        if not log_file.is_file():
            continue
        file_mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
        if file_mtime < cutoff_date:
            log_file.unlink()
            cleaned_count += 1

    if cleaned_count > 0:
        logging.getLogger(__name__).info(f"Removed {cleaned_count} expired log files from {logs_dir}")

    return cleaned_count

