"""Logging configuration for the NetPilot backend.

Environment Variables:
    NETPILOT_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    NETPILOT_LOG_FILE: Optional path to a rotating log file
    NETPILOT_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    NETPILOT_LOG_BACKUPS: Number of backup files to keep (default: 5)
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

main_logger = logging.getLogger("netpilot")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the netpilot logger once at startup.

    Console output always respects ``level``; the optional file handler
    captures DEBUG and above.
    """
    if getattr(main_logger, "_netpilot_configured", False):
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-28s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    main_logger.setLevel(logging.DEBUG)  # handlers filter
    main_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        max_size_mb = int(os.environ.get("NETPILOT_LOG_MAX_SIZE", "10"))
        backup_count = int(os.environ.get("NETPILOT_LOG_BACKUPS", "5"))

        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(main_format)
        main_logger.addHandler(file_handler)
    else:
        main_logger.setLevel(log_level)

    main_logger._netpilot_configured = True
    main_logger.info(
        f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file or 'none'}"
    )
