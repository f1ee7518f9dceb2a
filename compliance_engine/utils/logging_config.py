# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Logging configuration for the compliance engine."""

import logging

from .correlation import get_run_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(run_id)s] %(message)s"


class RunIdFilter(logging.Filter):
    """Stamp every record with the current evaluation run ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "run_id", None):
            record.run_id = get_run_id() or "-"
        return True


def configure_logging(level: str | int = "INFO", logger_name: str = "compliance_engine") -> logging.Logger:
    """
    Configure logging for the package logger.

    Installs a stream handler with the run ID format on the package logger
    and stops propagation to the root logger. Calling it again only updates
    the level.

    Args:
        level: Logging level name or number
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not any(getattr(h, "_compliance_engine_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RunIdFilter())
        handler._compliance_engine_handler = True
        logger.addHandler(handler)
        logger.propagate = False

    return logger
