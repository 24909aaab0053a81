#!/usr/bin/env python3
"""
Optional append-only log file for a run.

One ``FileHandler`` receives both the console messages of the package logger
and the per-clone records, so both end up in the same file in order.
"""

import logging
from pathlib import Path
from typing import Optional


PACKAGE_LOGGER = 'gitlab_batch_clone'
RECORD_LOGGER = 'gitlab_batch_clone.records'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class RunLog:
    """Attaches a log file to the package loggers for the duration of a run."""

    def __init__(self, log_file: Optional[str]):
        self.log_file = Path(log_file).expanduser().resolve() if log_file else None
        self.handler: Optional[logging.FileHandler] = None

    @property
    def enabled(self) -> bool:
        return self.log_file is not None

    def open(self) -> None:
        if not self.enabled or self.handler is not None:
            return
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self.handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        self.handler.setLevel(logging.DEBUG)
        self.handler.setFormatter(logging.Formatter(LOG_FORMAT))

        logging.getLogger(PACKAGE_LOGGER).addHandler(self.handler)
        record_logger = logging.getLogger(RECORD_LOGGER)
        record_logger.setLevel(logging.INFO)
        record_logger.propagate = False
        record_logger.addHandler(self.handler)

    def close(self) -> None:
        if self.handler is None:
            return
        logging.getLogger(PACKAGE_LOGGER).removeHandler(self.handler)
        logging.getLogger(RECORD_LOGGER).removeHandler(self.handler)
        self.handler.close()
        self.handler = None

    def __enter__(self) -> 'RunLog':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
