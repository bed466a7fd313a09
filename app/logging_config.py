"""
Logging Configuration Module

Request threads and the publish stage workers log through one queue. A single
listener thread drains it into stdout and, optionally, a rotating log file,
so lines from concurrent publishes never interleave mid-record.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from queue import Queue
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Library loggers capped at WARNING unless debugging; HTTP clients at CRITICAL
NOISY_LOGGERS = {
    "httpx": logging.CRITICAL,
    "httpcore": logging.CRITICAL,
    "urllib3": logging.WARNING,
    "openai": logging.WARNING,
    "langchain_core": logging.WARNING,
    "langchain_deepseek": logging.WARNING,
    "langchain_openai": logging.WARNING,
    "langchain_ollama": logging.WARNING,
    "MARKDOWN": logging.WARNING,
    "werkzeug": logging.WARNING,
}


class ThreadSafeLoggingConfig:
    """Owns the root logger's queue handler and its listener thread."""

    def __init__(self):
        self._listener: Optional[logging.handlers.QueueListener] = None
        self._queue_handler: Optional[logging.handlers.QueueHandler] = None

    def setup_logging(self, debug: bool = False, log_file: Optional[Union[str, Path]] = None) -> None:
        """
        Route all logging through a queue.

        Args:
            debug: Log at DEBUG and leave library loggers alone
            log_file: Also write to this file, rotated at LOG_FILE_MAX_BYTES
        """
        self.stop()

        formatter = logging.Formatter(LOG_FORMAT)
        sinks: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if log_file:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            sinks.append(logging.handlers.RotatingFileHandler(
                path,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8"
            ))
        for sink in sinks:
            sink.setFormatter(formatter)

        log_queue: Queue = Queue()
        self._queue_handler = logging.handlers.QueueHandler(log_queue)
        self._listener = logging.handlers.QueueListener(log_queue, *sinks, respect_handler_level=True)
        self._listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(self._queue_handler)
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        if not debug:
            for name, level in NOISY_LOGGERS.items():
                logging.getLogger(name).setLevel(level)

    def stop(self) -> None:
        """Flush pending records and detach from the root logger."""
        if self._listener:
            self._listener.stop()
            for sink in self._listener.handlers:
                sink.close()
            self._listener = None

        if self._queue_handler:
            logging.getLogger().removeHandler(self._queue_handler)
            self._queue_handler = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False, log_file: Optional[Union[str, Path]] = None) -> None:
    """Setup thread-safe logging configuration."""
    logging_config.setup_logging(debug, log_file)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()
