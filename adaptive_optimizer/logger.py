"""
Structured JSON logging for the adaptive optimizer.

Every optimizer session gets its own session id so that capability probes,
tier adjustments and observer failures from one session can be correlated
in the JSON log.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


class JSONFormatter(logging.Formatter):
    """Formatter that renders each record as one JSON object per line."""

    def __init__(self, session_id: str):
        super().__init__()
        self.session_id = session_id

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": self.session_id,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "thread": record.threadName,
        }

        if record.exc_info:
            exc_info = (
                record.exc_info if isinstance(record.exc_info, tuple) else sys.exc_info()
            )
            if exc_info and exc_info[0] is not None:
                log_data["exception"] = {
                    "type": exc_info[0].__name__,
                    "message": str(exc_info[1]),
                    "traceback": self.formatException(exc_info),
                }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ProductionLogger:
    """
    Session-scoped structured logger.

    JSON lines go to a rotating file under ``log_dir``; a short human-readable
    line goes to the console. Keyword arguments passed to the level methods
    become top-level JSON fields.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        log_level: str = "INFO",
        log_dir: Optional[Union[str, Path]] = "logs",
        console: bool = True,
    ):
        """
        Args:
            session_id: Identifier for this optimizer session. Generated if not provided.
            log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for the rotating JSON log. ``None`` disables the file.
            console: Whether to also log to stderr.
        """
        self.session_id = session_id or self._generate_session_id()
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self._setup_logging(console)

    def _generate_session_id(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}-{str(uuid.uuid4())[:8]}"

    def _setup_logging(self, console: bool) -> None:
        self.logger = logging.getLogger(f"adaptive_optimizer.{self.session_id}")
        self.logger.setLevel(self.log_level)

        # Replace handlers left by an earlier logger for the same session
        for handler in self.logger.handlers[:]:
            if getattr(handler, "_optimizer_handler", False):
                handler.close()
                self.logger.removeHandler(handler)

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            # 5MB per file, keep 5
            json_handler = RotatingFileHandler(
                self.log_dir / "optimizer.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
            )
            json_handler.setFormatter(JSONFormatter(self.session_id))
            json_handler.setLevel(self.log_level)
            json_handler._optimizer_handler = True
            self.logger.addHandler(json_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] [optimizer] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            console_handler.setLevel(self.log_level)
            console_handler._optimizer_handler = True
            self.logger.addHandler(console_handler)

        self.logger.propagate = False

    def log_event(self, level: str, message: str, exc_info=None, **kwargs) -> None:
        """
        Log a structured event.

        Args:
            level: Log level name
            message: Human-readable message
            **kwargs: Structured fields added to the JSON record
        """
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=getattr(logging, level.upper()),
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=exc_info,
        )
        record.extra_data = kwargs
        self.logger.handle(record)

    def debug(self, message: str, **kwargs) -> None:
        self.log_event("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log_event("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log_event("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log_event("ERROR", message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log at ERROR with the exception currently being handled."""
        self.log_event("ERROR", message, exc_info=sys.exc_info(), **kwargs)

    def get_session_id(self) -> str:
        return self.session_id

    def close(self) -> None:
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)


def get_logger(
    session_id: Optional[str] = None,
    log_level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = "logs",
    console: bool = True,
) -> ProductionLogger:
    """Factory for a configured session logger."""
    return ProductionLogger(
        session_id=session_id, log_level=log_level, log_dir=log_dir, console=console
    )
