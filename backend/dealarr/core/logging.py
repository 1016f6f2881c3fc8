"""Logging configuration."""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict

# Type for exception info tuple (from sys.exc_info())
ExcInfo = tuple[type[BaseException] | None, BaseException | None, TracebackType | None]

# Type for traceback frame information
TracebackFrame = dict[str, str | int | None]

# Type for structured exception details
ExceptionDetails = dict[
    str,
    None | str | list[TracebackFrame],
]

APP_LOG_FILE = "dealarr.json.log"
HTTP_LOG_FILE = "dealarr.http.json.log"
HTTP_LOGGERS = ("httpx", "httpcore")


def format_exception_for_json(
    exc_info: ExcInfo | None,
) -> ExceptionDetails:
    """Format exception information for JSON logging.

    Extracts exception details into a structured format that's easier to read
    in JSON logs than a raw traceback string.

    Args:
        exc_info: Exception info tuple from sys.exc_info() or None

    Returns:
        Dictionary with exception details:
        - exception_type: Exception class name (str or None)
        - exception_message: Exception message (str or None)
        - exception_module: Module where exception occurred (str or None)
        - traceback_frames: List of traceback frames
        - traceback_text: Full traceback as text (for reference)
    """
    if exc_info is None or exc_info == (None, None, None):
        return {}

    exc_type, exc_value, exc_tb = exc_info

    exception_details: ExceptionDetails = {
        "exception_type": exc_type.__name__ if exc_type else None,
        "exception_message": str(exc_value) if exc_value else None,
        "exception_module": exc_type.__module__ if exc_type else None,
    }

    if exc_tb:
        tb_frames: list[TracebackFrame] = []
        for frame_summary in traceback.extract_tb(exc_tb):
            frame_info: TracebackFrame = {
                "filename": frame_summary.filename,
                "lineno": frame_summary.lineno,
                "function": frame_summary.name,
            }
            if frame_summary.line:
                frame_info["source_line"] = frame_summary.line.strip()
            tb_frames.append(frame_info)

        exception_details["traceback_frames"] = tb_frames
        exception_details["traceback_text"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )

    return exception_details


def exception_processor(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Turn ``exc_info`` into structured exception fields.

    Args:
        logger: Logger instance (structlog BoundLogger)
        method_name: Logging method name
        event_dict: Event dictionary from structlog

    Returns:
        Modified event dictionary with structured exception information
    """
    exc_info = event_dict.pop("exc_info", None)  # type: ignore[assignment]

    # logger.exception() and exc_info=True both mean "the exception being handled"
    if exc_info is True:
        exc_info = sys.exc_info()  # type: ignore[assignment]
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    if exc_info and exc_info != (None, None, None):
        exception_details = format_exception_for_json(exc_info)  # type: ignore[arg-type]
        if exception_details:
            event_dict["exception"] = exception_details

            # Readable summary for quick scanning
            exc_type = exception_details.get("exception_type")
            exc_msg = exception_details.get("exception_message")
            if exc_type and exc_msg:
                event_dict["exception_summary"] = f"{exc_type}: {exc_msg}"

    return event_dict


class JSONFormatter(logging.Formatter):
    """JSON formatter for standard library logging (used for HTTP client logs)."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            log_data["exception"] = format_exception_for_json((exc_type, exc_value, exc_tb))

        return json.dumps(log_data, ensure_ascii=False)


def _close_handlers(logger: logging.Logger) -> None:
    """Close and drop all handlers of a logger.

    This prevents ResourceWarnings about unclosed file handles when logging
    is configured more than once (tests, repeated CLI invocations).
    """
    for handler in logger.handlers[:]:
        try:
            handler.close()
        except OSError:
            pass
    logger.handlers.clear()


def setup_logging(debug: bool = False, logs_dir: Path | None = None, level: str | None = None) -> None:
    """Setup structured logging with structlog.

    Configures:
    - Application logs: stderr (pretty in debug, JSON otherwise), or a JSON
      file when ``logs_dir`` is given
    - HTTP client logs (httpx/httpcore): separate JSON file, WARNING level

    The report itself goes to stdout, so console logs use stderr.

    Args:
        debug: Enable debug logging with the colored console renderer
        logs_dir: Optional directory for JSON log files
        level: Explicit level name; overrides the level implied by ``debug``
    """
    if level is not None:
        log_level = logging.getLevelName(level.upper())
    else:
        log_level = logging.DEBUG if debug else logging.WARNING

    app_handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(log_level)

    app_file_handler = None
    http_file_handler = None
    if logs_dir:
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)

            # When file logging is enabled, structured logs go ONLY to file
            app_file_handler = logging.FileHandler(logs_dir / APP_LOG_FILE, encoding="utf-8")
            app_file_handler.setLevel(log_level)
            app_handlers.append(app_file_handler)

            http_file_handler = logging.FileHandler(logs_dir / HTTP_LOG_FILE, encoding="utf-8")
            http_file_handler.setLevel(logging.DEBUG)
            http_file_handler.setFormatter(JSONFormatter())
        except OSError as e:
            # If file logging fails, log to stderr but don't crash
            sys.stderr.write(f"Warning: Failed to setup file logging: {e}\n")
            app_file_handler = None
            http_file_handler = None
            app_handlers.clear()

    if not app_file_handler:
        app_handlers.append(stderr_handler)

    root_logger = logging.getLogger()
    _close_handlers(root_logger)
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=app_handlers,
        force=True,
    )

    # httpx logs every request at INFO; keep only warnings and route them to
    # their own file when file logging is on.
    for name in HTTP_LOGGERS:
        http_logger = logging.getLogger(name)
        _close_handlers(http_logger)
        http_logger.setLevel(logging.WARNING)
        if http_file_handler:
            http_logger.propagate = False
            http_logger.addHandler(http_file_handler)
        else:
            http_logger.propagate = True

    processors = [
        structlog.contextvars.merge_contextvars,  # Merge bound title/store context
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        exception_processor,
        structlog.processors.format_exc_info,
    ]

    # File logs are always JSON; console is pretty only in debug mode
    if debug and not app_file_handler:
        final_processors = processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        final_processors = processors + [structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=final_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger("dealarr.logging")
    logger.debug(
        "Logging configured",
        level=logging.getLevelName(log_level),
        debug=debug,
        app_file_logging=app_file_handler is not None,
        app_log_file=str(logs_dir / APP_LOG_FILE) if app_file_handler else None,
        http_log_file=str(logs_dir / HTTP_LOG_FILE) if http_file_handler else None,
    )
