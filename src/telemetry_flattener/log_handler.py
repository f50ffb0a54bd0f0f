"""Bridge from stdlib `logging` to the `TelemetryLogger`.

`TelemetryLogHandler` forwards every `LogRecord` it receives to
`TelemetryLogger.log`. The record's module and function name become the
event name, `exc_info` becomes telemetry exception data, and structured
properties may be attached per call:

    logger.info("order placed", extra={"telemetry_properties": order})

where `order` is any object (flattened) or a flat `Dict[str, str]`.
"""
from __future__ import annotations

import logging
from typing import Optional

from .config import Settings, get_settings, resolve_instrumentation_key
from .models.telemetry import LogLevel
from .telemetry_logger import TelemetryLogger, create_telemetry_logger

__all__ = ["TELEMETRY_PROPERTIES_ATTR", "TelemetryLogHandler", "add_telemetry_handler"]

TELEMETRY_PROPERTIES_ATTR = "telemetry_properties"
_IGNORED_LOGGERS = (__name__.split(".", 1)[0], "opentelemetry")


class TelemetryLogHandler(logging.Handler):
    def __init__(self, telemetry: TelemetryLogger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.telemetry = telemetry

    def emit(self, record: logging.LogRecord) -> None:
        # records from this package or the OTel SDK would re-enter the handler
        if record.name.split(".", 1)[0] in _IGNORED_LOGGERS:
            return
        try:
            level = LogLevel.from_stdlib(record.levelno)
            if not self.telemetry.is_enabled(level):
                return
            exc = record.exc_info[1] if record.exc_info else None
            self.telemetry.log(
                level,
                record.getMessage(),
                exc=exc,
                event_id=0,
                event_name=f"{record.module}:{record.funcName}",
                properties=getattr(record, TELEMETRY_PROPERTIES_ATTR, None),
            )
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.telemetry.flush()

    def close(self) -> None:
        try:
            self.telemetry.flush()
        finally:
            super().close()


def add_telemetry_handler(
    logger_name: Optional[str] = None,
    settings: Optional[Settings] = None,
    instrumentation_key: Optional[str] = None,
    *,
    telemetry: Optional[TelemetryLogger] = None,
) -> Optional[TelemetryLogHandler]:
    """Attach a `TelemetryLogHandler` to `logger_name` (root logger by default).

    With an explicit ``instrumentation_key`` or ``telemetry`` instance the
    handler is always attached. Otherwise the key is looked up in settings
    and the call is a no-op returning None when none is configured.
    """
    if telemetry is None:
        settings = settings or get_settings()
        key = instrumentation_key or resolve_instrumentation_key(settings)
        if not key:
            logging.getLogger(__name__).debug("No instrumentation key configured; telemetry handler not added")
            return None
        telemetry = create_telemetry_logger(settings, key)
    handler = TelemetryLogHandler(telemetry)
    logging.getLogger(logger_name).addHandler(handler)
    return handler
