"""Level-gated telemetry sink exporting events, exceptions and metrics via OTLP.

The `TelemetryLogger` is the consumer of the flattener: objects handed to any
`log_*` method are projected onto flat string properties (delimiter ``.``,
casing and masking from settings) and merged with the default ``Telemetry.*``
properties. Each telemetry item is then emitted as one OpenTelemetry span
whose attributes are those properties.

Key responsibilities:
- Lazy initialization of a tracer provider with an OTLP/HTTP exporter that
  carries the instrumentation key as a header.
- Level gating (`is_enabled`) before any work is done.
- Default properties: log level, caller member/file/line, summary message,
  exception message, metric name. Caller-supplied keys are never overwritten.
- Forced flush after exceptions and metrics so short-lived processes do not
  lose them.
"""
from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

from .caller import CallerInfo, default_event_name, resolve_caller
from .config import Settings, get_settings, resolve_instrumentation_key
from .flattening import flatten
from .models.telemetry import LogLevel, TelemetryItem, TelemetryKind

logger = logging.getLogger(__name__)

__all__ = [
    "TelemetryException",
    "TelemetryLogger",
    "build_tracer_provider",
    "create_telemetry_logger",
]

PROP_LOG_LEVEL = "Telemetry.LogLevel"
PROP_MEMBER_NAME = "Telemetry.MemberName"
PROP_FILE_PATH = "Telemetry.FilePath"
PROP_LINE_NUMBER = "Telemetry.LineNumber"
PROP_SUMMARY_MESSAGE = "Telemetry.SummaryMessage"
PROP_EXCEPTION_MESSAGE = "Telemetry.ExceptionMessage"
PROP_METRIC = "Telemetry.Metric"
PROP_METRIC_VALUE = "Telemetry.MetricValue"
PROP_EVENT_ID = "Telemetry.EventId"
PROP_EVENT_NAME = "Telemetry.EventName"

INSTRUMENTATION_KEY_HEADER = "x-instrumentation-key"

Properties = Any  # flat Dict[str, str] or any object to flatten


class TelemetryException(Exception):
    """Wraps an error message that was logged without an accompanying exception."""


def build_tracer_provider(settings: Settings, instrumentation_key: str) -> TracerProvider:
    """Create a tracer provider exporting to the configured OTLP endpoint.

    When no endpoint is configured the provider is still returned (spans are
    created and dropped) and a warning is logged.
    """
    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "telemetry.sdk.language": "python",
            "telemetry.auto.version": "manual",
        }
    )
    provider = TracerProvider(resource=resource)
    endpoint = (settings.OTEL_EXPORTER_OTLP_ENDPOINT or "").rstrip("/")
    if not endpoint:
        logger.warning("No OTLP endpoint configured; telemetry spans will not be exported")
        return provider
    if not endpoint.endswith("/v1/traces"):
        endpoint = endpoint + "/v1/traces"
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers={INSTRUMENTATION_KEY_HEADER: instrumentation_key},
        timeout=settings.OTEL_EXPORTER_OTLP_TIMEOUT,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info("Initialized OTLP telemetry exporter for endpoint %s", endpoint)
    return provider


class TelemetryLogger:
    """Telemetry sink gated by a minimum `LogLevel`."""

    def __init__(
        self,
        instrumentation_key: str,
        level: LogLevel,
        mask_sensitive_data: bool = True,
        *,
        settings: Optional[Settings] = None,
        tracer_provider: Optional[TracerProvider] = None,
    ) -> None:
        self.instrumentation_key = instrumentation_key
        self.level = level
        self.mask_sensitive_data = mask_sensitive_data
        self._settings = settings or get_settings()
        self._provider = tracer_provider

    @property
    def tracer_provider(self) -> TracerProvider:
        if self._provider is None:
            self._provider = build_tracer_provider(self._settings, self.instrumentation_key)
        return self._provider

    def is_enabled(self, level: LogLevel) -> bool:
        return level >= self.level and level != LogLevel.NONE

    def flush(self) -> None:
        if self._provider is None:
            return
        try:
            self._provider.force_flush()
        except Exception:  # pragma: no cover
            logger.debug("Error forcing telemetry flush", exc_info=True)

    def shutdown(self) -> None:
        if self._provider is None:
            return
        try:
            self._provider.shutdown()
        except Exception:  # pragma: no cover
            logger.debug("Error during tracer provider shutdown", exc_info=True)

    # ------------------------------------------------------------------ #
    # Public logging surface
    # ------------------------------------------------------------------ #
    def log_verbose(self, message: str, properties: Properties = None) -> None:
        self._event(LogLevel.INFORMATION, message, properties)

    def log_information(self, message: str, properties: Properties = None) -> None:
        self._event(LogLevel.INFORMATION, message, properties)

    def log_debug(self, message: Union[str, BaseException], properties: Properties = None) -> None:
        self._dispatch(LogLevel.DEBUG, message, properties)

    def log_warning(self, message: Union[str, BaseException], properties: Properties = None) -> None:
        self._dispatch(LogLevel.WARNING, message, properties)

    def log_critical(self, message: Union[str, BaseException], properties: Properties = None) -> None:
        self._dispatch(LogLevel.CRITICAL, message, properties)

    def log_error(
        self,
        error: Union[str, BaseException],
        properties: Properties = None,
        *,
        message: Optional[str] = None,
    ) -> None:
        """Log an error message or exception; a bare message becomes a `TelemetryException`."""
        if isinstance(error, BaseException):
            self._exception(LogLevel.ERROR, message or _base_message(error), error, properties)
        else:
            self._exception(LogLevel.ERROR, error, TelemetryException(error), properties)

    def log_metric(self, metric_name: str, metric_value: float, properties: Properties = None) -> None:
        if not self.is_enabled(LogLevel.INFORMATION):
            return
        output = self._default_properties(LogLevel.INFORMATION, self._to_properties(properties))
        if metric_name:
            output.setdefault(PROP_METRIC, metric_name)
        item = TelemetryItem(
            kind=TelemetryKind.METRIC,
            name=metric_name,
            level=LogLevel.INFORMATION,
            properties=output,
            metric_value=float(metric_value),
        )
        self._export(item)
        self.flush()

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        exc: Optional[BaseException] = None,
        event_id: int = 0,
        event_name: Optional[str] = None,
        properties: Properties = None,
    ) -> None:
        """Generic entry point used by the stdlib logging bridge.

        Missing event names are derived from the caller location and a
        random 32-bit id is assigned when ``event_id`` is 0.
        """
        if not self.is_enabled(level):
            return
        if not event_name:
            event_name = default_event_name()
            if event_id == 0:
                event_id = random.getrandbits(31)
        props = {PROP_EVENT_ID: str(event_id), PROP_EVENT_NAME: event_name}
        for k, v in self._to_properties(properties).items():
            props.setdefault(k, v)
        if exc is not None or level >= LogLevel.ERROR:
            self._exception(level, message, exc, props, name=event_name)
        else:
            self._event(level, message, props, name=event_name)

    # ------------------------------------------------------------------ #
    # Item assembly
    # ------------------------------------------------------------------ #
    def _dispatch(self, level: LogLevel, message: Union[str, BaseException], properties: Properties) -> None:
        if isinstance(message, BaseException):
            self._exception(level, _base_message(message), message, properties)
        else:
            self._event(level, message, properties)

    def _to_properties(self, properties: Properties) -> Dict[str, str]:
        """Return caller properties: flat str->str maps as-is, anything else flattened."""
        if properties is None:
            return {}
        if isinstance(properties, Mapping) and all(
            isinstance(k, str) and isinstance(v, str) for k, v in properties.items()
        ):
            return dict(properties)
        return flatten(
            properties,
            casing=self._settings.KEY_CASING,
            redact=self.mask_sensitive_data,
            delimiter=self._settings.KEY_DELIMITER,
        )

    def _default_properties(
        self,
        level: LogLevel,
        properties: Dict[str, str],
        caller: Optional[CallerInfo] = None,
    ) -> Dict[str, str]:
        output = dict(properties)
        output.setdefault(PROP_LOG_LEVEL, level.label)
        caller = caller or resolve_caller(2)
        if caller is not None and PROP_SUMMARY_MESSAGE not in output:
            output.setdefault(PROP_MEMBER_NAME, caller.function)
            output.setdefault(PROP_FILE_PATH, caller.file_name)
            if caller.line_number > 0:
                output.setdefault(PROP_LINE_NUMBER, str(caller.line_number))
        return output

    def _event(
        self,
        level: LogLevel,
        message: str,
        properties: Properties,
        *,
        name: Optional[str] = None,
    ) -> None:
        if not self.is_enabled(level):
            return
        output = self._default_properties(level, self._to_properties(properties))
        if message:
            output.setdefault(PROP_SUMMARY_MESSAGE, message)
        item = TelemetryItem(
            kind=TelemetryKind.EVENT,
            name=name or message or "event",
            level=level,
            message=message,
            properties=output,
        )
        self._export(item)

    def _exception(
        self,
        level: LogLevel,
        message: Optional[str],
        exc: Optional[BaseException],
        properties: Properties,
        *,
        name: Optional[str] = None,
    ) -> None:
        if not self.is_enabled(level):
            return
        output = self._default_properties(level, self._to_properties(properties))
        exc_message = str(exc) if exc is not None else ""
        if exc_message:
            output.setdefault(PROP_EXCEPTION_MESSAGE, exc_message)
        item = TelemetryItem(
            kind=TelemetryKind.EXCEPTION,
            name=name or (type(exc).__name__ if exc is not None else "exception"),
            level=level,
            message=message,
            properties=output,
            exception_type=type(exc).__name__ if exc is not None else None,
        )
        self._export(item, exc)
        self.flush()

    def _export(self, item: TelemetryItem, exc: Optional[BaseException] = None) -> None:
        if self._settings.DRY_RUN:
            logger.info(
                "Dry-run telemetry: kind=%s name=%s properties=%d",
                item.kind.value,
                item.name,
                len(item.properties),
            )
            return
        tracer = self.tracer_provider.get_tracer(__name__)
        attributes: Dict[str, Any] = dict(item.properties)
        attributes["telemetry.kind"] = item.kind.value
        if item.message:
            attributes["telemetry.message"] = item.message
        if item.metric_value is not None:
            attributes[PROP_METRIC_VALUE] = item.metric_value
        span = tracer.start_span(item.name, attributes=attributes)
        if exc is not None:
            span.record_exception(exc)
        if item.kind is TelemetryKind.EXCEPTION:
            span.set_status(Status(StatusCode.ERROR, item.message or None))
        span.end()


def _base_message(exc: BaseException) -> str:
    """Message of the innermost cause, the exception's base message."""
    root = exc
    while root.__cause__ is not None or root.__context__ is not None:
        root = root.__cause__ or root.__context__  # type: ignore[assignment]
    return str(root)


def create_telemetry_logger(
    settings: Optional[Settings] = None,
    instrumentation_key: Optional[str] = None,
    *,
    mask_sensitive_data: Optional[bool] = None,
    tracer_provider: Optional[TracerProvider] = None,
) -> TelemetryLogger:
    """Build a `TelemetryLogger` from settings.

    Raises:
        RuntimeError: If no instrumentation key is passed or configured.
    """
    settings = settings or get_settings()
    key = instrumentation_key or resolve_instrumentation_key(settings)
    if not key:
        raise RuntimeError('Could not find "InstrumentationKey" in configuration')
    return TelemetryLogger(
        key,
        settings.telemetry_level,
        settings.MASK_SENSITIVE_DATA if mask_sensitive_data is None else mask_sensitive_data,
        settings=settings,
        tracer_provider=tracer_provider,
    )
