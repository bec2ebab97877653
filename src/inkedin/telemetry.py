"""Tracing and structured logging for the discovery engine.

``Telemetry`` wraps an OpenTelemetry tracer. Engine components open one
span per unit of work (``discovery.fetch_page``, ``geo.resolve_text``,
``discovery.start``) and log through ``Telemetry.log``.

File logging is JSON lines. Every record from the ``inkedin`` logger tree,
whether it came through ``Telemetry.log`` or a module-level
``logging.getLogger(__name__)``, is stamped with the trace and span ids
active when it was emitted.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Mapping

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

LOGGER_NAME = "inkedin"

_NO_TRACE = "0" * 32
_NO_SPAN = "0" * 16


class Telemetry:
    """OTel tracer plus the engine's log channel."""

    def __init__(self, tracer: trace.Tracer) -> None:
        self._tracer = tracer
        self.log = logging.getLogger(f"{LOGGER_NAME}.engine")

    @contextmanager
    def span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Generator[trace.Span, None, None]:
        """Open a span named *name*, seeded with *attributes*.

        Attributes whose value is None are left off. The yielded span takes
        further ``set_attribute`` / ``record_exception`` calls.
        """
        seeded = {key: value for key, value in (attributes or {}).items() if value is not None}
        with self._tracer.start_as_current_span(name, attributes=seeded) as span:
            yield span

    @classmethod
    def for_testing(cls) -> tuple["Telemetry", InMemorySpanExporter]:
        """Telemetry whose finished spans land in an in-memory exporter."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return cls(provider.get_tracer(LOGGER_NAME)), exporter

    @classmethod
    def noop(cls) -> "Telemetry":
        """Telemetry whose spans record nothing."""
        return cls(trace.NoOpTracer())


# DiscoveryEngine.__init__ installs its Telemetry here, so components built
# without one (widgets, a bare resolver) share the engine's tracer.
_active: Telemetry | None = None


def get_telemetry() -> Telemetry:
    global _active
    if _active is None:
        _active = Telemetry.noop()
    return _active


def set_telemetry(tel: Telemetry) -> None:
    global _active
    _active = tel


# ---------------------------------------------------------------------------
# File logging
# ---------------------------------------------------------------------------


class _TraceContextFilter(logging.Filter):
    """Copy the active span's ids onto each record at emit time."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = format(ctx.trace_id, "032x")  # type: ignore[attr-defined]
            record.span_id = format(ctx.span_id, "016x")  # type: ignore[attr-defined]
        else:
            record.trace_id = _NO_TRACE  # type: ignore[attr-defined]
            record.span_id = _NO_SPAN  # type: ignore[attr-defined]
        return True


class _JsonLinesFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "trace": getattr(record, "trace_id", _NO_TRACE),
            "span": getattr(record, "span_id", _NO_SPAN),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_file_logging(log_dir: str = "logs", level: int = logging.DEBUG) -> str | None:
    """Send the ``inkedin`` logger tree to ``{log_dir}/discovery-YYYYMMDD.log``.

    Called by the CLI and TUI entry points; tests leave logging alone.

    Returns:
        The log file path, or None when a file handler was already attached.
    """
    root = logging.getLogger(LOGGER_NAME)
    if any(isinstance(h, logging.FileHandler) for h in root.handlers):
        return None

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, f"discovery-{datetime.now():%Y%m%d}.log")

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(level)
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_JsonLinesFormatter())

    root.setLevel(level)
    root.addHandler(handler)
    return log_path
