# app/core/tracing.py - Trace-aware structured logging with optional OpenTelemetry

import os
import socket
import traceback
import sys
import json
import random
from datetime import datetime, timezone
from typing import Optional, Dict
from loguru import logger
from contextvars import ContextVar

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from app.core.config import settings

SERVICE = "taskboard-api"
VERSION = "1.0.0"

# Context variables for manual trace propagation
_trace_id_context: ContextVar[str] = ContextVar('trace_id', default='no-trace')
_span_id_context: ContextVar[str] = ContextVar('span_id', default='no-span')

_tracer_provider: Optional[TracerProvider] = None


# Local trace ID generation (works even without OpenTelemetry)
def generate_trace_id() -> str:
    """Generate a 128-bit trace ID as 32-character hex string"""
    return f"{random.getrandbits(128):032x}"


def generate_span_id() -> str:
    """Generate a 64-bit span ID as 16-character hex string"""
    return f"{random.getrandbits(64):016x}"


def setup_tracing(app, db_engine=None) -> bool:
    """
    Configure logging and, when enabled, OpenTelemetry instrumentation.
    Trace IDs are always available: the request middleware falls back to
    locally generated ones when no span is active.
    """
    global _tracer_provider

    setup_structured_logging(enable_json=settings.should_use_json_logging)
    setup_logger = logger.bind(trace_id=generate_trace_id(), span_id=generate_span_id())

    if not settings.ENABLE_OTEL_EXPORTER:
        setup_logger.info("📍 OpenTelemetry disabled in config - using local trace IDs only")
        return True

    try:
        resource = Resource.create({
            SERVICE_NAME: SERVICE,
            "service.version": VERSION,
            "service.environment": settings.ENVIRONMENT,
        })
        _tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
        trace.set_tracer_provider(_tracer_provider)

        if settings.ENABLE_OTEL_CONSOLE_EXPORT:
            _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
            setup_logger.info("✅ Console span exporter enabled")

        if settings.ENABLE_EXTERNAL_TRACING:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

            otlp_exporter = OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True)
            _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
            setup_logger.info(f"✅ OTLP exporter enabled: {settings.OTLP_ENDPOINT}")

        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=_tracer_provider,
            excluded_urls="/health,/metrics,/docs,/redoc,/openapi.json"
        )
        setup_logger.info("✅ FastAPI instrumented")

        if db_engine is not None:
            instrument_database(db_engine)

        setup_logger.info("🎉 OpenTelemetry tracing setup complete")
        return True

    except Exception as e:
        setup_logger.error(f"❌ OpenTelemetry setup failed: {e}")
        setup_logger.info("📍 Falling back to local trace IDs only")
        return False


def instrument_database(db_engine) -> bool:
    """Add SQLAlchemy span instrumentation"""
    if not _tracer_provider:
        return False

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    try:
        SQLAlchemyInstrumentor().instrument(
            engine=getattr(db_engine, 'sync_engine', db_engine),
            tracer_provider=_tracer_provider,
            enable_commenter=True
        )
        info("✅ SQLAlchemy instrumented")
        return True
    except Exception as e:
        warning(f"⚠️ SQLAlchemy instrumentation failed: {e}")
        return False


def format_stack_trace(exception_info) -> Optional[str]:
    """Format a loguru exception record for logging"""
    if not exception_info:
        return None
    if exception_info.traceback:
        return ''.join(traceback.format_exception(
            exception_info.type,
            exception_info.value,
            exception_info.traceback
        ))
    return str(exception_info.value)


def setup_structured_logging(enable_json: bool = None):
    """JSON lines for log shippers, or a coloured human format for development"""
    if enable_json is None:
        enable_json = settings.should_use_json_logging

    logger.remove()

    hostname = socket.gethostname()
    pid = os.getpid()
    environment = settings.ENVIRONMENT

    if enable_json:
        def json_sink(message):
            record = message.record
            extra = record["extra"]

            trace_id = extra.get("trace_id") or _trace_id_context.get()
            span_id = extra.get("span_id") or _span_id_context.get()

            log_entry = {
                "@timestamp": datetime.now(timezone.utc).isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "service": {
                    "name": SERVICE,
                    "version": VERSION,
                    "environment": environment
                },
                "host": {"hostname": hostname},
                "process": {"pid": pid},
                "log": {
                    "origin": {
                        "file": record["file"].name,
                        "line": record["line"],
                        "function": record["function"]
                    },
                    "logger": record["name"]
                },
                "trace": {
                    "id": trace_id,
                    "span_id": span_id
                }
            }

            custom = {k: v for k, v in extra.items() if k not in ("trace_id", "span_id")}
            if custom:
                log_entry["custom"] = custom

            if record["exception"]:
                log_entry["error"] = {
                    "type": record["exception"].type.__name__ if record["exception"].type else "UnknownError",
                    "message": str(record["exception"].value),
                    "stack_trace": format_stack_trace(record["exception"])
                }

            sys.stderr.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            sys.stderr.flush()

        logger.add(json_sink, level=settings.LOG_LEVEL, enqueue=True, catch=True)
    else:
        def format_with_trace(record):
            trace_id = record["extra"].get("trace_id") or _trace_id_context.get()
            trace_info = f" [trace:{trace_id[:8]}]" if trace_id != "no-trace" else ""
            return (
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
                "<cyan>{name}:{function}:{line}</cyan>" + trace_info.replace("{", "{{").replace("}", "}}")
                + " - <level>{message}</level>\n{exception}"
            )

        logger.add(
            sys.stderr,
            format=format_with_trace,
            level=settings.LOG_LEVEL,
            colorize=True,
            enqueue=True,
            catch=True
        )


def get_current_trace_span_ids() -> tuple[str, str]:
    """Current trace_id and span_id: active OpenTelemetry span, else context vars"""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return f"{span_context.trace_id:032x}", f"{span_context.span_id:016x}"
    return _trace_id_context.get(), _span_id_context.get()


def set_trace_context(trace_id: str, span_id: str):
    """Manually set trace context - useful for async operations"""
    _trace_id_context.set(trace_id)
    _span_id_context.set(span_id)


def get_current_trace_id() -> str:
    trace_id, _ = get_current_trace_span_ids()
    return trace_id


def get_current_span_id() -> str:
    _, span_id = get_current_trace_span_ids()
    return span_id


def get_trace_context() -> Dict[str, str]:
    trace_id, span_id = get_current_trace_span_ids()
    return {"trace_id": trace_id, "span_id": span_id}


def log_with_trace(level: str, message: str, **kwargs):
    """Log through loguru with the current trace context bound"""
    trace_id, span_id = get_current_trace_span_ids()
    bound = logger.opt(depth=2).bind(trace_id=trace_id, span_id=span_id, **kwargs)
    bound.log(level.upper(), message)


# Convenience functions
def info(message: str, **kwargs):
    """Log info with trace context"""
    log_with_trace("info", message, **kwargs)


def debug(message: str, **kwargs):
    """Log debug with trace context"""
    log_with_trace("debug", message, **kwargs)


def warning(message: str, **kwargs):
    """Log warning with trace context"""
    log_with_trace("warning", message, **kwargs)


def error(message: str, **kwargs):
    """Log error with trace context"""
    log_with_trace("error", message, **kwargs)


__all__ = [
    'setup_tracing', 'setup_structured_logging', 'get_current_trace_span_ids', 'get_current_trace_id',
    'get_current_span_id', 'get_trace_context', 'set_trace_context', 'generate_trace_id',
    'generate_span_id', 'log_with_trace', 'info', 'debug', 'warning', 'error'
]
