"""OpenTelemetry helpers for cmakebuild.

Spans are only recorded when export is enabled through the environment
(``CMAKEBUILD_OTEL=1`` or a standard ``OTEL_EXPORTER_OTLP_*`` endpoint).
Otherwise :func:`start_span` yields ``None`` and costs nothing.
"""

from __future__ import annotations

import contextlib
import logging
import os
import typing as t

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .__about__ import __title__, __version__
from .constants import OTEL_ENV_FLAG

logger = logging.getLogger(__name__)

_OTEL_READY = False


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in {"1", "true"}:
        return True
    if value in {"0", "false"}:
        return False
    return None


def otel_enabled() -> bool:
    """Return True when span export is enabled by environment.

    Examples
    --------
    >>> from cmakebuild.otel import otel_enabled
    >>> _ = otel_enabled()
    """
    flag = _env_flag(OTEL_ENV_FLAG)
    if flag is not None:
        return flag
    return bool(
        os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
        or os.environ.get("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    )


def _ensure_provider() -> bool:
    global _OTEL_READY
    if _OTEL_READY:
        return True
    if not otel_enabled():
        return False

    provider = trace.get_tracer_provider()
    if provider.__class__.__name__ != "ProxyTracerProvider":
        # The host application already configured a provider.
        _OTEL_READY = True
        return True

    try:
        resource = Resource.create(
            {
                "service.name": __title__,
                "service.version": __version__,
            }
        )
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(tracer_provider)
    except Exception:
        logger.warning("cmakebuild otel init failed, spans disabled", exc_info=True)
        return False
    else:
        _OTEL_READY = True
        return True


@contextlib.contextmanager
def start_span(
    name: str,
    attributes: t.Mapping[str, str | int | bool] | None = None,
) -> t.Iterator[t.Any]:
    """Start a span around a build step.

    Examples
    --------
    >>> from cmakebuild.otel import start_span
    >>> with start_span("cmakebuild.test", {"step": "configure"}):
    ...     pass
    """
    if not _ensure_provider():
        yield None
        return
    tracer = trace.get_tracer(__title__, __version__)
    with tracer.start_as_current_span(name, attributes=attributes) as span:
        yield span


__all__ = [
    "otel_enabled",
    "start_span",
]
