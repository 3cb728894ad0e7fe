# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Tracing for the facilitator calls.

``facilitator.py`` only touches opentelemetry-api; without a provider its
spans are no-ops. ``setup_tracing`` installs the SDK provider that exports
them, and needs the ``otel`` extra.
"""

from __future__ import annotations

from .config import ServerSettings


def traces_url(endpoint: str) -> str:
    """OTLP/HTTP traces URL for a collector base URL."""
    base = endpoint.rstrip("/")
    return base if base.endswith("/v1/traces") else f"{base}/v1/traces"


def setup_tracing(settings: ServerSettings):
    """Install a global tracer provider exporting to ``settings.otel_endpoint``."""
    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import SERVICE_NAME, Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
    except ImportError as e:  # pragma: no cover
        raise RuntimeError("tracing needs the otel extra: pip install 'x402-demo-server[otel]'") from e

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: settings.service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_url(settings.otel_endpoint))))
    if settings.otel_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    return provider
