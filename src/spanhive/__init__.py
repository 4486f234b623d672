"""
Spanhive: forward finished tracing spans to event ingestion.

Converts spans into flat telemetry events, applies per-span routing and
sampling decisions, and delivers the events asynchronously in batches.
"""

__version__ = "0.1.0"
