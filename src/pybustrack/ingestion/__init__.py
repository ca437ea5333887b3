"""Ingestion layer.

This package contains adapters that take records handed over by the
persistence and realtime layers (stop rows, position events) and turn them
into validated domain models.
"""

__all__: list[str] = []
