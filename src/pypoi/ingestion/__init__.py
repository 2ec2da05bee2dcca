"""Ingestion layer.

This package contains the adapters that turn external inputs (the feature
feed at startup, telemetry messages, the status feed) into entities or
store updates.
"""

__all__: list[str] = []
