"""State/store layer.

The store is the single shared mutable state in the service: startup
ingestion populates it, telemetry and the status poller update it, and
query handlers read it.
"""
