"""Custom exception hierarchy for pypoi."""

from __future__ import annotations


class PoiError(Exception):
    """Base exception for all pypoi errors."""


class PoiConfigError(PoiError):
    """Invalid or missing configuration."""


class SourceUnavailableError(PoiError):
    """A remote feed could not be fetched (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class MalformedFeedError(PoiError):
    """A feed document could not be decoded at the top level."""


class MalformedGeometryError(MalformedFeedError):
    """A selected feature carries geometry that cannot be decoded."""

    def __init__(self, message: str, *, feature_id: int | None = None) -> None:
        self.feature_id = feature_id
        super().__init__(message)


class MalformedAttributesError(MalformedFeedError):
    """A selected feature carries a field list that cannot be decoded."""

    def __init__(self, message: str, *, feature_id: int | None = None) -> None:
        self.feature_id = feature_id
        super().__init__(message)


class NotFoundError(PoiError):
    """No entity matches the requested identifier or sensor."""

    def __init__(self, message: str, *, entity_id: str = "") -> None:
        self.entity_id = entity_id
        super().__init__(message)


class StaleUpdateError(PoiError):
    """An update was rejected because it does not postdate the entity.

    Raised by the store when a telemetry observation time is not strictly
    after the entity's current ``date_modified``.  Out-of-order and
    duplicate readings both end up here; the incoming value is discarded.
    """

    def __init__(self, message: str, *, entity_id: str = "") -> None:
        self.entity_id = entity_id
        super().__init__(message)
