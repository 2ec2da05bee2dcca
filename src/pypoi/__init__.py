"""pypoi - Point-of-interest registry core: feed ingestion and live reconciliation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pypoi")
except PackageNotFoundError:
    __version__ = "0+local"
from pypoi.config import MqttSettings, PoiConfig
from pypoi.exceptions import (
    MalformedAttributesError,
    MalformedFeedError,
    MalformedGeometryError,
    NotFoundError,
    PoiConfigError,
    PoiError,
    SourceUnavailableError,
    StaleUpdateError,
)
from pypoi.facade import QueryFacade
from pypoi.ingestion.features import FeatureIngester
from pypoi.ingestion.status import StatusPoller
from pypoi.ingestion.telemetry import ReconcileOutcome, TelemetryReconciler
from pypoi.models import Beach, EntityVariant, ExerciseTrail
from pypoi.projection import project
from pypoi.reference import ReferenceEntry, ReferenceTable
from pypoi.service import PoiService
from pypoi.state.store import EntityStore

__all__ = [
    "__version__",
    "Beach",
    "EntityStore",
    "EntityVariant",
    "ExerciseTrail",
    "FeatureIngester",
    "MalformedAttributesError",
    "MalformedFeedError",
    "MalformedGeometryError",
    "MqttSettings",
    "NotFoundError",
    "PoiConfig",
    "PoiConfigError",
    "PoiError",
    "PoiService",
    "QueryFacade",
    "ReconcileOutcome",
    "ReferenceEntry",
    "ReferenceTable",
    "SourceUnavailableError",
    "StaleUpdateError",
    "StatusPoller",
    "TelemetryReconciler",
    "project",
]
