"""Water temperature telemetry ingestion.

Each inbound message is handled on its own and never raises: a reading that
cannot be applied is logged, counted and dropped.  Telemetry is a
continuous stream, so a lost reading is superseded by the next one and is
never retried.
"""

from __future__ import annotations

import dataclasses
import logging
from enum import StrEnum

from pydantic import ValidationError

from pypoi._constants import SENSOR_ID_PREFIX
from pypoi.exceptions import NotFoundError, StaleUpdateError
from pypoi.ingestion.normalize import parse_rfc3339, round_one_decimal
from pypoi.models.telemetry import WaterTemperatureTelemetry
from pypoi.state.store import EntityStore

_logger = logging.getLogger(__name__)


class ReconcileOutcome(StrEnum):
    UPDATED = "updated"
    STALE = "stale"
    UNKNOWN_SENSOR = "unknown_sensor"
    DISCARDED = "discarded"


@dataclasses.dataclass
class ReconcilerStats:
    """Per-outcome message counters."""

    updated: int = 0
    stale: int = 0
    unknown_sensor: int = 0
    discarded: int = 0

    def record(self, outcome: ReconcileOutcome) -> None:
        field_name = outcome.value
        setattr(self, field_name, getattr(self, field_name) + 1)

    @property
    def total(self) -> int:
        return self.updated + self.stale + self.unknown_sensor + self.discarded


def sensor_id_for_device(device: str) -> str:
    """Map a bus device name into the store's sensor namespace."""
    return f"{SENSOR_ID_PREFIX}{device}"


class TelemetryReconciler:
    """Apply water temperature readings to the entity store."""

    def __init__(self, store: EntityStore, *, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._logger = logger or _logger
        self.stats = ReconcilerStats()

    def handle_message(self, body: bytes | str) -> ReconcileOutcome:
        """Decode and apply one telemetry message."""
        outcome = self._reconcile(body)
        self.stats.record(outcome)
        return outcome

    def _reconcile(self, body: bytes | str) -> ReconcileOutcome:
        try:
            reading = WaterTemperatureTelemetry.model_validate_json(body)
        except ValidationError:
            self._logger.warning("Failed to decode water temperature message")
            self._logger.debug("Undecodable telemetry body: %r", body, exc_info=True)
            return ReconcileOutcome.DISCARDED

        if not reading.timestamp:
            self._logger.info("Ignored water temperature message with an empty timestamp.")
            return ReconcileOutcome.DISCARDED

        observed_at = parse_rfc3339(reading.timestamp)
        if observed_at is None:
            self._logger.info("Ignored water temperature message with invalid timestamp %r", reading.timestamp)
            return ReconcileOutcome.DISCARDED

        device = reading.origin.device.strip()
        if not device:
            self._logger.info("Ignored water temperature message without a device")
            return ReconcileOutcome.DISCARDED

        temperature = round_one_decimal(reading.temp)
        try:
            entity_id = self._store.update_beach_temperature(sensor_id_for_device(device), temperature, observed_at)
        except NotFoundError as exc:
            self._logger.info("Temperature update was ignored: %s", exc)
            return ReconcileOutcome.UNKNOWN_SENSOR
        except StaleUpdateError as exc:
            self._logger.info("Temperature update was ignored: %s", exc)
            return ReconcileOutcome.STALE

        self._logger.info("Updated water temperature at %s to %.1f degrees", entity_id, temperature)
        return ReconcileOutcome.UPDATED
