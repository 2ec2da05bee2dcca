"""In-memory entity store.

This is the only component allowed to mutate entities.  The membership of
the store is fixed at construction; afterwards only two conditional
updates may change an entity, each by swapping in a new frozen instance
under that entity's own lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from pypoi.exceptions import NotFoundError, StaleUpdateError
from pypoi.ingestion.normalize import ensure_utc, round_one_decimal
from pypoi.models.entities import Beach, Entity, EntityVariant, ExerciseTrail

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EntityStore:
    """Authoritative collection of beaches and exercise trails.

    Concurrency model:

    * Each entity has a dedicated :class:`threading.Lock`.  A conditional
      update holds only the lock of the entity it touches, so updates to
      different entities never wait on each other.
    * Entities are immutable.  Writers replace the instance in a dict slot
      whose key set never changes, so readers take no lock and always see
      either the old or the new entity, never a mix.
    * The sensor index is built once and is read-only afterwards.
    """

    def __init__(
        self,
        entities: Iterable[Entity] = (),
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._entities: dict[str, Entity] = {}
        self._sensors: dict[str, str] = {}

        by_variant: dict[EntityVariant, list[str]] = {variant: [] for variant in EntityVariant}
        for entity in entities:
            if entity.id in self._entities:
                raise ValueError(f"Duplicate entity id {entity.id}")
            self._entities[entity.id] = entity
            by_variant[entity.variant].append(entity.id)

            if isinstance(entity, Beach) and entity.sensor_id:
                # First match in ingestion order wins.
                if entity.sensor_id in self._sensors:
                    _logger.warning(
                        "Sensor %s is shared by %s and %s; updates go to %s",
                        entity.sensor_id,
                        self._sensors[entity.sensor_id],
                        entity.id,
                        self._sensors[entity.sensor_id],
                    )
                else:
                    self._sensors[entity.sensor_id] = entity.id

        self._variants: dict[EntityVariant, tuple[str, ...]] = {
            variant: tuple(ids) for variant, ids in by_variant.items()
        }
        self._locks: dict[str, threading.Lock] = {entity_id: threading.Lock() for entity_id in self._entities}

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, entity_id: str) -> Entity:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity {entity_id} not found", entity_id=entity_id)
        return entity

    def list_by_variant(self, variant: EntityVariant | str) -> list[Entity]:
        """Snapshot of every entity of *variant*. Unknown variants yield nothing."""
        try:
            key = EntityVariant(variant)
        except ValueError:
            return []
        return [self._entities[entity_id] for entity_id in self._variants.get(key, ())]

    def sensor_owner(self, sensor_id: str) -> str | None:
        """Id of the beach that receives readings for *sensor_id*."""
        return self._sensors.get(sensor_id)

    # ------------------------------------------------------------------
    # Conditional updates
    # ------------------------------------------------------------------

    def update_beach_temperature(self, sensor_id: str, temperature: float, observed_at: datetime) -> str:
        """Record a water temperature reading for the beach owning *sensor_id*.

        The reading is accepted only if *observed_at* is strictly after the
        beach's ``date_modified``; ``date_modified`` then advances to the
        store clock.  Returns the updated entity id.

        Raises
        ------
        NotFoundError
            No beach carries *sensor_id*.
        StaleUpdateError
            The reading does not postdate the last modification.
        """
        entity_id = self._sensors.get(sensor_id)
        if entity_id is None:
            raise NotFoundError(f"No beach found matching sensor id {sensor_id}", entity_id=sensor_id)

        observed = ensure_utc(observed_at)
        with self._locks[entity_id]:
            beach = self._entities[entity_id]
            assert isinstance(beach, Beach)  # noqa: S101
            if beach.date_modified is not None and not observed > ensure_utc(beach.date_modified):
                raise StaleUpdateError(
                    f"Ignored temperature update that predates date_modified of {entity_id}",
                    entity_id=entity_id,
                )
            self._entities[entity_id] = beach.model_copy(
                update={
                    "water_temperature": round_one_decimal(temperature),
                    "date_modified": ensure_utc(self._clock()),
                }
            )
        return entity_id

    def update_trail_last_groomed(self, trail_id: str, groomed_at: datetime) -> None:
        """Set ``date_last_prepared`` of a trail.

        The grooming system is authoritative, so there is no ordering check.
        """
        if not isinstance(self._entities.get(trail_id), ExerciseTrail):
            raise NotFoundError(f"Exercise trail {trail_id} not found", entity_id=trail_id)

        with self._locks[trail_id]:
            trail = self._entities[trail_id]
            assert isinstance(trail, ExerciseTrail)  # noqa: S101
            self._entities[trail_id] = trail.model_copy(update={"date_last_prepared": ensure_utc(groomed_at)})
