"""Read-only view of the store for the outward query protocol layer."""

from __future__ import annotations

from pypoi.models.entities import Entity, EntityVariant
from pypoi.state.store import EntityStore


class QueryFacade:
    """The narrow interface a linked-data protocol adapter needs.

    Besides the two reads, the facade answers routing questions so an
    adapter can tell which identifiers and entity types belong here.
    Beaches and trails may share one namespace prefix, so routing is by
    membership rather than by prefix.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def get_by_id(self, entity_id: str) -> Entity:
        """Raises :class:`pypoi.exceptions.NotFoundError` for unknown ids."""
        return self._store.get_by_id(entity_id)

    def list_by_variant(self, variant: EntityVariant | str) -> list[Entity]:
        return self._store.list_by_variant(variant)

    def provides_variant(self, name: str) -> bool:
        return name in {variant.value for variant in EntityVariant}

    def provides_id(self, entity_id: str) -> bool:
        return entity_id in self._store

    def variant_from_id(self, entity_id: str) -> EntityVariant | None:
        """Variant of a stored entity, or ``None`` if the id is unknown."""
        if entity_id not in self._store:
            return None
        return self._store.get_by_id(entity_id).variant
