"""
Entity-Component Store
=======================
Integer entity IDs with one component dictionary per component type,
plus grid-occupancy lookups used by movement, combat and spawning.
"""

from typing import Any, Dict, Iterator, Optional, Tuple, Type, TypeVar

from .components import GridPosition


C = TypeVar('C')


class World:
    """
    Holds every entity of one level.

    Removal is immediate: once destroy_entity returns, the entity is gone
    from every query. A level never outlives its World; level transitions
    build a fresh one.
    """

    def __init__(self):
        self._next_entity_id: int = 0
        self._components: Dict[Type, Dict[int, Any]] = {}

    def create_entity(self, *components: Any) -> int:
        """Create an entity, optionally with its initial components."""
        entity_id = self._next_entity_id
        self._next_entity_id += 1
        for component in components:
            self.add_component(entity_id, component)
        return entity_id

    def destroy_entity(self, entity_id: int) -> None:
        """Remove an entity and all of its components."""
        for store in self._components.values():
            store.pop(entity_id, None)

    def add_component(self, entity_id: int, component: Any) -> None:
        self._components.setdefault(type(component), {})[entity_id] = component

    def get_component(self, entity_id: int, component_type: Type[C]) -> Optional[C]:
        """Get a component for an entity, or None if not found."""
        return self._components.get(component_type, {}).get(entity_id)

    def query(self, *component_types: Type) -> Iterator[Tuple[Any, ...]]:
        """
        Yield (entity_id, component1, component2, ...) for every entity that
        has ALL of the given component types, in creation order.
        """
        if not component_types:
            return

        stores = [self._components.get(ct) for ct in component_types]
        if any(store is None for store in stores):
            return

        # Materialize so callers may destroy entities while iterating
        candidates = sorted(
            set(stores[0]).intersection(*(set(store) for store in stores[1:]))
        )
        for entity_id in candidates:
            yield (entity_id,) + tuple(store[entity_id] for store in stores)

    def entities_at(self, x: int, y: int, *component_types: Type) -> Iterator[int]:
        """Entities standing on cell (x, y) that have all given components."""
        for result in self.query(GridPosition, *component_types):
            pos = result[1]
            if pos.x == x and pos.y == y:
                yield result[0]

    def first_at(self, x: int, y: int, *component_types: Type) -> Optional[int]:
        for entity_id in self.entities_at(x, y, *component_types):
            return entity_id
        return None

