from typing import Optional, List, Dict, Any, Type
import structlog
from repositories.base import EntityRepository, E
from models.entities import Entity, normalize_field_value


logger = structlog.get_logger()


class InMemoryEntityRepository(EntityRepository):
    """Process-local entity store used for dry-run replays and tests.

    Entities are immutable pydantic models, so they are stored as-is.
    Insertion order is kept; ``get_where`` sorts stably by ``log_index``.
    """

    def __init__(self):
        self._entities: Dict[str, Dict[str, Entity]] = {}
        self.connected = False

    async def connect(self) -> None:
        self.connected = True
        logger.info("Using in-memory entity store")

    async def disconnect(self) -> None:
        self.connected = False

    async def health_check(self) -> bool:
        return self.connected

    def _table(self, entity_type: Type[Entity]) -> Dict[str, Entity]:
        return self._entities.setdefault(entity_type.collection_name, {})

    async def get(self, entity_type: Type[E], entity_id: str) -> Optional[E]:
        return self._table(entity_type).get(normalize_field_value(entity_id))

    async def set(self, entity: Entity) -> None:
        self._table(type(entity))[entity.id] = entity
        logger.debug("Saved entity", collection=entity.collection_name, entity_id=entity.id)

    async def get_where(self, entity_type: Type[E], field: str, value: Any) -> List[E]:
        value = normalize_field_value(value)
        matches = [
            entity for entity in self._table(entity_type).values()
            if getattr(entity, field) == value
        ]
        if "log_index" in entity_type.model_fields:
            matches.sort(key=lambda entity: entity.log_index)
        return matches

    async def count(self, entity_type: Type[Entity]) -> int:
        return len(self._table(entity_type))

    def all(self, entity_type: Type[E]) -> List[E]:
        """Snapshot of every stored entity of a type."""
        return list(self._table(entity_type).values())
