from abc import ABC, abstractmethod
from typing import Any, List, Optional, Type, TypeVar
from models.entities import Entity


E = TypeVar("E", bound=Entity)


class BaseRepository(ABC):
    """Base repository interface."""

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the data store."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the data store."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the data store is healthy."""
        pass


class EntityRepository(BaseRepository):
    """Keyed entity store shared by the event handlers and the attribution engine.

    Every entity type in ``models.entities.ENTITY_TYPES`` is supported.
    ``get_where`` results are ordered by ``log_index`` ascending for entities
    that carry one, so "first match" means first in log order.
    """

    @abstractmethod
    async def get(self, entity_type: Type[E], entity_id: str) -> Optional[E]:
        """Get an entity by id, or None."""
        pass

    @abstractmethod
    async def set(self, entity: Entity) -> None:
        """Insert or replace an entity."""
        pass

    @abstractmethod
    async def get_where(self, entity_type: Type[E], field: str, value: Any) -> List[E]:
        """Get all entities whose ``field`` equals ``value``; [] when none match."""
        pass

    @abstractmethod
    async def count(self, entity_type: Type[Entity]) -> int:
        """Number of stored entities of a type."""
        pass
