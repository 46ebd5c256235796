from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from typing import Optional, List, Dict, Any, Type
from datetime import datetime
import structlog
from repositories.base import EntityRepository, E
from models.entities import Entity, ENTITY_TYPES, normalize_field_value
from utils.errors import StoreNotConnectedError


logger = structlog.get_logger()


class MongoEntityRepository(EntityRepository):
    """MongoDB implementation of the entity store."""

    def __init__(self, mongodb_url: str, database_name: str, connect_attempts: int = 5):
        self.mongodb_url = mongodb_url
        self.database_name = database_name
        self.connect_attempts = connect_attempts
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

        # One collection per entity type
        self.collections: Dict[str, AsyncIOMotorCollection] = {}

    async def connect(self) -> None:
        """Connect to MongoDB, retrying the initial ping with backoff."""
        try:
            self.client = AsyncIOMotorClient(self.mongodb_url)
            self.db = self.client[self.database_name]

            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.connect_attempts),
                wait=wait_exponential(multiplier=1, min=4, max=10),
                reraise=True
            ):
                with attempt:
                    await self.client.admin.command('ping')

            for entity_type in ENTITY_TYPES:
                self.collections[entity_type.collection_name] = self.db[entity_type.collection_name]

            await self._create_indexes()

            logger.info("Connected to MongoDB", database=self.database_name)
        except Exception as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            self.client = None
            self.collections = {}
            logger.info("Disconnected from MongoDB")

    async def health_check(self) -> bool:
        """Check MongoDB health."""
        try:
            if not self.client:
                return False
            await self.client.admin.command('ping')
            return True
        except Exception as e:
            logger.error("MongoDB health check failed", error=str(e))
            return False

    async def _create_indexes(self) -> None:
        """Create the lookup indexes used by the attribution queries."""
        for entity_type in ENTITY_TYPES:
            collection = self.collections[entity_type.collection_name]
            await collection.create_index([("id", 1)], unique=True)
            if "transaction_hash" in entity_type.model_fields:
                await collection.create_index([("transaction_hash", 1), ("log_index", 1)])
            if "message_id" in entity_type.model_fields:
                await collection.create_index([("message_id", 1)])

        logger.info("Created MongoDB indexes")

    def _collection(self, entity_type: Type[Entity]) -> AsyncIOMotorCollection:
        collection = self.collections.get(entity_type.collection_name)
        if collection is None:
            raise StoreNotConnectedError("MongoEntityRepository")
        return collection

    @staticmethod
    def _to_document(entity: Entity) -> Dict[str, Any]:
        doc = entity.model_dump()
        # BSON integers are 64-bit; token amounts are not
        for field in entity.amount_fields:
            doc[field] = str(doc[field])
        doc["updated_at"] = datetime.utcnow()
        return doc

    @staticmethod
    def _from_document(entity_type: Type[E], doc: Dict[str, Any]) -> E:
        doc.pop("_id", None)
        doc.pop("updated_at", None)
        return entity_type(**doc)

    async def get(self, entity_type: Type[E], entity_id: str) -> Optional[E]:
        """Get an entity by id."""
        try:
            doc = await self._collection(entity_type).find_one({"id": normalize_field_value(entity_id)})
            if doc:
                return self._from_document(entity_type, doc)
            return None
        except Exception as e:
            logger.error("Failed to get entity",
                        collection=entity_type.collection_name,
                        entity_id=entity_id,
                        error=str(e))
            raise

    async def set(self, entity: Entity) -> None:
        """Upsert an entity by id."""
        try:
            await self._collection(type(entity)).replace_one(
                {"id": entity.id},
                self._to_document(entity),
                upsert=True
            )

            logger.debug("Saved entity",
                        collection=entity.collection_name,
                        entity_id=entity.id)
        except Exception as e:
            logger.error("Failed to save entity",
                        collection=entity.collection_name,
                        entity_id=entity.id,
                        error=str(e))
            raise

    async def get_where(self, entity_type: Type[E], field: str, value: Any) -> List[E]:
        """Get entities matching a single field, in log order when available."""
        try:
            cursor = self._collection(entity_type).find({field: normalize_field_value(value)})
            if "log_index" in entity_type.model_fields:
                cursor = cursor.sort("log_index", 1)

            entities = []
            async for doc in cursor:
                entities.append(self._from_document(entity_type, doc))
            return entities
        except Exception as e:
            logger.error("Failed to query entities",
                        collection=entity_type.collection_name,
                        field=field,
                        error=str(e))
            raise

    async def count(self, entity_type: Type[Entity]) -> int:
        """Count stored entities of a type."""
        try:
            return await self._collection(entity_type).count_documents({})
        except Exception as e:
            logger.error("Failed to count entities",
                        collection=entity_type.collection_name,
                        error=str(e))
            raise
