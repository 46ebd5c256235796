from .base import BaseRepository, EntityRepository
from .memory import InMemoryEntityRepository
from .mongodb import MongoEntityRepository

__all__ = [
    'BaseRepository',
    'EntityRepository',
    'InMemoryEntityRepository',
    'MongoEntityRepository',
]
