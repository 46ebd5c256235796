import pytest

from repositories.memory import InMemoryEntityRepository
from services.superswap_service import SuperSwapService
from services.event_router import EventRouter
from tests.factories import BRIDGE_ASSET


@pytest.fixture
def store():
    repo = InMemoryEntityRepository()
    repo.connected = True
    return repo


@pytest.fixture
def service(store):
    return SuperSwapService(store, BRIDGE_ASSET)


@pytest.fixture
def router(store, service):
    return EventRouter(store, service)
