"""Shared fixtures for resourcelib tests."""

import pytest

from resourcelib.application import Application
from resourcelib.core.errors import NotFound
from resourcelib.core.settings.settings import ResourcelibSettings
from resourcelib.services.memory import MemoryService


class UsersService:
    """Service implementing only find, get and create."""

    def __init__(self):
        self.items = {}
        self.setup_calls = []

    async def find(self, params):
        query = params.query
        return [
            dict(item) for item in self.items.values()
            if all(item.get(key) == value for key, value in query.items())
        ]

    async def get(self, id, params):
        if id not in self.items:
            raise NotFound.create(f"No user {id}", method="get", resource_id=id)
        return dict(self.items[id])

    async def create(self, data, params):
        item = dict(data, id=len(self.items) + 1)
        self.items[item["id"]] = item
        return dict(item)

    def setup(self, app, location):
        self.setup_calls.append((app, location))


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return ResourcelibSettings(paginate_default=10, paginate_max=50)


@pytest.fixture
def app(settings):
    """Fresh application."""
    return Application(settings)


@pytest.fixture
def users_service():
    """A partial service: find, get, create."""
    return UsersService()


@pytest.fixture
def memory_service():
    """Memory service with explicit pagination."""
    return MemoryService(paginate={"default": 10, "max": 50})
