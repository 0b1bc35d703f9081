"""Tests for the in-memory service."""

from types import SimpleNamespace

import pytest

from resourcelib.core.errors import BadRequest, Conflict, NotFound
from resourcelib.core.settings.settings import ResourcelibSettings
from resourcelib.services.base import ServiceMethod, detect_methods
from resourcelib.services.memory import MemoryService
from resourcelib.services.pagination import Page
from resourcelib.services.params import PaginationOptions, Params


def params(**kwargs):
    return Params(**kwargs)


class TestMemoryServiceConstruction:
    """Test MemoryService construction and setup."""

    def test_declares_all_methods(self):
        assert detect_methods(MemoryService()) == ServiceMethod.ALL

    def test_initial_store(self):
        service = MemoryService(store={1: {"name": "A"}, 2: {"name": "B"}})

        assert service.store[1] == {"id": 1, "name": "A"}
        assert service.store[2]["id"] == 2

    def test_paginate_mapping(self):
        service = MemoryService(paginate={"default": 2, "max": 5})

        assert service.paginate == PaginationOptions(default=2, max=5)

    def test_setup_adopts_app_pagination(self):
        service = MemoryService()
        app = SimpleNamespace(settings=ResourcelibSettings(paginate_default=3, paginate_max=6))

        service.setup(app, "messages")

        assert service.paginate == PaginationOptions(default=3, max=6)
        assert service.location == "messages"

    def test_setup_keeps_explicit_pagination(self):
        service = MemoryService(paginate={"default": 2, "max": 5})
        app = SimpleNamespace(settings=ResourcelibSettings(paginate_default=3, paginate_max=6))

        service.setup(app, "messages")

        assert service.paginate.default == 2

    def test_setup_respects_disabled_pagination(self):
        service = MemoryService()
        app = SimpleNamespace(settings=ResourcelibSettings(paginate_enabled=False))

        service.setup(app, "messages")

        assert service.paginate is None


class TestMemoryServiceCrud:
    """Test the six operations."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = MemoryService()

    @pytest.mark.asyncio
    async def test_create_single_assigns_id(self):
        created = await self.service.create({"name": "A"}, params())

        assert created == {"id": 1, "name": "A"}

    @pytest.mark.asyncio
    async def test_create_many_preserves_shape(self):
        created = await self.service.create([{"name": "A"}, {"name": "B"}], params())

        assert isinstance(created, list)
        assert [item["id"] for item in created] == [1, 2]

    @pytest.mark.asyncio
    async def test_create_with_own_id(self):
        created = await self.service.create({"id": "abc", "name": "A"}, params())

        assert created["id"] == "abc"
        assert await self.service.get("abc", params()) == created

    @pytest.mark.asyncio
    async def test_create_duplicate_id(self):
        await self.service.create({"id": 1}, params())

        with pytest.raises(Conflict):
            await self.service.create({"id": 1}, params())

    @pytest.mark.asyncio
    async def test_create_many_with_repeated_id_writes_nothing(self):
        """Test a batch with a repeated id is rejected as a whole."""
        with pytest.raises(Conflict):
            await self.service.create([{"id": 1, "a": 1}, {"id": 1, "a": 2}], params())

        assert self.service.store == {}

    @pytest.mark.asyncio
    async def test_create_many_with_stored_id_writes_nothing(self):
        await self.service.create({"id": 5}, params())

        with pytest.raises(Conflict):
            await self.service.create([{"name": "new"}, {"id": "5"}], params())

        assert list(self.service.store) == [5]

    @pytest.mark.asyncio
    async def test_create_many_generated_ids_skip_explicit_ones(self):
        created = await self.service.create([{"name": "A"}, {"id": 1, "name": "B"}], params())

        assert [item["id"] for item in created] == [2, 1]

    @pytest.mark.asyncio
    async def test_create_rejects_unusable_id(self):
        with pytest.raises(BadRequest):
            await self.service.create({"id": True}, params())
        with pytest.raises(BadRequest):
            await self.service.create({"id": [1]}, params())

        assert self.service.store == {}

    @pytest.mark.asyncio
    async def test_float_id(self):
        created = await self.service.create({"id": 1.5, "x": 1}, params())

        assert await self.service.get(1.5, params()) == created
        assert (await self.service.patch(1.5, {"x": 2}, params()))["x"] == 2
        assert await self.service.remove(1.5, params()) == {"id": 1.5, "x": 2}

    @pytest.mark.asyncio
    async def test_create_requires_mapping(self):
        with pytest.raises(BadRequest):
            await self.service.create("text", params())

    @pytest.mark.asyncio
    async def test_returned_items_are_copies(self):
        created = await self.service.create({"name": "A", "tags": ["x"]}, params())
        created["tags"].append("y")

        assert (await self.service.get(1, params()))["tags"] == ["x"]

    @pytest.mark.asyncio
    async def test_get_unknown(self):
        with pytest.raises(NotFound):
            await self.service.get(99, params())

    @pytest.mark.asyncio
    async def test_get_with_digit_string(self):
        await self.service.create({"name": "A"}, params())

        assert (await self.service.get("1", params()))["name"] == "A"

    @pytest.mark.asyncio
    async def test_get_respects_query(self):
        await self.service.create({"name": "A"}, params())

        with pytest.raises(NotFound):
            await self.service.get(1, params(query={"name": "B"}))

    @pytest.mark.asyncio
    async def test_get_select(self):
        await self.service.create({"name": "A", "age": 3}, params())

        assert await self.service.get(1, params(query={"$select": ["name"]})) == {"id": 1, "name": "A"}

    @pytest.mark.asyncio
    async def test_patch_merges(self):
        await self.service.create({"name": "A", "age": 3}, params())

        patched = await self.service.patch(1, {"age": 4}, params())

        assert patched == {"id": 1, "name": "A", "age": 4}
        assert await self.service.get(1, params()) == patched

    @pytest.mark.asyncio
    async def test_patch_cannot_change_id(self):
        await self.service.create({"name": "A"}, params())

        patched = await self.service.patch(1, {"id": 7, "name": "B"}, params())

        assert patched["id"] == 1

    @pytest.mark.asyncio
    async def test_update_replaces(self):
        await self.service.create({"name": "A", "age": 3}, params())

        updated = await self.service.update(1, {"name": "B"}, params())

        assert updated == {"id": 1, "name": "B"}
        assert "age" not in await self.service.get(1, params())

    @pytest.mark.asyncio
    async def test_update_unknown(self):
        with pytest.raises(NotFound):
            await self.service.update(5, {"name": "B"}, params())

    @pytest.mark.asyncio
    async def test_remove(self):
        await self.service.create({"name": "A"}, params())

        removed = await self.service.remove(1, params())

        assert removed == {"id": 1, "name": "A"}
        with pytest.raises(NotFound):
            await self.service.get(1, params())

    @pytest.mark.asyncio
    async def test_remove_unknown(self):
        with pytest.raises(NotFound):
            await self.service.remove(1, params())


class TestMemoryServiceBulk:
    """Test update/patch/remove with a None id."""

    def setup_method(self):
        self.service = MemoryService(store={
            1: {"name": "A", "done": False},
            2: {"name": "B", "done": True},
            3: {"name": "C", "done": True},
        })

    @pytest.mark.asyncio
    async def test_bulk_patch(self):
        patched = await self.service.patch(None, {"archived": True}, params(query={"done": True}))

        assert [item["id"] for item in patched] == [2, 3]
        assert all(item["archived"] for item in patched)
        assert "archived" not in self.service.store[1]

    @pytest.mark.asyncio
    async def test_bulk_update(self):
        updated = await self.service.update(None, {"name": "X"}, params(query={"done": True}))

        assert updated == [{"id": 2, "name": "X"}, {"id": 3, "name": "X"}]
        assert self.service.store[1]["name"] == "A"

    @pytest.mark.asyncio
    async def test_bulk_remove(self):
        removed = await self.service.remove(None, params(query={"done": True}))

        assert len(removed) == 2
        assert list(self.service.store) == [1]

    @pytest.mark.asyncio
    async def test_bulk_without_matches(self):
        assert await self.service.remove(None, params(query={"name": "Z"})) == []


class TestMemoryServiceFind:
    """Test find with queries and pagination."""

    def setup_method(self):
        self.service = MemoryService(
            store={i: {"name": f"user{i}", "age": 20 + i % 5} for i in range(1, 13)},
            paginate={"default": 5, "max": 8},
        )

    @pytest.mark.asyncio
    async def test_paginated_by_default(self):
        page = await self.service.find(params())

        assert isinstance(page, Page)
        assert page.total == 12
        assert page.limit == 5
        assert page.skip == 0
        assert len(page.data) == 5

    @pytest.mark.asyncio
    async def test_pagination_disabled(self):
        result = await self.service.find(params(paginate=False))

        assert isinstance(result, list)
        assert len(result) == 12

    @pytest.mark.asyncio
    async def test_limit_capped_at_max(self):
        page = await self.service.find(params(query={"$limit": 100}))

        assert page.limit == 8
        assert len(page.data) == 8

    @pytest.mark.asyncio
    async def test_skip(self):
        page = await self.service.find(params(query={"$skip": 10}))

        assert page.skip == 10
        assert len(page.data) == 2
        assert page.skip + len(page.data) <= page.total

    @pytest.mark.asyncio
    async def test_call_level_pagination_options(self):
        page = await self.service.find(params(paginate={"default": 2, "max": 3}))

        assert page.limit == 2

    @pytest.mark.asyncio
    async def test_query_criteria(self):
        page = await self.service.find(params(query={"age": {"$gte": 23}}))

        assert page.total == 4
        assert all(item["age"] >= 23 for item in page.data)

    @pytest.mark.asyncio
    async def test_sort_and_select(self):
        result = await self.service.find(params(
            paginate=False,
            query={"$sort": {"age": -1, "name": 1}, "$select": ["age"], "$limit": 2},
        ))

        assert result == [{"id": 4, "age": 24}, {"id": 9, "age": 24}]

    @pytest.mark.asyncio
    async def test_limit_without_pagination(self):
        service = MemoryService(store={1: {}, 2: {}, 3: {}})

        result = await service.find(params(query={"$limit": 2, "$skip": 1}))

        assert [item["id"] for item in result] == [2, 3]

    @pytest.mark.asyncio
    async def test_invalid_query(self):
        with pytest.raises(BadRequest):
            await self.service.find(params(query={"$limit": -5}))
