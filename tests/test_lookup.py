import unittest

import pytest

from litecontext import (
    ApplicationContext,
    ContextClosedError,
    MappingDefinitionSource,
    NonUniqueTypeError,
    NoSuchDefinitionError,
    ObjectDefinition,
    TypeRegistry,
)


class Cache: ...


class Database: ...


class ReplicaDatabase(Database): ...


class TestLookup(unittest.TestCase):
    ctx: ApplicationContext

    def setUp(self):
        types = TypeRegistry()
        types.register("Cache", Cache)
        types.register("Database", Database)
        types.register("ReplicaDatabase", ReplicaDatabase)
        self.ctx = ApplicationContext(
            MappingDefinitionSource(
                [
                    ObjectDefinition("cache", "Cache"),
                    ObjectDefinition("primary", "Database"),
                    ObjectDefinition("secondary", "Database"),
                    ObjectDefinition("replica", "ReplicaDatabase"),
                ]
            ),
            types,
        )

    def test_get_by_id_unknown_raises(self):
        with pytest.raises(NoSuchDefinitionError) as ctx:
            self.ctx.get_by_id("nope")
        assert ctx.value.object_id == "nope"

    def test_no_such_definition_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            self.ctx.get_by_id("nope")

    def test_get_by_type_returns_unique_match(self):
        assert self.ctx.get_by_type(Cache) is self.ctx.get_by_id("cache")

    def test_get_by_type_matches_exact_type_only(self):
        assert self.ctx.get_by_type(ReplicaDatabase) is self.ctx.get_by_id("replica")

    def test_get_by_type_with_several_matches_raises(self):
        with pytest.raises(NonUniqueTypeError) as ctx:
            self.ctx.get_by_type(Database)
        assert ctx.value.object_ids == ["primary", "secondary"]

    def test_get_by_type_without_match_raises(self):
        with pytest.raises(NoSuchDefinitionError):
            self.ctx.get_by_type(str)

    def test_get_by_id_and_type(self):
        assert self.ctx.get_by_id_and_type("secondary", Database) is self.ctx.get_by_id("secondary")

    def test_get_by_id_and_type_with_wrong_type_raises(self):
        with pytest.raises(NoSuchDefinitionError, match="id 'replica' and type Database"):
            self.ctx.get_by_id_and_type("replica", Database)

    def test_failed_lookup_leaves_context_usable(self):
        with pytest.raises(NonUniqueTypeError):
            self.ctx.get_by_type(Database)
        assert isinstance(self.ctx.get_by_id("primary"), Database)

    def test_get_dispatches_on_key(self):
        assert self.ctx.get("cache") is self.ctx.get(Cache)

    def test_list_ids_in_definition_order(self):
        assert self.ctx.list_ids() == ["cache", "primary", "secondary", "replica"]
        assert self.ctx.list_ids() == self.ctx.list_ids()

    def test_contains_and_len(self):
        assert "cache" in self.ctx
        assert "nope" not in self.ctx
        assert len(self.ctx) == 4

    def test_lookup_after_close_raises(self):
        self.ctx.close()
        with pytest.raises(ContextClosedError):
            self.ctx.get_by_id("cache")
        with pytest.raises(ContextClosedError):
            self.ctx.list_ids()

    def test_close_twice_is_noop(self):
        self.ctx.close()
        self.ctx.close()


def test_context_manager_closes_on_exit():
    types = TypeRegistry()
    types.register("Cache", Cache)

    with ApplicationContext(MappingDefinitionSource([ObjectDefinition("cache", "Cache")]), types) as ctx:
        assert isinstance(ctx.get_by_id("cache"), Cache)

    with pytest.raises(ContextClosedError):
        ctx.get_by_id("cache")
