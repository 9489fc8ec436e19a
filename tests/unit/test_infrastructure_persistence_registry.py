"""Unit tests for the ORM registry and adapter resolution."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from oryx.core.config_loader import MEMORY_ADAPTER, OrmConfig
from oryx.core.errors import DataLayerError
from oryx.infrastructure.persistence.adapters.sql import SqlAdapter
from oryx.infrastructure.persistence.collection import Collection
from oryx.infrastructure.persistence.registry import ORM, resolve_adapter


def _config(**connections) -> OrmConfig:
    return OrmConfig(
        adapters={"memory": MEMORY_ADAPTER},
        connections=connections or {"default": {"adapter": "memory"}},
    )


def _mock_adapter() -> MagicMock:
    adapter = MagicMock()
    adapter.connect = AsyncMock()
    adapter.define = AsyncMock()
    adapter.teardown = AsyncMock()
    return adapter


def _mock_config(adapter: MagicMock) -> OrmConfig:
    return OrmConfig(adapters={"mock": adapter}, connections={"default": {"adapter": "mock"}})


@pytest.mark.unit
class TestORM:
    """Test definition registration and initialization."""

    async def test_initialize_returns_handles_in_load_order(self):
        """Test every definition gets a live handle."""
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))
        orm.load_collection(Collection.extend(identity="post", attributes={}))

        handles = await orm.initialize(_config())

        assert list(handles) == ["user", "post"]
        assert list(orm.collections) == ["user", "post"]
        assert isinstance(orm.adapters["default"], SqlAdapter)
        await orm.teardown()

    async def test_connections_share_one_adapter(self):
        """Test collections on the same connection share an adapter."""
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))
        orm.load_collection(Collection.extend(identity="post", attributes={}))

        await orm.initialize(_config())

        assert len(orm.adapters) == 1
        await orm.teardown()

    def test_repeated_identity_replaces_definition(self):
        """Test the last definition of an identity wins."""
        orm = ORM()
        first = Collection.extend(identity="user", attributes={})
        second = Collection.extend(identity="user", attributes={"name": "string"})

        orm.load_collection(first)
        orm.load_collection(second)

        assert orm.definitions == {"user": second}

    def test_load_collection_rejects_non_collections(self):
        """Test only Collection subclasses are accepted."""
        with pytest.raises(DataLayerError, match="Not a collection definition"):
            ORM().load_collection(dict)

    async def test_unknown_connection_raises(self):
        """Test a definition pointing at a missing connection fails."""
        orm = ORM()
        orm.load_collection(
            Collection.extend(identity="user", connection="archive", attributes={})
        )

        with pytest.raises(DataLayerError, match="Unknown connection: 'archive'"):
            await orm.initialize(_config())

    async def test_unknown_adapter_raises(self):
        """Test a connection naming an unconfigured adapter fails."""
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))

        with pytest.raises(DataLayerError, match="Unknown adapter 'redis'"):
            await orm.initialize(_config(default={"adapter": "redis"}))

    async def test_connect_failure_is_wrapped(self):
        """Test adapter connection errors surface as DataLayerError."""
        adapter = _mock_adapter()
        adapter.connect.side_effect = ConnectionError("refused")
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))

        with pytest.raises(DataLayerError, match="Unable to connect 'default'") as exc_info:
            await orm.initialize(_mock_config(adapter))

        assert isinstance(exc_info.value.cause, ConnectionError)

    async def test_teardown_releases_adapters(self):
        """Test teardown tears down adapters and forgets handles."""
        adapter = _mock_adapter()
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))
        await orm.initialize(_mock_config(adapter))

        await orm.teardown()

        adapter.teardown.assert_awaited_once()
        assert orm.collections == {}
        assert orm.adapters == {}

    async def test_initialize_again_releases_previous_adapters(self):
        """Test re-initializing tears down the adapters it replaces."""
        adapter = _mock_adapter()
        orm = ORM()
        orm.load_collection(Collection.extend(identity="user", attributes={}))
        config = _mock_config(adapter)

        await orm.initialize(config)
        adapter.teardown.assert_not_awaited()

        await orm.initialize(config)

        adapter.teardown.assert_awaited_once()
        assert list(orm.collections) == ["user"]


@pytest.mark.unit
class TestResolveAdapter:
    """Test adapter references."""

    def test_colon_reference(self):
        """Test "module:Class" strings are imported and instantiated."""
        adapter = resolve_adapter(MEMORY_ADAPTER, {"url": "sqlite+aiosqlite:///:memory:"})

        assert isinstance(adapter, SqlAdapter)
        assert adapter.engine.url.drivername == "sqlite+aiosqlite"

    def test_dotted_reference(self):
        """Test dotted paths are accepted as well."""
        adapter = resolve_adapter("oryx.infrastructure.persistence.adapters.sql.SqlAdapter", {})

        assert isinstance(adapter, SqlAdapter)

    def test_class_and_instance(self):
        """Test classes are instantiated and instances used as is."""
        instance = _mock_adapter()

        assert isinstance(resolve_adapter(SqlAdapter, {}), SqlAdapter)
        assert resolve_adapter(instance, {"ignored": True}) is instance

    def test_constructor_errors_are_wrapped(self):
        with pytest.raises(DataLayerError, match="Unable to create adapter SqlAdapter"):
            resolve_adapter(SqlAdapter, {"flavour": "test"})

    @pytest.mark.parametrize("reference", ["missing.module:Adapter", "oryx:Nothing", "bare"])
    def test_bad_reference_raises(self, reference):
        """Test unimportable references surface as DataLayerError."""
        with pytest.raises(DataLayerError):
            resolve_adapter(reference, {})
