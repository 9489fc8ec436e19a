"""Collection registry.

Model definitions are registered with ``load_collection`` while discovery
runs; ``initialize`` then resolves the adapter of every connection in use
and returns live handles keyed by identity.

Adapters are referenced from configuration as ``"pkg.module:ClassName"``
strings, or given directly as classes or instances.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

from oryx.core.errors import DataLayerError
from oryx.infrastructure.persistence.collection import Collection, is_collection
from oryx.infrastructure.persistence.handle import CollectionHandle

if TYPE_CHECKING:
    from oryx.core.config_loader import OrmConfig
    from oryx.domain.protocols.adapter_protocol import AdapterProtocol


class ORM:
    """Registry of model definitions and their connection adapters."""

    def __init__(self) -> None:
        self._definitions: dict[str, type[Collection]] = {}
        self._adapters: dict[str, AdapterProtocol] = {}
        self._collections: dict[str, CollectionHandle] = {}

    @property
    def collections(self) -> dict[str, CollectionHandle]:
        """Handles created by the last ``initialize``, keyed by identity."""
        return dict(self._collections)

    @property
    def definitions(self) -> dict[str, type[Collection]]:
        """Registered definitions in load order."""
        return dict(self._definitions)

    @property
    def adapters(self) -> dict[str, AdapterProtocol]:
        """Adapters connected by the last ``initialize``, keyed by connection."""
        return dict(self._adapters)

    def load_collection(self, definition: type[Collection]) -> None:
        """Register a model definition; a repeated identity replaces the earlier one.

        Raises:
            DataLayerError: If definition is not a Collection subclass with an identity.
        """
        if not is_collection(definition):
            raise DataLayerError(f"Not a collection definition: {definition!r}")
        self._definitions[str(definition.identity)] = definition

    async def initialize(self, config: OrmConfig) -> dict[str, CollectionHandle]:
        """Connect adapters and define every registered collection.

        Adapters from an earlier call are torn down first.

        Args:
            config: The ``orm`` section of the instance configuration.

        Returns:
            dict[str, CollectionHandle]: Handles keyed by identity, in load order.

        Raises:
            DataLayerError: If a connection or adapter is unknown or fails.
        """
        await self.teardown()

        adapters: dict[str, AdapterProtocol] = {}
        handles: dict[str, CollectionHandle] = {}

        for identity, definition in self._definitions.items():
            connection = definition.connection
            if connection not in adapters:
                adapters[connection] = await self._connect(config, connection)
            adapter = adapters[connection]

            handle = CollectionHandle(definition, adapter)
            try:
                await adapter.define(identity, handle.attributes, handle.primary_key)
            except DataLayerError:
                raise
            except Exception as e:
                raise DataLayerError(
                    f"Unable to define collection '{identity}': {e}", {"cause": e}
                ) from e
            handles[identity] = handle

        self._adapters = adapters
        self._collections = handles
        return handles

    async def teardown(self) -> None:
        """Tear down every connected adapter."""
        adapters, self._adapters = self._adapters, {}
        self._collections = {}
        for adapter in adapters.values():
            await adapter.teardown()

    async def _connect(self, config: OrmConfig, name: str) -> AdapterProtocol:
        connection = config.connections.get(name)
        if connection is None:
            raise DataLayerError(f"Unknown connection: '{name}'")

        if connection.adapter not in config.adapters:
            raise DataLayerError(
                f"Unknown adapter '{connection.adapter}' for connection '{name}'"
            )

        adapter = resolve_adapter(config.adapters[connection.adapter], connection.options())
        try:
            await adapter.connect()
        except Exception as e:
            raise DataLayerError(
                f"Unable to connect '{name}': {e}", {"cause": e}
            ) from e
        return adapter


def resolve_adapter(reference: Any, options: dict[str, Any]) -> AdapterProtocol:
    """Build an adapter from a reference.

    Args:
        reference: ``"pkg.module:ClassName"`` (or dotted) string, adapter class,
            or adapter instance (used as is, options ignored).
        options: Keyword arguments for the adapter class.

    Raises:
        DataLayerError: If the reference cannot be imported or instantiated.
    """
    if isinstance(reference, str):
        reference = _import_reference(reference)

    if isinstance(reference, type):
        try:
            return reference(**options)
        except Exception as e:
            raise DataLayerError(
                f"Unable to create adapter {reference.__name__}: {e}", {"cause": e}
            ) from e

    return reference


def _import_reference(reference: str) -> Any:
    if ":" in reference:
        module_name, _, attribute = reference.partition(":")
    else:
        module_name, _, attribute = reference.rpartition(".")

    if not module_name or not attribute:
        raise DataLayerError(f"Invalid adapter reference: '{reference}'")

    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise DataLayerError(
            f"Unable to import adapter '{reference}'", {"cause": e}
        ) from e
