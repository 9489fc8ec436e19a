"""Filesystem discovery of models and API packages.

Exports:
    load_models: Import model definitions and initialize the data layer
    mount_apis: Mount API routers and attach model routes
    ApiDescriptor: Location of an API package
"""

from oryx.discovery.apis import ApiDescriptor, mount_apis
from oryx.discovery.models import load_models

__all__ = ["ApiDescriptor", "load_models", "mount_apis"]
