"""Import user modules and packages from filesystem paths.

Model files and API packages live in the application tree rather than on
``sys.path``, so they are imported from their location under a
deterministic module name derived from the path.
"""

from __future__ import annotations

import hashlib
import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType

_UNSAFE = re.compile(r"\W")


def module_name_for(path: Path, prefix: str) -> str:
    """Deterministic, importable module name for a path."""
    path_key = str(path).replace("\\", "/").lower().encode("utf-8")
    path_hash = hashlib.sha1(path_key).hexdigest()[:16]
    return f"{prefix}_{_UNSAFE.sub('_', path.stem)}_{path_hash}"


def import_path(path: Path, prefix: str) -> ModuleType:
    """Import a ``.py`` file, or a package directory via its ``__init__.py``.

    Args:
        path: Module file or package directory.
        prefix: Module name prefix (e.g. "oryx_model").

    Returns:
        ModuleType: The executed module, registered in ``sys.modules``.

    Raises:
        ImportError: If no module spec can be built for the path.
        Exception: Whatever the module raises while executing.
    """
    module_name = module_name_for(path, prefix)

    if path.is_dir():
        spec = importlib.util.spec_from_file_location(
            module_name,
            str(path / "__init__.py"),
            submodule_search_locations=[str(path)],
        )
    else:
        spec = importlib.util.spec_from_file_location(module_name, str(path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot create module spec for {path}")

    module = importlib.util.module_from_spec(spec)

    # registered before execution so relative imports and dataclasses resolve
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module
