"""
Construct definition loader.

A definition file is an ordinary Python module that exposes its factory
under a well-known attribute (``construct`` by default)::

    # infra/api/users/get.py
    from stacksmith import ConstructFactory

    class GetUser(ConstructFactory):
        async def _init(self, scope, id, dir_info, props):
            ...

    construct = GetUser("get-user")
"""

import hashlib
import importlib.util
import logging
import os
import sys
from typing import Any

from .faults import DiscoveryLoadFault

logger = logging.getLogger("stacksmith.loader")

DEFAULT_EXPORT = "construct"


def _module_name(path: str) -> str:
    digest = hashlib.sha256(path.encode("utf-8")).hexdigest()[:16]
    stem = os.path.splitext(os.path.basename(path))[0].replace("-", "_").replace(".", "_")
    return f"_stacksmith_construct_{stem}_{digest}"


def load_construct(path: str, export_name: str = DEFAULT_EXPORT) -> Any:
    """
    Execute the file at ``path`` and return its exported value.

    Each file is executed once per process: later calls return the export
    of the module already loaded from ``path``, so a factory defined in a
    definition file keeps its per-scope records across builds. Returns
    None when the module does not define ``export_name``.

    Raises:
        DiscoveryLoadFault: the file could not be imported.
    """
    path = os.path.abspath(path)
    name = _module_name(path)

    module = sys.modules.get(name)
    if module is not None:
        return getattr(module, export_name, None)

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise DiscoveryLoadFault(path, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        logger.error(f"Failed to load construct definition {path}: {exc}")
        raise DiscoveryLoadFault(path, f"{type(exc).__name__}: {exc}") from exc

    return getattr(module, export_name, None)
