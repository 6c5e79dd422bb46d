"""kinvault - family record graph over a Markdown vault.

Relationship linking with dual storage, duplicate detection,
Ahnentafel numbering and GEDCOM 5.5 import/export.
"""

import importlib

__version__ = "0.2.0"

_SUBPACKAGES = ("ancestry", "duplicates", "gedcom", "graph", "relationships", "store")


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    if name in _SUBPACKAGES:
        return importlib.import_module(f"{__name__}.{name}")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
