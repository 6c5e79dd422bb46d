"""Ancestor numbering."""

from kinvault.ancestry.ahnentafel import (
    AhnentafelResult,
    AncestorNumberer,
    GenerationCompleteness,
    generation_label,
    generation_of,
)

__all__ = [
    "AhnentafelResult",
    "AncestorNumberer",
    "GenerationCompleteness",
    "generation_label",
    "generation_of",
]
