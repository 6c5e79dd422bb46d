"""Cached family graph over the record store."""

from kinvault.graph.cache import FamilyGraph, GraphStats

__all__ = ["FamilyGraph", "GraphStats"]
