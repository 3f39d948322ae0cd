"""Graph model and in-memory store."""

from license_kg.core.graph.graph import KnowledgeGraph

__all__ = ["KnowledgeGraph"]
