"""License KG — license knowledge graph and policy evaluation engine."""

__version__ = "0.1.0"
