"""In-memory license knowledge graph.

Provides a dict-backed graph holding license, obligation, right, condition,
limitation and use-case nodes plus the compatibility, obligation and right
edges between them.  Secondary indexes on category, family, edge type and
adjacency keep every query proportional to its *result* set.

Dangling edges (an endpoint that has not been added, or never will be) are
accepted while loading and silently skipped by every query;
:meth:`KnowledgeGraph.dangling_edges` reports them.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from collections.abc import Iterator

from license_kg.core.graph.model import (
    CompatibilityDirection,
    CompatibilityEdge,
    ConditionNode,
    GraphEdge,
    GraphNode,
    LicenseCategory,
    LicenseNode,
    LimitationNode,
    NodeLabel,
    ObligationEdge,
    ObligationNode,
    RelType,
    RightEdge,
    RightNode,
    UseCaseNode,
    normalize_license_id,
)

class KnowledgeGraph:
    """A directed graph of licenses and the facts attached to them.

    Nodes are keyed by ``(label, id)``; edges by their deterministic ``id``,
    so adding the same node or edge twice overwrites instead of duplicating.
    License ids are uppercased on insert and on every lookup.
    """

    def __init__(self) -> None:
        self._nodes: dict[NodeLabel, dict[str, GraphNode]] = defaultdict(dict)
        self._edges: dict[str, GraphEdge] = {}

        # Secondary indexes, kept in sync by the add helpers.
        self._by_category: dict[LicenseCategory, dict[str, LicenseNode]] = defaultdict(dict)
        self._by_family: dict[str, dict[str, LicenseNode]] = defaultdict(dict)
        self._by_rel_type: dict[RelType, dict[str, GraphEdge]] = defaultdict(dict)
        self._outgoing: dict[str, dict[str, GraphEdge]] = defaultdict(dict)
        self._incoming: dict[str, dict[str, GraphEdge]] = defaultdict(dict)

        # license id -> edge id -> (neighbour, edge); bidirectional edges are
        # listed under both endpoints.
        self._compat_adjacency: dict[str, dict[str, tuple[str, CompatibilityEdge]]] = (
            defaultdict(dict)
        )

    # -- nodes ---------------------------------------------------------------

    def add_node(self, node: GraphNode) -> None:
        """Add *node*, replacing any existing node of the same kind and id."""
        if isinstance(node, LicenseNode):
            self.add_license(node)
            return
        self._nodes[node.label][node.id] = node

    def add_license(self, license_node: LicenseNode) -> None:
        """Add a license node and refresh its category and family indexes."""
        lid = normalize_license_id(license_node.id)
        license_node.id = lid
        old = self._nodes[NodeLabel.LICENSE].get(lid)
        if old is not None:
            self._by_category[old.category].pop(lid, None)
            if old.family:
                self._by_family[old.family.lower()].pop(lid, None)
        self._nodes[NodeLabel.LICENSE][lid] = license_node
        self._by_category[license_node.category][lid] = license_node
        if license_node.family:
            self._by_family[license_node.family.lower()][lid] = license_node

    def iter_nodes(self) -> Iterator[GraphNode]:
        """Yield all nodes of every kind without creating an intermediate list."""
        for nodes in self._nodes.values():
            yield from nodes.values()

    def count_nodes_by_label(self, label: NodeLabel) -> int:
        return len(self._nodes.get(label, {}))

    @property
    def node_count(self) -> int:
        return sum(len(nodes) for nodes in self._nodes.values())

    def get_license(self, license_id: str) -> LicenseNode | None:
        """Return the license for *license_id* (any casing), or ``None``."""
        return self._nodes.get(NodeLabel.LICENSE, {}).get(normalize_license_id(license_id))

    def get_all_licenses(self) -> list[LicenseNode]:
        return list(self._nodes.get(NodeLabel.LICENSE, {}).values())

    def get_licenses_by_category(self, category: LicenseCategory) -> list[LicenseNode]:
        return list(self._by_category.get(category, {}).values())

    def get_licenses_by_family(self, family: str) -> list[LicenseNode]:
        return list(self._by_family.get(family.lower(), {}).values())

    def get_families(self) -> list[str]:
        """Return the family names in insertion order, using their stored casing."""
        families: dict[str, None] = {}
        for lic in self.get_all_licenses():
            if lic.family:
                families.setdefault(lic.family, None)
        return list(families)

    def search_licenses(self, query: str, limit: int = 20) -> list[LicenseNode]:
        """Case-insensitive substring search over license id, SPDX id and name.

        Results keep insertion order and are truncated to *limit*.
        """
        needle = query.strip().lower()
        if not needle or limit <= 0:
            return []
        matches: list[LicenseNode] = []
        for lic in self.get_all_licenses():
            haystacks = (lic.id.lower(), lic.spdx_id.lower(), lic.name.lower())
            if any(needle in h for h in haystacks):
                matches.append(lic)
                if len(matches) >= limit:
                    break
        return matches

    def get_obligation(self, obligation_id: str) -> ObligationNode | None:
        return self._nodes.get(NodeLabel.OBLIGATION, {}).get(obligation_id)

    def get_all_obligations(self) -> list[ObligationNode]:
        return list(self._nodes.get(NodeLabel.OBLIGATION, {}).values())

    def get_right(self, right_id: str) -> RightNode | None:
        return self._nodes.get(NodeLabel.RIGHT, {}).get(right_id)

    def get_all_rights(self) -> list[RightNode]:
        return list(self._nodes.get(NodeLabel.RIGHT, {}).values())

    def get_condition(self, condition_id: str) -> ConditionNode | None:
        return self._nodes.get(NodeLabel.CONDITION, {}).get(condition_id)

    def get_limitation(self, limitation_id: str) -> LimitationNode | None:
        return self._nodes.get(NodeLabel.LIMITATION, {}).get(limitation_id)

    def get_use_case(self, use_case_id: str) -> UseCaseNode | None:
        return self._nodes.get(NodeLabel.USE_CASE, {}).get(use_case_id.strip().lower())

    def get_all_use_cases(self) -> list[UseCaseNode]:
        return list(self._nodes.get(NodeLabel.USE_CASE, {}).values())

    # -- edges ---------------------------------------------------------------

    def add_edge(self, edge: GraphEdge) -> None:
        """Add *edge*, replacing any existing edge with the same id.

        Endpoints need not exist yet; see :meth:`dangling_edges`.
        """
        edge_id = edge.id
        old = self._edges.get(edge_id)
        if old is not None:
            self._outgoing[old.source].pop(edge_id, None)
            self._incoming[old.target].pop(edge_id, None)
            if isinstance(old, CompatibilityEdge):
                self._compat_adjacency[old.target].pop(edge_id, None)

        self._edges[edge_id] = edge
        self._by_rel_type[edge.type][edge_id] = edge
        self._outgoing[edge.source][edge_id] = edge
        self._incoming[edge.target][edge_id] = edge

        if isinstance(edge, CompatibilityEdge):
            self._compat_adjacency[edge.source][edge_id] = (edge.target, edge)
            if edge.direction == CompatibilityDirection.BIDIRECTIONAL:
                self._compat_adjacency[edge.target][edge_id] = (edge.source, edge)

    def iter_edges(self) -> Iterator[GraphEdge]:
        return iter(self._edges.values())

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def count_edges_by_type(self, rel_type: RelType) -> int:
        return len(self._by_rel_type.get(rel_type, {}))

    def get_outgoing(self, node_id: str, rel_type: RelType | None = None) -> list[GraphEdge]:
        """Return edges originating from *node_id*.

        If *rel_type* is given, only edges of that type are returned.
        """
        edges = self._outgoing.get(normalize_license_id(node_id), {})
        if rel_type is None:
            return list(edges.values())
        return [e for e in edges.values() if e.type == rel_type]

    def get_incoming(self, node_id: str, rel_type: RelType | None = None) -> list[GraphEdge]:
        """Return edges pointing at *node_id*.

        License ids match in any casing; obligation and right ids match as stored.
        """
        if self.get_license(node_id) is not None:
            node_id = normalize_license_id(node_id)
        edges = self._incoming.get(node_id, {})
        if rel_type is None:
            return list(edges.values())
        return [e for e in edges.values() if e.type == rel_type]

    def get_compatibility_edge(self, license_a: str, license_b: str) -> CompatibilityEdge | None:
        """Return the curated edge answering ``(license_a, license_b)``.

        A direct ``a -> b`` edge wins; otherwise a bidirectional ``b -> a``
        edge answers the reversed query.  Dangling edges are ignored.
        """
        a = normalize_license_id(license_a)
        b = normalize_license_id(license_b)
        if self.get_license(a) is None or self.get_license(b) is None:
            return None

        direct = self._edges.get(f"{RelType.COMPATIBLE_WITH.value}:{a}->{b}")
        if isinstance(direct, CompatibilityEdge):
            return direct
        reverse = self._edges.get(f"{RelType.COMPATIBLE_WITH.value}:{b}->{a}")
        if (
            isinstance(reverse, CompatibilityEdge)
            and reverse.direction == CompatibilityDirection.BIDIRECTIONAL
        ):
            return reverse
        return None

    def compatibility_neighbors(self, license_id: str) -> list[tuple[str, CompatibilityEdge]]:
        """Return ``(neighbour, edge)`` pairs reachable from *license_id* in one hop.

        Forward edges are listed only under their source; bidirectional edges
        under both endpoints.  Order follows edge insertion.  Neighbours that
        are not in the graph are skipped.
        """
        entries = self._compat_adjacency.get(normalize_license_id(license_id), {})
        return [
            (neighbor, edge)
            for neighbor, edge in entries.values()
            if self.get_license(neighbor) is not None
        ]

    def get_obligation_edges(self, license_id: str) -> list[tuple[ObligationEdge, ObligationNode]]:
        """Return the license's obligation edges paired with their resolved obligation."""
        pairs: list[tuple[ObligationEdge, ObligationNode]] = []
        for edge in self.get_outgoing(license_id, RelType.REQUIRES):
            obligation = self.get_obligation(edge.target)
            if obligation is not None:
                pairs.append((edge, obligation))
        return pairs

    def get_right_edges(self, license_id: str) -> list[tuple[RightEdge, RightNode]]:
        pairs: list[tuple[RightEdge, RightNode]] = []
        for edge in self.get_outgoing(license_id, RelType.GRANTS):
            right = self.get_right(edge.target)
            if right is not None:
                pairs.append((edge, right))
        return pairs

    def dangling_edges(self) -> list[GraphEdge]:
        """Return every edge with an endpoint that does not resolve to a node."""
        dangling: list[GraphEdge] = []
        for edge in self._edges.values():
            if self.get_license(edge.source) is None:
                dangling.append(edge)
            elif isinstance(edge, CompatibilityEdge):
                if self.get_license(edge.target) is None:
                    dangling.append(edge)
            elif isinstance(edge, ObligationEdge):
                if self.get_obligation(edge.target) is None:
                    dangling.append(edge)
            elif self.get_right(edge.target) is None:
                dangling.append(edge)
        return dangling

    # -- lifecycle -----------------------------------------------------------

    def clear(self) -> None:
        """Drop every node, edge and index."""
        self._nodes.clear()
        self._edges.clear()
        self._by_category.clear()
        self._by_family.clear()
        self._by_rel_type.clear()
        self._outgoing.clear()
        self._incoming.clear()
        self._compat_adjacency.clear()

    def copy(self) -> KnowledgeGraph:
        """Return an independent copy whose indexes can be mutated freely.

        Node and edge objects are deep-copied so that a copy can be extended
        while readers keep using the original.
        """
        clone = KnowledgeGraph()
        for node in self.iter_nodes():
            clone.add_node(copy.deepcopy(node))
        for edge in self._edges.values():
            clone.add_edge(copy.deepcopy(edge))
        return clone

    def stats(self) -> dict[str, int]:
        """Return a summary of graph size."""
        return {
            "licenses": self.count_nodes_by_label(NodeLabel.LICENSE),
            "obligations": self.count_nodes_by_label(NodeLabel.OBLIGATION),
            "rights": self.count_nodes_by_label(NodeLabel.RIGHT),
            "conditions": self.count_nodes_by_label(NodeLabel.CONDITION),
            "limitations": self.count_nodes_by_label(NodeLabel.LIMITATION),
            "use_cases": self.count_nodes_by_label(NodeLabel.USE_CASE),
            "edges": self.edge_count,
        }
