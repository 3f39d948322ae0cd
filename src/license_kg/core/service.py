"""Process-wide facade over the license knowledge graph.

:class:`LicenseGraphService` owns the current :class:`KnowledgeGraph`
snapshot.  The seed is loaded lazily on first use, exactly once even under
concurrent first callers.  Readers take the snapshot reference without
locking; writers (reload, clear, custom rules) build a new graph and swap
the reference under the lock, so a reader sees either the old graph or the
new one and never a partial state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from license_kg.config import DEFAULT_MAX_PATH_DEPTH, DEFAULT_SEARCH_LIMIT
from license_kg.core import analysis, compatibility, obligations
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityEdge,
    CompatibilityLevel,
    LicenseCategory,
    LicenseNode,
    ObligationNode,
    RelType,
    RightNode,
    UseCaseNode,
)
from license_kg.core.graph.seed import load_seed_data
from license_kg.core.results import (
    AggregatedObligations,
    CompatibilityPath,
    CompatibilityResult,
    DependencyLicense,
    DependencyTreeAnalysis,
    GraphStatistics,
    LicenseConflict,
    LicenseDetails,
    ObligationForUseCase,
    ObligationWithScope,
)

logger = logging.getLogger(__name__)

GraphLoader = Callable[[KnowledgeGraph], KnowledgeGraph]

class LicenseGraphService:
    """Lazily initialised, reloadable access point to the knowledge graph.

    Args:
        loader: Populates a fresh graph; defaults to the seed catalog.
    """

    def __init__(self, loader: GraphLoader = load_seed_data) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._graph: KnowledgeGraph | None = None
        self._last_loaded: datetime | None = None

    # -- lifecycle -----------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._graph is not None

    def initialize(self) -> None:
        """Load the seed if no graph is loaded yet."""
        self._snapshot()

    def _snapshot(self) -> KnowledgeGraph:
        graph = self._graph
        if graph is not None:
            return graph
        with self._lock:
            if self._graph is None:
                self._graph = self._build()
            return self._graph

    def _build(self) -> KnowledgeGraph:
        graph = self._loader(KnowledgeGraph())
        self._last_loaded = datetime.now(tz=timezone.utc)
        return graph

    def reload(self) -> None:
        """Rebuild the graph from the seed and swap it in atomically.

        Custom licenses and rules added since the last load are dropped.
        """
        with self._lock:
            self._graph = self._build()
        logger.info("License graph reloaded")

    def clear(self) -> None:
        """Replace the graph with an empty one.

        The service stays initialised: queries see the empty graph until the
        next :meth:`reload`.
        """
        with self._lock:
            self._graph = KnowledgeGraph()
            self._last_loaded = datetime.now(tz=timezone.utc)
        logger.info("License graph cleared")

    def add_custom_license(self, license_node: LicenseNode) -> None:
        """Add (or replace) a license without disturbing concurrent readers."""
        with self._lock:
            updated = (self._graph or self._build()).copy()
            updated.add_node(license_node)
            self._graph = updated
        logger.info("Added custom license %s", license_node.id)

    def add_compatibility_rule(self, edge: CompatibilityEdge) -> None:
        """Add (or replace) a curated compatibility edge."""
        with self._lock:
            updated = (self._graph or self._build()).copy()
            updated.add_edge(edge)
            self._graph = updated
        logger.info(
            "Added compatibility rule %s -> %s (%s)", edge.source, edge.target, edge.level.value
        )

    # -- lookups -------------------------------------------------------------

    def get_license(self, license_id: str) -> LicenseNode | None:
        return self._snapshot().get_license(license_id)

    def get_all_licenses(self) -> list[LicenseNode]:
        return self._snapshot().get_all_licenses()

    def get_licenses_by_category(self, category: LicenseCategory) -> list[LicenseNode]:
        return self._snapshot().get_licenses_by_category(category)

    def get_licenses_by_family(self, family: str) -> list[LicenseNode]:
        return self._snapshot().get_licenses_by_family(family)

    def search_licenses(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[LicenseNode]:
        return self._snapshot().search_licenses(query, limit)

    def get_obligation(self, obligation_id: str) -> ObligationNode | None:
        return self._snapshot().get_obligation(obligation_id)

    def get_all_obligations(self) -> list[ObligationNode]:
        return self._snapshot().get_all_obligations()

    def get_all_rights(self) -> list[RightNode]:
        return self._snapshot().get_all_rights()

    def get_use_case(self, use_case_id: str) -> UseCaseNode | None:
        return self._snapshot().get_use_case(use_case_id)

    def get_all_use_cases(self) -> list[UseCaseNode]:
        return self._snapshot().get_all_use_cases()

    def get_license_details(self, license_id: str) -> LicenseDetails | None:
        """Return a license with its obligations, rights and curated compatibility."""
        graph = self._snapshot()
        license_node = graph.get_license(license_id)
        if license_node is None:
            return None

        compatible: list[str] = []
        incompatible: list[str] = []
        for neighbor, edge in graph.compatibility_neighbors(license_node.id):
            bucket = incompatible if edge.level == CompatibilityLevel.INCOMPATIBLE else compatible
            bucket.append(neighbor)
        # Forward edges into this license answer the reverse question too.
        for edge in graph.get_incoming(license_node.id, RelType.COMPATIBLE_WITH):
            if edge.source in compatible or edge.source in incompatible:
                continue
            if graph.get_license(edge.source) is None:
                continue
            bucket = incompatible if edge.level == CompatibilityLevel.INCOMPATIBLE else compatible
            bucket.append(edge.source)

        return LicenseDetails(
            license=license_node,
            obligations=obligations.get_obligations_for_license(graph, license_node.id),
            rights=obligations.get_rights_for_license(graph, license_node.id),
            compatible_with=compatible,
            incompatible_with=incompatible,
        )

    def get_statistics(self) -> GraphStatistics:
        graph = self._snapshot()
        stats = graph.stats()
        by_category = {
            category: len(graph.get_licenses_by_category(category))
            for category in LicenseCategory
            if graph.get_licenses_by_category(category)
        }
        return GraphStatistics(
            total_licenses=stats["licenses"],
            total_obligations=stats["obligations"],
            total_rights=stats["rights"],
            total_conditions=stats["conditions"],
            total_limitations=stats["limitations"],
            total_use_cases=stats["use_cases"],
            total_edges=stats["edges"],
            total_compatibility_edges=graph.count_edges_by_type(RelType.COMPATIBLE_WITH),
            total_obligation_edges=graph.count_edges_by_type(RelType.REQUIRES),
            total_right_edges=graph.count_edges_by_type(RelType.GRANTS),
            licenses_by_category=by_category,
            license_families=graph.get_families(),
            last_loaded=self._last_loaded.isoformat() if self._last_loaded else None,
        )

    # -- engines -------------------------------------------------------------

    def _use_case(self, graph: KnowledgeGraph, use_case: UseCaseNode | str | None) -> UseCaseNode | None:
        if use_case is None or isinstance(use_case, UseCaseNode):
            return use_case
        resolved = graph.get_use_case(use_case)
        if resolved is None:
            raise ValueError(f"Unknown use case: {use_case}")
        return resolved

    def check_compatibility(
        self,
        license_a: str,
        license_b: str,
        use_case: UseCaseNode | str | None = None,
    ) -> CompatibilityResult:
        graph = self._snapshot()
        return compatibility.check_compatibility(
            graph, license_a, license_b, self._use_case(graph, use_case)
        )

    def check_compatibility_matrix(
        self,
        licenses: list[str],
        use_case: UseCaseNode | str | None = None,
    ) -> list[CompatibilityResult]:
        graph = self._snapshot()
        return compatibility.check_compatibility_matrix(
            graph, licenses, self._use_case(graph, use_case)
        )

    def find_compatibility_path(
        self, source: str, target: str, max_depth: int = DEFAULT_MAX_PATH_DEPTH
    ) -> CompatibilityPath | None:
        return compatibility.find_compatibility_path(self._snapshot(), source, target, max_depth)

    def get_obligations_for_license(self, license_id: str) -> list[ObligationWithScope]:
        return obligations.get_obligations_for_license(self._snapshot(), license_id)

    def get_obligations_for_use_case(
        self, license_id: str, use_case: UseCaseNode | str
    ) -> list[ObligationForUseCase]:
        graph = self._snapshot()
        resolved = self._use_case(graph, use_case)
        if resolved is None:
            raise ValueError("A use case is required")
        return obligations.get_obligations_for_use_case(graph, license_id, resolved)

    def get_rights_for_license(self, license_id: str) -> list[RightNode]:
        return obligations.get_rights_for_license(self._snapshot(), license_id)

    def aggregate_obligations(
        self,
        license_ids: Sequence[str],
        use_case: UseCaseNode | str | None = None,
    ) -> AggregatedObligations:
        graph = self._snapshot()
        return obligations.aggregate_obligations(graph, license_ids, self._use_case(graph, use_case))

    def analyze_dependency_tree(
        self,
        dependencies: Sequence[DependencyLicense],
        use_case: UseCaseNode | str | None = None,
    ) -> DependencyTreeAnalysis:
        graph = self._snapshot()
        return analysis.analyze_dependency_tree(
            graph, dependencies, self._use_case(graph, use_case)
        )

    def find_conflicts(
        self,
        dependencies: Sequence[DependencyLicense],
        use_case: UseCaseNode | str | None = None,
    ) -> list[LicenseConflict]:
        graph = self._snapshot()
        return analysis.find_conflicts(graph, dependencies, self._use_case(graph, use_case))
