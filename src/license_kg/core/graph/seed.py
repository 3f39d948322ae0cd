"""Seed data for the license knowledge graph.

The graph is not persisted: :func:`load_seed_data` rebuilds it from the
tables below on start and on every reload.  Loading is idempotent, since
every node and edge is keyed deterministically and re-adding overwrites.
"""

from __future__ import annotations

import logging
from itertools import combinations

from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityDirection,
    CompatibilityEdge,
    CompatibilityLevel,
    ConditionNode,
    ConditionType,
    CopyleftStrength,
    DistributionType,
    EffortLevel,
    LicenseCategory,
    LicenseNode,
    LimitationNode,
    LimitationType,
    LinkingType,
    ObligationEdge,
    ObligationNode,
    ObligationScope,
    RightEdge,
    RightNode,
    RightScope,
    TriggerCondition,
    UseCaseNode,
)

logger = logging.getLogger(__name__)

ATTRIBUTION = "attribution"
SOURCE_DISCLOSURE = "source-disclosure"
STATE_CHANGES = "state-changes"
SAME_LICENSE = "same-license"
NETWORK_DISCLOSURE = "network-disclosure"
PATENT_GRANT = "patent-grant"
NOTICE_FILE = "notice-file"
INCLUDE_LICENSE = "include-license"
INCLUDE_COPYRIGHT = "include-copyright"
DISCLOSE_SOURCE = "disclose-source"

COMMERCIAL_USE = "commercial-use"
MODIFY = "modify"
DISTRIBUTE = "distribute"
PRIVATE_USE = "private-use"
PATENT_USE = "patent-use"
SUBLICENSE = "sublicense"

_ON_DIST = TriggerCondition.ON_DISTRIBUTION

# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

OBLIGATIONS: tuple[ObligationNode, ...] = (
    ObligationNode(
        id=ATTRIBUTION,
        name="Attribution",
        description="Include copyright notice and license text in distributions",
        trigger=_ON_DIST,
        effort=EffortLevel.LOW,
        examples=[
            "Include LICENSE file in distribution",
            "Add copyright notice in documentation",
            "Display attribution in 'About' dialog or credits",
        ],
    ),
    ObligationNode(
        id=SOURCE_DISCLOSURE,
        name="Source Code Disclosure",
        description="Make the complete corresponding source available to recipients",
        trigger=_ON_DIST,
        effort=EffortLevel.HIGH,
        examples=[
            "Provide source alongside binary distribution",
            "Offer source via written offer for 3 years",
            "Host source on public repository",
        ],
    ),
    ObligationNode(
        id=STATE_CHANGES,
        name="State Changes",
        description="Document modifications made to the original code",
        trigger=TriggerCondition.ON_MODIFICATION,
        effort=EffortLevel.MEDIUM,
        examples=[
            "Add modification notice to changed files",
            "Maintain changelog of modifications",
        ],
    ),
    ObligationNode(
        id=SAME_LICENSE,
        name="Same License (Copyleft)",
        description="Derivative works must be distributed under the same license",
        trigger=TriggerCondition.ON_DERIVATIVE,
        effort=EffortLevel.VERY_HIGH,
        examples=[
            "Release entire application under GPL",
            "Cannot combine with incompatible licenses",
        ],
    ),
    ObligationNode(
        id=NETWORK_DISCLOSURE,
        name="Network Source Disclosure (AGPL)",
        description="Provide source to users accessing software via network",
        trigger=TriggerCondition.ON_NETWORK_USE,
        effort=EffortLevel.VERY_HIGH,
        examples=[
            "Provide download link in SaaS application",
            "Display 'Source Code' link in web interface",
        ],
    ),
    ObligationNode(
        id=PATENT_GRANT,
        name="Patent Grant",
        description="Grant patent license to users of the software",
        trigger=TriggerCondition.ALWAYS,
        effort=EffortLevel.TRIVIAL,
        examples=["Covers patents necessary to use the software"],
    ),
    ObligationNode(
        id=NOTICE_FILE,
        name="NOTICE File Preservation",
        description="Include NOTICE file if present in the original distribution",
        trigger=_ON_DIST,
        effort=EffortLevel.LOW,
        examples=["Copy NOTICE file to distribution"],
    ),
    ObligationNode(
        id=INCLUDE_LICENSE,
        name="Include License Text",
        description="Include full license text with distribution",
        trigger=_ON_DIST,
        effort=EffortLevel.LOW,
        examples=["Include LICENSE file", "Include in package metadata"],
    ),
    ObligationNode(
        id=INCLUDE_COPYRIGHT,
        name="Include Copyright Notice",
        description="Preserve and include original copyright notices",
        trigger=_ON_DIST,
        effort=EffortLevel.LOW,
        examples=["Keep copyright headers in source files"],
    ),
    ObligationNode(
        id=DISCLOSE_SOURCE,
        name="Disclose Source (Weak Copyleft)",
        description="Disclose source for modified files only (file-level copyleft)",
        trigger=TriggerCondition.ON_MODIFICATION,
        effort=EffortLevel.MEDIUM,
        examples=[
            "Provide source for modified MPL files",
            "New files can remain proprietary",
        ],
    ),
)

RIGHTS: tuple[RightNode, ...] = (
    RightNode(COMMERCIAL_USE, "Commercial Use", "Use the software for commercial purposes"),
    RightNode(MODIFY, "Modify", "Make changes and modifications to the source code"),
    RightNode(DISTRIBUTE, "Distribute", "Distribute copies of the software"),
    RightNode(PRIVATE_USE, "Private Use", "Use the software privately"),
    RightNode(PATENT_USE, "Patent Use", "Use patents covered by the license", RightScope.LIMITED),
    RightNode(SUBLICENSE, "Sublicense", "Grant sublicenses to others", RightScope.LIMITED),
)

CONDITIONS: tuple[ConditionNode, ...] = (
    ConditionNode("copyleft", "Copyleft", "Derivative works carry the same license", ConditionType.COPYLEFT),
    ConditionNode("license-notice", "License and copyright notice", "Keep the notices intact", ConditionType.NOTICE),
    ConditionNode("disclose-source", "Disclose source", "Source must be made available", ConditionType.SOURCE_DISCLOSURE),
    ConditionNode("state-changes", "State changes", "Changes must be documented", ConditionType.STATE_CHANGES),
    ConditionNode("network-use", "Network use is distribution", "Network users get the source", ConditionType.NETWORK_COPYLEFT),
)

LIMITATIONS: tuple[LimitationNode, ...] = (
    LimitationNode("no-warranty", "No warranty", "Provided as is", LimitationType.WARRANTY),
    LimitationNode("no-liability", "No liability", "Authors are not liable for damages", LimitationType.LIABILITY),
    LimitationNode("no-trademark", "No trademark rights", "Trademarks are not licensed", LimitationType.TRADEMARK),
    LimitationNode("no-patent", "No patent rights", "Patents are not licensed", LimitationType.PATENT),
)

USE_CASES: tuple[UseCaseNode, ...] = (
    UseCaseNode(
        "internal",
        "Internal Use",
        "Software used only within the organization, not distributed",
        DistributionType.NONE,
    ),
    UseCaseNode(
        "saas",
        "SaaS Application",
        "Software provided as a service over the network",
        DistributionType.NETWORK,
    ),
    UseCaseNode(
        "desktop-app",
        "Desktop Application",
        "Distributed desktop application (binary distribution)",
        DistributionType.BINARY,
        LinkingType.STATIC,
    ),
    UseCaseNode(
        "library",
        "Library/SDK",
        "Distributed as a library for other developers",
        DistributionType.BINARY,
        LinkingType.DYNAMIC,
    ),
    UseCaseNode(
        "embedded",
        "Embedded System",
        "Software embedded in hardware devices",
        DistributionType.EMBEDDED,
        LinkingType.STATIC,
    ),
    UseCaseNode(
        "open-source",
        "Open Source Project",
        "Distributed as open source with full source code",
        DistributionType.SOURCE,
    ),
    UseCaseNode(
        "microservice",
        "Microservice",
        "Internal service communicating via network API",
        DistributionType.NONE,
        LinkingType.NETWORK_BOUNDARY,
    ),
)

_PD = (LicenseCategory.PUBLIC_DOMAIN, CopyleftStrength.NONE)
_PERM = (LicenseCategory.PERMISSIVE, CopyleftStrength.NONE)
_LGPL = (LicenseCategory.WEAK_COPYLEFT, CopyleftStrength.LIBRARY)
_FILE = (LicenseCategory.WEAK_COPYLEFT, CopyleftStrength.FILE)
_GPL = (LicenseCategory.STRONG_COPYLEFT, CopyleftStrength.STRONG)
_AGPL = (LicenseCategory.NETWORK_COPYLEFT, CopyleftStrength.NETWORK)

# (spdx id, name, (category, copyleft), osi approved, fsf free, version, family)
_LICENSE_ROWS: tuple[
    tuple[str, str, tuple[LicenseCategory, CopyleftStrength], bool, bool, str | None, str | None],
    ...,
] = (
    ("CC0-1.0", "Creative Commons Zero v1.0 Universal", _PD, False, True, "1.0", "CC"),
    ("Unlicense", "The Unlicense", _PD, True, True, None, None),
    ("WTFPL", "Do What The F*ck You Want To Public License", _PD, False, True, None, None),
    ("0BSD", "BSD Zero Clause License", _PD, True, True, None, "BSD"),
    ("MIT", "MIT License", _PERM, True, True, None, "MIT"),
    ("Apache-2.0", "Apache License 2.0", _PERM, True, True, "2.0", "Apache"),
    ("BSD-2-Clause", 'BSD 2-Clause "Simplified" License', _PERM, True, True, None, "BSD"),
    ("BSD-3-Clause", 'BSD 3-Clause "New" or "Revised" License', _PERM, True, True, None, "BSD"),
    ("ISC", "ISC License", _PERM, True, True, None, None),
    ("Zlib", "zlib License", _PERM, True, True, None, None),
    ("X11", "X11 License", _PERM, False, True, None, None),
    ("Artistic-2.0", "Artistic License 2.0", _PERM, True, True, "2.0", None),
    ("BSL-1.0", "Boost Software License 1.0", _PERM, True, True, "1.0", None),
    ("LGPL-2.0-only", "GNU Lesser General Public License v2.0 only", _LGPL, True, True, "2.0", "LGPL"),
    ("LGPL-2.0-or-later", "GNU Lesser General Public License v2.0 or later", _LGPL, True, True, "2.0", "LGPL"),
    ("LGPL-2.1-only", "GNU Lesser General Public License v2.1 only", _LGPL, True, True, "2.1", "LGPL"),
    ("LGPL-2.1-or-later", "GNU Lesser General Public License v2.1 or later", _LGPL, True, True, "2.1", "LGPL"),
    ("LGPL-3.0-only", "GNU Lesser General Public License v3.0 only", _LGPL, True, True, "3.0", "LGPL"),
    ("LGPL-3.0-or-later", "GNU Lesser General Public License v3.0 or later", _LGPL, True, True, "3.0", "LGPL"),
    ("MPL-2.0", "Mozilla Public License 2.0", _FILE, True, True, "2.0", "MPL"),
    ("MPL-1.1", "Mozilla Public License 1.1", _FILE, True, True, "1.1", "MPL"),
    ("EPL-1.0", "Eclipse Public License 1.0", _FILE, True, True, "1.0", "EPL"),
    ("EPL-2.0", "Eclipse Public License 2.0", _FILE, True, True, "2.0", "EPL"),
    ("CDDL-1.0", "Common Development and Distribution License 1.0", _FILE, True, True, "1.0", "CDDL"),
    ("CDDL-1.1", "Common Development and Distribution License 1.1", _FILE, False, True, "1.1", "CDDL"),
    ("GPL-2.0-only", "GNU General Public License v2.0 only", _GPL, True, True, "2.0", "GPL"),
    ("GPL-2.0-or-later", "GNU General Public License v2.0 or later", _GPL, True, True, "2.0", "GPL"),
    ("GPL-3.0-only", "GNU General Public License v3.0 only", _GPL, True, True, "3.0", "GPL"),
    ("GPL-3.0-or-later", "GNU General Public License v3.0 or later", _GPL, True, True, "3.0", "GPL"),
    ("AGPL-3.0-only", "GNU Affero General Public License v3.0 only", _AGPL, True, True, "3.0", "AGPL"),
    ("AGPL-3.0-or-later", "GNU Affero General Public License v3.0 or later", _AGPL, True, True, "3.0", "AGPL"),
)

def build_licenses() -> list[LicenseNode]:
    """Materialise the seed license rows into fresh :class:`LicenseNode` objects."""
    licenses: list[LicenseNode] = []
    for spdx_id, name, (category, strength), osi, fsf, version, family in _LICENSE_ROWS:
        licenses.append(
            LicenseNode(
                id=spdx_id,
                spdx_id=spdx_id,
                name=name,
                category=category,
                copyleft_strength=strength,
                is_osi_approved=osi,
                is_fsf_free=fsf,
                version=version,
                family=family,
                see_also=[f"https://spdx.org/licenses/{spdx_id}.html"],
            )
        )
    return licenses

# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

PERMISSIVE_GROUP: tuple[str, ...] = (
    "MIT", "APACHE-2.0", "BSD-2-CLAUSE", "BSD-3-CLAUSE", "ISC",
    "CC0-1.0", "UNLICENSE", "0BSD", "WTFPL", "ZLIB", "BSL-1.0",
)

_GNU_FAQ = "https://www.gnu.org/licenses/gpl-faq.html#AllCompatibility"
_APACHE_GPL = "https://www.apache.org/licenses/GPL-compatibility.html"

def build_compatibility_edges() -> list[CompatibilityEdge]:
    """Return the curated compatibility rules in load order."""
    edges = [
        CompatibilityEdge(
            source=a,
            target=b,
            level=CompatibilityLevel.FULL,
            conditions=["Maintain attribution notices from both licenses"],
            notes="Permissive licenses are fully compatible with each other",
            sources=["OSI License Compatibility Guidelines"],
        )
        for a, b in combinations(PERMISSIVE_GROUP, 2)
    ]
    forward = CompatibilityDirection.FORWARD
    edges.extend(
        [
            CompatibilityEdge(
                source="GPL-2.0-ONLY",
                target="GPL-3.0-ONLY",
                level=CompatibilityLevel.INCOMPATIBLE,
                notes=(
                    "GPL-3.0 added patent provisions that GPL-2.0-only code cannot "
                    "accept; GPL-2.0-or-later code is compatible with GPL-3.0"
                ),
                sources=[_GNU_FAQ],
            ),
            CompatibilityEdge(
                source="GPL-2.0-OR-LATER",
                target="GPL-3.0-ONLY",
                level=CompatibilityLevel.CONDITIONAL,
                direction=forward,
                conditions=["Combined work must be GPL-3.0"],
                notes="GPL-2.0-or-later code can be used under GPL-3.0 terms",
                sources=[_GNU_FAQ],
            ),
            CompatibilityEdge(
                source="APACHE-2.0",
                target="GPL-2.0-ONLY",
                level=CompatibilityLevel.INCOMPATIBLE,
                notes="Apache-2.0 patent termination clause is incompatible with GPL-2.0",
                sources=[_APACHE_GPL],
            ),
            CompatibilityEdge(
                source="APACHE-2.0",
                target="GPL-3.0-ONLY",
                level=CompatibilityLevel.ONE_WAY,
                direction=forward,
                conditions=["Combined work must be distributed under GPL-3.0"],
                notes=(
                    "Apache-2.0 code can be included in GPL-3.0 projects; "
                    "GPL-3.0 code cannot be relicensed under Apache-2.0"
                ),
                sources=["https://www.gnu.org/licenses/license-list.html#apache2", _APACHE_GPL],
            ),
            CompatibilityEdge(
                source="APACHE-2.0",
                target="AGPL-3.0-ONLY",
                level=CompatibilityLevel.ONE_WAY,
                direction=forward,
                conditions=[
                    "Combined work must be distributed under AGPL-3.0",
                    "Network disclosure requirements apply",
                ],
                notes="Apache-2.0 code can be included in AGPL-3.0 projects",
            ),
            CompatibilityEdge(
                source="LGPL-3.0-ONLY",
                target="GPL-3.0-ONLY",
                level=CompatibilityLevel.ONE_WAY,
                direction=forward,
                conditions=["Combined work must follow GPL-3.0 terms"],
                notes="LGPL code can be combined with GPL, result is GPL",
            ),
            CompatibilityEdge(
                source="MPL-2.0",
                target="GPL-3.0-ONLY",
                level=CompatibilityLevel.CONDITIONAL,
                direction=forward,
                conditions=[
                    "MPL-2.0 code can be relicensed under GPL-3.0",
                    "This is explicitly allowed by MPL-2.0 Section 3.3",
                ],
                notes="MPL-2.0 has explicit GPL compatibility through its secondary license clause",
                sources=["https://www.mozilla.org/en-US/MPL/2.0/FAQ/"],
            ),
        ]
    )
    return edges

_COMPONENT = ObligationScope.COMPONENT
_MODIFIED = ObligationScope.MODIFIED_FILES
_DERIVATIVE = ObligationScope.DERIVATIVE_WORK

_GPL2_OBLIGATIONS = (
    (ATTRIBUTION, _ON_DIST, _DERIVATIVE),
    (SOURCE_DISCLOSURE, _ON_DIST, _DERIVATIVE),
    (SAME_LICENSE, TriggerCondition.ON_DERIVATIVE, _DERIVATIVE),
    (STATE_CHANGES, TriggerCondition.ON_MODIFICATION, _MODIFIED),
    (INCLUDE_LICENSE, _ON_DIST, _DERIVATIVE),
)
_GPL3_OBLIGATIONS = _GPL2_OBLIGATIONS + (
    (PATENT_GRANT, TriggerCondition.ALWAYS, _DERIVATIVE),
)
_AGPL_OBLIGATIONS = _GPL3_OBLIGATIONS + (
    (NETWORK_DISCLOSURE, TriggerCondition.ON_NETWORK_USE, _DERIVATIVE),
)
_LGPL_OBLIGATIONS = (
    (ATTRIBUTION, _ON_DIST, _COMPONENT),
    (SOURCE_DISCLOSURE, _ON_DIST, _COMPONENT),
    (INCLUDE_LICENSE, _ON_DIST, _COMPONENT),
)
_MPL_OBLIGATIONS = (
    (ATTRIBUTION, _ON_DIST, _MODIFIED),
    (DISCLOSE_SOURCE, _ON_DIST, _MODIFIED),
    (INCLUDE_LICENSE, _ON_DIST, _MODIFIED),
)
_EPL_OBLIGATIONS = _MPL_OBLIGATIONS + ((PATENT_GRANT, TriggerCondition.ALWAYS, _COMPONENT),)

LICENSE_OBLIGATIONS: dict[str, tuple[tuple[str, TriggerCondition, ObligationScope], ...]] = {
    "MIT": (
        (ATTRIBUTION, _ON_DIST, _COMPONENT),
        (INCLUDE_LICENSE, _ON_DIST, _COMPONENT),
        (INCLUDE_COPYRIGHT, _ON_DIST, _COMPONENT),
    ),
    "APACHE-2.0": (
        (ATTRIBUTION, _ON_DIST, _COMPONENT),
        (STATE_CHANGES, TriggerCondition.ON_MODIFICATION, _MODIFIED),
        (NOTICE_FILE, _ON_DIST, _COMPONENT),
        (INCLUDE_LICENSE, _ON_DIST, _COMPONENT),
        (PATENT_GRANT, TriggerCondition.ALWAYS, _COMPONENT),
    ),
    "BSD-2-CLAUSE": ((ATTRIBUTION, _ON_DIST, _COMPONENT), (INCLUDE_COPYRIGHT, _ON_DIST, _COMPONENT)),
    "BSD-3-CLAUSE": ((ATTRIBUTION, _ON_DIST, _COMPONENT), (INCLUDE_COPYRIGHT, _ON_DIST, _COMPONENT)),
    "GPL-2.0-ONLY": _GPL2_OBLIGATIONS,
    "GPL-2.0-OR-LATER": _GPL2_OBLIGATIONS,
    "GPL-3.0-ONLY": _GPL3_OBLIGATIONS,
    "GPL-3.0-OR-LATER": _GPL3_OBLIGATIONS,
    "AGPL-3.0-ONLY": _AGPL_OBLIGATIONS,
    "AGPL-3.0-OR-LATER": _AGPL_OBLIGATIONS,
    "LGPL-2.0-ONLY": _LGPL_OBLIGATIONS,
    "LGPL-2.1-ONLY": _LGPL_OBLIGATIONS,
    "LGPL-3.0-ONLY": _LGPL_OBLIGATIONS,
    "LGPL-2.0-OR-LATER": _LGPL_OBLIGATIONS,
    "LGPL-2.1-OR-LATER": _LGPL_OBLIGATIONS,
    "LGPL-3.0-OR-LATER": _LGPL_OBLIGATIONS,
    "MPL-2.0": _MPL_OBLIGATIONS,
    "EPL-1.0": _EPL_OBLIGATIONS,
    "EPL-2.0": _EPL_OBLIGATIONS,
}

_STANDARD_RIGHTS = (COMMERCIAL_USE, MODIFY, DISTRIBUTE, PRIVATE_USE)

_LICENSES_WITH_STANDARD_RIGHTS: tuple[str, ...] = PERMISSIVE_GROUP + (
    "GPL-2.0-ONLY", "GPL-2.0-OR-LATER", "GPL-3.0-ONLY", "GPL-3.0-OR-LATER",
    "LGPL-2.0-ONLY", "LGPL-2.1-ONLY", "LGPL-3.0-ONLY",
    "LGPL-2.0-OR-LATER", "LGPL-2.1-OR-LATER", "LGPL-3.0-OR-LATER",
    "AGPL-3.0-ONLY", "AGPL-3.0-OR-LATER",
    "MPL-2.0", "EPL-1.0", "EPL-2.0",
)

_LICENSES_WITH_PATENT_USE: tuple[str, ...] = (
    "APACHE-2.0", "GPL-3.0-ONLY", "GPL-3.0-OR-LATER",
    "AGPL-3.0-ONLY", "AGPL-3.0-OR-LATER", "EPL-1.0", "EPL-2.0", "MPL-2.0",
)

def build_obligation_edges() -> list[ObligationEdge]:
    return [
        ObligationEdge(source=license_id, target=obligation_id, trigger=trigger, scope=scope)
        for license_id, rows in LICENSE_OBLIGATIONS.items()
        for obligation_id, trigger, scope in rows
    ]

def build_right_edges() -> list[RightEdge]:
    edges = [
        RightEdge(source=license_id, target=right_id)
        for license_id in _LICENSES_WITH_STANDARD_RIGHTS
        for right_id in _STANDARD_RIGHTS
    ]
    edges.extend(RightEdge(source=lid, target=PATENT_USE) for lid in _LICENSES_WITH_PATENT_USE)
    return edges

# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_seed_data(graph: KnowledgeGraph) -> KnowledgeGraph:
    """Populate *graph* with the seed catalog and return it.

    Nodes are added before edges.  Running the loader twice on the same
    graph leaves it unchanged.

    Args:
        graph: The graph to populate; usually a fresh :class:`KnowledgeGraph`.

    Returns:
        The same *graph*, for chaining.
    """
    for obligation in OBLIGATIONS:
        graph.add_node(obligation)
    for right in RIGHTS:
        graph.add_node(right)
    for condition in CONDITIONS:
        graph.add_node(condition)
    for limitation in LIMITATIONS:
        graph.add_node(limitation)
    for license_node in build_licenses():
        graph.add_node(license_node)
    for use_case in USE_CASES:
        graph.add_node(use_case)

    for edge in build_compatibility_edges():
        graph.add_edge(edge)
    for edge in build_obligation_edges():
        graph.add_edge(edge)
    for edge in build_right_edges():
        graph.add_edge(edge)

    dangling = graph.dangling_edges()
    if dangling:
        logger.warning(
            "Seed data left %d dangling edges: %s",
            len(dangling),
            ", ".join(edge.id for edge in dangling),
        )

    stats = graph.stats()
    logger.info(
        "Graph loaded: %d licenses, %d obligations, %d rights, %d edges",
        stats["licenses"],
        stats["obligations"],
        stats["rights"],
        stats["edges"],
    )
    return graph

def build_seed_graph() -> KnowledgeGraph:
    """Return a new graph populated from the seed catalog."""
    return load_seed_data(KnowledgeGraph())
