"""License knowledge graph data model.

Defines the node kinds (licenses, obligations, rights, conditions,
limitations and use cases) and the three edge kinds that connect them
(compatibility, obligation and right edges), together with the enums that
order them.

Both ``GraphNode`` and ``GraphEdge`` are closed unions: every member carries
a class-level ``label`` (nodes) or ``type`` (edges) tag, and code that
dispatches on them is expected to handle each member explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

def normalize_license_id(license_id: str) -> str:
    """Return the canonical form of *license_id* (stripped, uppercased)."""
    return license_id.strip().upper()

def _parse_key(value: str) -> str:
    return value.strip().lower().replace("-", "_").replace(" ", "_")

class NodeLabel(Enum):
    """Tags for the node kinds of the knowledge graph."""

    LICENSE = "license"
    OBLIGATION = "obligation"
    RIGHT = "right"
    CONDITION = "condition"
    LIMITATION = "limitation"
    USE_CASE = "use_case"

class RelType(Enum):
    """Tags for the edge kinds of the knowledge graph."""

    COMPATIBLE_WITH = "compatible_with"
    REQUIRES = "requires"
    GRANTS = "grants"

class LicenseCategory(Enum):
    """License categories ordered by risk."""

    PUBLIC_DOMAIN = "public_domain"
    PERMISSIVE = "permissive"
    WEAK_COPYLEFT = "weak_copyleft"
    STRONG_COPYLEFT = "strong_copyleft"
    NETWORK_COPYLEFT = "network_copyleft"
    PROPRIETARY = "proprietary"
    SOURCE_AVAILABLE = "source_available"
    UNKNOWN = "unknown"

    @property
    def risk_level(self) -> int:
        return _RISK_LEVELS[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, value: str) -> LicenseCategory:
        """Parse a lenient spelling such as ``"weak-copyleft"``; defaults to UNKNOWN."""
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return _CATEGORY_ALIASES.get(key, cls.UNKNOWN)

_RISK_LEVELS: dict[LicenseCategory, int] = {
    LicenseCategory.PUBLIC_DOMAIN: 0,
    LicenseCategory.PERMISSIVE: 1,
    LicenseCategory.WEAK_COPYLEFT: 2,
    LicenseCategory.STRONG_COPYLEFT: 3,
    LicenseCategory.NETWORK_COPYLEFT: 4,
    LicenseCategory.PROPRIETARY: 5,
    LicenseCategory.SOURCE_AVAILABLE: 5,
    LicenseCategory.UNKNOWN: 6,
}

_CATEGORY_ALIASES: dict[str, LicenseCategory] = {
    "copyleft_limited": LicenseCategory.WEAK_COPYLEFT,
    "copyleft": LicenseCategory.STRONG_COPYLEFT,
    "network": LicenseCategory.NETWORK_COPYLEFT,
    "commercial": LicenseCategory.PROPRIETARY,
}

class CopyleftStrength(Enum):
    """How far a license's copyleft terms propagate."""

    NONE = "none"
    FILE = "file"
    LIBRARY = "library"
    STRONG = "strong"
    NETWORK = "network"

    @property
    def propagation_level(self) -> int:
        return _PROPAGATION_LEVELS[self]

    @classmethod
    def parse(cls, value: str) -> CopyleftStrength:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.NONE

_PROPAGATION_LEVELS: dict[CopyleftStrength, int] = {
    CopyleftStrength.NONE: 0,
    CopyleftStrength.FILE: 1,
    CopyleftStrength.LIBRARY: 2,
    CopyleftStrength.STRONG: 3,
    CopyleftStrength.NETWORK: 4,
}

class TriggerCondition(Enum):
    """Circumstances under which an obligation applies."""

    ALWAYS = "always"
    ON_DISTRIBUTION = "on_distribution"
    ON_MODIFICATION = "on_modification"
    ON_DERIVATIVE = "on_derivative"
    ON_NETWORK_USE = "on_network_use"
    ON_STATIC_LINKING = "on_static_linking"
    ON_DYNAMIC_LINKING = "on_dynamic_linking"
    ON_PATENT_CLAIM = "on_patent_claim"
    CONDITIONAL = "conditional"

    @classmethod
    def parse(cls, value: str) -> TriggerCondition:
        key = _parse_key(value)
        for member in cls:
            if member.value == key or member.value == f"on_{key}":
                return member
        return cls.CONDITIONAL

class EffortLevel(Enum):
    """Effort required to comply with an obligation."""

    TRIVIAL = "trivial"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def level(self) -> int:
        return list(EffortLevel).index(self)

    @classmethod
    def parse(cls, value: str) -> EffortLevel:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.MEDIUM

class RightScope(Enum):
    UNLIMITED = "unlimited"
    LIMITED = "limited"
    RESTRICTED = "restricted"
    CONDITIONAL = "conditional"

    @classmethod
    def parse(cls, value: str) -> RightScope:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.LIMITED

class ConditionType(Enum):
    COPYLEFT = "copyleft"
    NOTICE = "notice"
    SOURCE_DISCLOSURE = "source_disclosure"
    STATE_CHANGES = "state_changes"
    PATENT_GRANT = "patent_grant"
    NETWORK_COPYLEFT = "network_copyleft"
    OTHER = "other"

class LimitationType(Enum):
    WARRANTY = "warranty"
    LIABILITY = "liability"
    TRADEMARK = "trademark"
    PATENT = "patent"
    OTHER = "other"

class DistributionType(Enum):
    """How the combined work leaves the organisation, if at all."""

    NONE = "none"
    BINARY = "binary"
    SOURCE = "source"
    NETWORK = "network"
    EMBEDDED = "embedded"

    @classmethod
    def parse(cls, value: str) -> DistributionType:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        aliases = {"saas": cls.NETWORK, "internal": cls.NONE}
        return aliases.get(key, cls.BINARY)

class LinkingType(Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    PROCESS_BOUNDARY = "process_boundary"
    NETWORK_BOUNDARY = "network_boundary"

    @classmethod
    def parse(cls, value: str) -> LinkingType:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.DYNAMIC

class CompatibilityLevel(Enum):
    """Outcome of combining two licenses.

    ``UNKNOWN`` never appears on a curated edge; it is reserved for results
    about licenses the graph does not know.
    """

    FULL = "full"
    CONDITIONAL = "conditional"
    ONE_WAY = "one_way"
    INCOMPATIBLE = "incompatible"
    UNKNOWN = "unknown"

    @property
    def is_compatible(self) -> bool:
        return self in (
            CompatibilityLevel.FULL,
            CompatibilityLevel.CONDITIONAL,
            CompatibilityLevel.ONE_WAY,
        )

    @property
    def strength(self) -> int:
        """Rank used to pick the weakest level along a path (higher is stronger)."""
        return _LEVEL_STRENGTH[self]

    @classmethod
    def parse(cls, value: str) -> CompatibilityLevel:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.UNKNOWN

_LEVEL_STRENGTH: dict[CompatibilityLevel, int] = {
    CompatibilityLevel.FULL: 3,
    CompatibilityLevel.CONDITIONAL: 2,
    CompatibilityLevel.ONE_WAY: 1,
    CompatibilityLevel.INCOMPATIBLE: 0,
    CompatibilityLevel.UNKNOWN: 0,
}

class CompatibilityDirection(Enum):
    BIDIRECTIONAL = "bidirectional"
    FORWARD = "forward"

    @classmethod
    def parse(cls, value: str) -> CompatibilityDirection:
        if _parse_key(value) == "forward":
            return cls.FORWARD
        return cls.BIDIRECTIONAL

class ObligationScope(Enum):
    """Reach of an obligation, narrowest first."""

    COMPONENT = "component"
    MODIFIED_FILES = "modified_files"
    DERIVATIVE_WORK = "derivative_work"

    @property
    def breadth(self) -> int:
        return list(ObligationScope).index(self)

    @classmethod
    def parse(cls, value: str) -> ObligationScope:
        key = _parse_key(value)
        for member in cls:
            if member.value == key:
                return member
        return cls.COMPONENT

def generate_edge_id(rel_type: RelType, source: str, target: str) -> str:
    """Produce a deterministic edge ID.

    Format: ``{rel_type.value}:{source}->{target}``

    License endpoints are normalised first, so re-adding the same edge with
    different casing overwrites instead of duplicating.
    """
    if rel_type == RelType.COMPATIBLE_WITH:
        target = normalize_license_id(target)
    return f"{rel_type.value}:{normalize_license_id(source)}->{target}"

# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass
class LicenseNode:
    """A license, keyed by its canonical uppercase SPDX-style id.

    ``spdx_id`` keeps the canonical SPDX spelling (``Apache-2.0``) while
    ``id`` is the uppercased lookup key (``APACHE-2.0``).
    """

    label: ClassVar[NodeLabel] = NodeLabel.LICENSE

    id: str
    spdx_id: str
    name: str
    category: LicenseCategory = LicenseCategory.UNKNOWN
    copyleft_strength: CopyleftStrength = CopyleftStrength.NONE

    is_osi_approved: bool = False
    is_fsf_free: bool = False
    is_deprecated: bool = False

    version: str | None = None
    family: str | None = None
    see_also: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.id = normalize_license_id(self.id)

    @property
    def is_copyleft(self) -> bool:
        return self.copyleft_strength != CopyleftStrength.NONE

@dataclass
class ObligationNode:
    """Something a licensee must do, and when."""

    label: ClassVar[NodeLabel] = NodeLabel.OBLIGATION

    id: str
    name: str
    description: str = ""
    trigger: TriggerCondition = TriggerCondition.ON_DISTRIBUTION
    effort: EffortLevel = EffortLevel.LOW
    examples: list[str] = field(default_factory=list)

@dataclass
class RightNode:
    label: ClassVar[NodeLabel] = NodeLabel.RIGHT

    id: str
    name: str
    description: str = ""
    scope: RightScope = RightScope.UNLIMITED

@dataclass
class ConditionNode:
    label: ClassVar[NodeLabel] = NodeLabel.CONDITION

    id: str
    name: str
    description: str = ""
    condition_type: ConditionType = ConditionType.OTHER

@dataclass
class LimitationNode:
    label: ClassVar[NodeLabel] = NodeLabel.LIMITATION

    id: str
    name: str
    description: str = ""
    limitation_type: LimitationType = LimitationType.OTHER

@dataclass
class UseCaseNode:
    """A deployment scenario that decides which obligations are triggered."""

    label: ClassVar[NodeLabel] = NodeLabel.USE_CASE

    id: str
    name: str
    description: str = ""
    distribution_type: DistributionType = DistributionType.BINARY
    linking_type: LinkingType | None = None

GraphNode = Union[
    LicenseNode, ObligationNode, RightNode, ConditionNode, LimitationNode, UseCaseNode
]

# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

@dataclass
class CompatibilityEdge:
    """A curated compatibility rule between two licenses.

    A ``BIDIRECTIONAL`` edge answers queries in both directions; a
    ``FORWARD`` edge only answers ``(source, target)``, read as "code under
    *source* may be incorporated into a work under *target*".
    """

    type: ClassVar[RelType] = RelType.COMPATIBLE_WITH

    source: str
    target: str
    level: CompatibilityLevel
    direction: CompatibilityDirection = CompatibilityDirection.BIDIRECTIONAL
    conditions: list[str] = field(default_factory=list)
    notes: str = ""
    sources: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.source = normalize_license_id(self.source)
        self.target = normalize_license_id(self.target)
        if self.level == CompatibilityLevel.UNKNOWN:
            raise ValueError("curated compatibility edges cannot have level UNKNOWN")

    @property
    def id(self) -> str:
        return generate_edge_id(self.type, self.source, self.target)

@dataclass
class ObligationEdge:
    """License REQUIRES obligation, with the trigger and scope it applies under."""

    type: ClassVar[RelType] = RelType.REQUIRES

    source: str
    target: str
    trigger: TriggerCondition = TriggerCondition.ON_DISTRIBUTION
    scope: ObligationScope = ObligationScope.COMPONENT

    def __post_init__(self) -> None:
        self.source = normalize_license_id(self.source)

    @property
    def id(self) -> str:
        return generate_edge_id(self.type, self.source, self.target)

@dataclass
class RightEdge:
    type: ClassVar[RelType] = RelType.GRANTS

    source: str
    target: str

    def __post_init__(self) -> None:
        self.source = normalize_license_id(self.source)

    @property
    def id(self) -> str:
        return generate_edge_id(self.type, self.source, self.target)

GraphEdge = Union[CompatibilityEdge, ObligationEdge, RightEdge]
