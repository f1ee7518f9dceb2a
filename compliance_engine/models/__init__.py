"""Data models for the stack compliance engine."""

from .enums import (
    Baseline,
    BaselineStatus,
    FindingStatus,
    RelationshipKind,
    ResourceKind,
    Severity,
    normalize_baseline,
)
from .resource import (
    AttributeMissingError,
    AttributeTypeError,
    Resource,
    ResourceAttributeError,
)
from .relationship import Relationship
from .graph import (
    DuplicateResourceError,
    GraphBuildError,
    InvalidRelationshipError,
    ResourceGraph,
    ResourceGraphBuilder,
    UnresolvedRelationshipError,
)
from .rule import (
    ANY_KIND,
    AttributeCheck,
    BaselineInfo,
    PredicateCheck,
    RelationshipCheck,
    Rule,
    RuleDefinition,
    RuleTable,
)
from .finding import Finding
from .report import (
    BaselineSummary,
    ComplianceReport,
    ReportFormat,
    ResourceFindings,
    ResourceSummary,
)

__all__ = [
    "Baseline",
    "BaselineStatus",
    "FindingStatus",
    "RelationshipKind",
    "ResourceKind",
    "Severity",
    "normalize_baseline",
    "AttributeMissingError",
    "AttributeTypeError",
    "Resource",
    "ResourceAttributeError",
    "Relationship",
    "DuplicateResourceError",
    "GraphBuildError",
    "InvalidRelationshipError",
    "ResourceGraph",
    "ResourceGraphBuilder",
    "UnresolvedRelationshipError",
    "ANY_KIND",
    "AttributeCheck",
    "BaselineInfo",
    "PredicateCheck",
    "RelationshipCheck",
    "Rule",
    "RuleDefinition",
    "RuleTable",
    "Finding",
    "BaselineSummary",
    "ComplianceReport",
    "ReportFormat",
    "ResourceFindings",
    "ResourceSummary",
]
