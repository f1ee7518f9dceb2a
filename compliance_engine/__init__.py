"""
Stack Compliance Engine

Evaluates a graph of declared infrastructure resources against CIS, FSBP and
NIST compliance baselines and produces a deterministic compliance report.
"""

__version__ = "0.1.0"

from .config import Settings, get_settings, settings
from .container import ServiceContainer
from .models import (
    ComplianceReport,
    Finding,
    FindingStatus,
    RelationshipKind,
    Resource,
    ResourceGraph,
    ResourceGraphBuilder,
    ResourceKind,
    Rule,
    Severity,
)
from .services import (
    ComplianceService,
    EvaluationEngine,
    GraphService,
    RelationshipResolver,
    ReportService,
    RuleCatalog,
)

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "settings",
    "ServiceContainer",
    "ComplianceReport",
    "Finding",
    "FindingStatus",
    "RelationshipKind",
    "Resource",
    "ResourceGraph",
    "ResourceGraphBuilder",
    "ResourceKind",
    "Rule",
    "Severity",
    "ComplianceService",
    "EvaluationEngine",
    "GraphService",
    "RelationshipResolver",
    "ReportService",
    "RuleCatalog",
]
