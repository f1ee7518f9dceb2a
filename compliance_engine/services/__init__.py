"""Service layer for the stack compliance engine."""

from .rule_catalog import (
    CatalogFrozenError,
    DuplicateRuleError,
    RuleCatalog,
    RuleTableNotFoundError,
    RuleTableValidationError,
)
from .relationship_resolver import RelationshipResolver
from .evaluation_engine import EvaluationEngine, EvaluationRun, RulePredicateError
from .report_service import ReportService
from .graph_service import GraphNotFoundError, GraphService, GraphValidationError
from .compliance_service import ComplianceService

__all__ = [
    "CatalogFrozenError",
    "DuplicateRuleError",
    "RuleCatalog",
    "RuleTableNotFoundError",
    "RuleTableValidationError",
    "RelationshipResolver",
    "EvaluationEngine",
    "EvaluationRun",
    "RulePredicateError",
    "ReportService",
    "GraphNotFoundError",
    "GraphService",
    "GraphValidationError",
    "ComplianceService",
]
