# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Evaluation engine: runs catalog rules against a resource graph."""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable

from ..models import Finding, FindingStatus, Resource, ResourceGraph, Rule, normalize_baseline
from ..utils.correlation import get_run_id_for_logging, run_context
from .relationship_resolver import RelationshipResolver
from .rule_catalog import RuleCatalog

logger = logging.getLogger(__name__)


class RulePredicateError(Exception):
    """Raised when a rule predicate fails instead of returning a verdict.

    This is a rule authoring defect, never a compliance failure. The
    affected (resource, rule) pair is reported as INDETERMINATE.
    """

    def __init__(self, resource_id: str, rule: Rule, cause: BaseException):
        super().__init__(
            f"Predicate of rule {rule.baseline}/{rule.id} failed on resource "
            f"'{resource_id}': {type(cause).__name__}: {cause}"
        )
        self.resource_id = resource_id
        self.rule_id = rule.id
        self.baseline = rule.baseline
        self.cause = cause


@dataclass(frozen=True)
class EvaluationRun:
    """Findings and predicate errors of one evaluation pass."""

    run_id: str
    findings: tuple[Finding, ...]
    errors: tuple[RulePredicateError, ...]


class EvaluationEngine:
    """
    Evaluates every applicable rule against every resource of a graph.

    The graph is never mutated and the catalog is frozen on construction,
    so independent graphs can be evaluated concurrently with the same
    engine. With ``max_workers > 1`` resources are dispatched to a thread
    pool; findings are reassembled in graph order either way.
    """

    def __init__(self, catalog: RuleCatalog, max_workers: int = 1, strict: bool = False):
        """
        Initialize the evaluation engine.

        Args:
            catalog: Rule catalog; frozen here if it is not already
            max_workers: Number of worker threads (1 evaluates sequentially)
            strict: If True, re-raise RulePredicateError instead of recording
                    an INDETERMINATE finding
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.catalog = catalog.freeze()
        self.max_workers = max_workers
        self.strict = strict

    def evaluate(self, graph: ResourceGraph, active_baselines: Iterable[str]) -> tuple[Finding, ...]:
        """
        Evaluate a graph against the active baselines.

        Args:
            graph: Built resource graph
            active_baselines: Baseline names to evaluate

        Returns:
            One Finding per (resource, applicable rule), in graph order then
            catalog order

        Raises:
            RulePredicateError: Only in strict mode
        """
        return self.run(graph, active_baselines).findings

    def run(self, graph: ResourceGraph, active_baselines: Iterable[str]) -> EvaluationRun:
        """Evaluate a graph and return findings together with predicate errors."""
        baselines = self._normalize_baselines(active_baselines)
        resolver = RelationshipResolver(graph)

        with run_context() as run_id:
            logger.info(
                f"Evaluating {len(graph)} resources of graph '{graph.name or '-'}' "
                f"against baselines {sorted(baselines)}",
                extra=get_run_id_for_logging(),
            )

            # Rule lookup happens up front so workers only read resolved tuples
            plan = [
                (resource, self.catalog.rules_for(resource.kind, baselines))
                for resource in graph.resources
            ]

            if self.max_workers > 1 and len(plan) > 1:
                results = self._run_parallel(plan, resolver)
            else:
                results = [self._evaluate_resource(r, rules, resolver) for r, rules in plan]

            findings: list[Finding] = []
            errors: list[RulePredicateError] = []
            for resource_findings, resource_errors in results:
                findings.extend(resource_findings)
                errors.extend(resource_errors)

            failed = sum(1 for f in findings if f.is_failure)
            logger.info(
                f"Evaluation produced {len(findings)} findings "
                f"({failed} failed, {len(errors)} indeterminate)",
                extra=get_run_id_for_logging(),
            )
            return EvaluationRun(run_id=run_id, findings=tuple(findings), errors=tuple(errors))

    def _normalize_baselines(self, active_baselines: Iterable[str]) -> frozenset[str]:
        if isinstance(active_baselines, str):
            active_baselines = [active_baselines]
        baselines = frozenset(normalize_baseline(b) for b in active_baselines)
        if not baselines:
            raise ValueError("At least one active baseline is required")

        unknown = baselines - set(self.catalog.baselines())
        if unknown:
            logger.warning(f"Active baselines without any registered rules: {sorted(unknown)}")
        return baselines

    def _run_parallel(
        self, plan: list[tuple[Resource, tuple[Rule, ...]]], resolver: RelationshipResolver
    ) -> list[tuple[list[Finding], list[RulePredicateError]]]:
        workers = min(self.max_workers, len(plan))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="evaluate") as pool:
            # Each task runs in a copy of the caller's context so the run ID follows it
            futures = [
                pool.submit(
                    contextvars.copy_context().run,
                    self._evaluate_resource,
                    resource,
                    rules,
                    resolver,
                )
                for resource, rules in plan
            ]
            return [future.result() for future in futures]

    def _evaluate_resource(
        self, resource: Resource, rules: tuple[Rule, ...], resolver: RelationshipResolver
    ) -> tuple[list[Finding], list[RulePredicateError]]:
        findings = []
        errors = []
        for rule in rules:
            try:
                compliant = self._invoke(resource, rule, resolver)
            except RulePredicateError as e:
                if self.strict:
                    raise
                logger.error(str(e), extra=get_run_id_for_logging())
                errors.append(e)
                findings.append(self._finding(resource, rule, FindingStatus.INDETERMINATE, str(e)))
                continue

            status = FindingStatus.PASS if compliant else FindingStatus.FAIL
            findings.append(self._finding(resource, rule, status))
        return findings, errors

    def _invoke(self, resource: Resource, rule: Rule, resolver: RelationshipResolver) -> bool:
        try:
            result = rule.predicate(resource, resolver)
        except Exception as e:
            raise RulePredicateError(resource.id, rule, e) from e

        if not isinstance(result, bool):
            cause = TypeError(f"predicate returned {type(result).__name__}, expected bool")
            raise RulePredicateError(resource.id, rule, cause)
        return result

    @staticmethod
    def _finding(
        resource: Resource, rule: Rule, status: FindingStatus, error: str | None = None
    ) -> Finding:
        return Finding(
            resource_id=resource.id,
            resource_kind=resource.kind,
            rule_id=rule.id,
            rule_title=rule.title,
            baseline=rule.baseline,
            severity=rule.severity,
            status=status,
            remediation_text=rule.remediation_text,
            error=error,
        )
