# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Compliance service with report caching."""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Iterable

from ..models import ComplianceReport, ResourceGraph, normalize_baseline
from .evaluation_engine import EvaluationEngine
from .report_service import ReportService

logger = logging.getLogger(__name__)


class ComplianceService:
    """
    Service for checking a resource graph against compliance baselines.

    Orchestrates evaluation and report aggregation. Because evaluation of an
    immutable graph is deterministic, reports are cached in memory keyed by
    the graph fingerprint, the active baselines and the failure threshold.
    """

    def __init__(
        self,
        engine: EvaluationEngine,
        report_service: ReportService,
        default_baselines: Iterable[str] = ("CIS", "FSBP", "NIST"),
        cache_size: int = 32,
    ):
        """
        Initialize compliance service.

        Args:
            engine: Evaluation engine bound to a rule catalog
            report_service: Report service holding the failure threshold policy
            default_baselines: Baselines used when a call does not name any
            cache_size: Maximum number of cached reports (0 disables caching)
        """
        self.engine = engine
        self.report_service = report_service
        self.default_baselines = [normalize_baseline(b) for b in default_baselines]
        self.cache_size = cache_size
        self._cache: OrderedDict[str, ComplianceReport] = OrderedDict()
        self._lock = threading.Lock()

    def _generate_cache_key(self, graph: ResourceGraph, baselines: list[str]) -> str:
        """
        Generate a deterministic cache key for an evaluation.

        Returns:
            SHA256 hash of the normalized parameters
        """
        normalized = {
            "graph": graph.fingerprint(),
            "baselines": sorted(baselines),
            "threshold": self.report_service.failure_threshold.value,
        }
        json_str = json.dumps(normalized, sort_keys=True)
        return f"compliance:{hashlib.sha256(json_str.encode()).hexdigest()}"

    def check_compliance(
        self,
        graph: ResourceGraph,
        active_baselines: Iterable[str] | None = None,
        force_refresh: bool = False,
    ) -> ComplianceReport:
        """
        Evaluate a graph and summarize the findings, using the cache when possible.

        Args:
            graph: Built resource graph
            active_baselines: Baselines to evaluate (defaults to the configured ones)
            force_refresh: If True, bypass the cache and re-evaluate

        Returns:
            ComplianceReport for the graph
        """
        if isinstance(active_baselines, str):
            active_baselines = [active_baselines]
        baselines = sorted(
            {normalize_baseline(b) for b in (active_baselines or self.default_baselines)}
        )
        cache_key = self._generate_cache_key(graph, baselines)

        if not force_refresh:
            cached = self._get_from_cache(cache_key)
            if cached is not None:
                logger.info(f"Returning cached compliance report for key: {cache_key}")
                return cached.model_copy(deep=True)

        findings = self.engine.evaluate(graph, baselines)
        report = self.report_service.summarize(
            findings, graph_name=graph.name, active_baselines=baselines
        )
        self._cache_result(cache_key, report)
        return report

    def _get_from_cache(self, cache_key: str) -> ComplianceReport | None:
        with self._lock:
            report = self._cache.get(cache_key)
            if report is not None:
                self._cache.move_to_end(cache_key)
            return report

    def _cache_result(self, cache_key: str, report: ComplianceReport) -> None:
        if self.cache_size <= 0:
            return
        with self._lock:
            self._cache[cache_key] = report.model_copy(deep=True)
            self._cache.move_to_end(cache_key)
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)

    def invalidate_cache(self) -> int:
        """
        Drop all cached reports.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"Invalidated {count} cached compliance reports")
        return count
