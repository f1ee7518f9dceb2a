"""Unit tests for ComplianceService caching logic."""

from unittest.mock import MagicMock

import pytest

from compliance_engine.models import BaselineStatus, Resource, ResourceGraphBuilder, Severity
from compliance_engine.services import ComplianceService, EvaluationEngine, ReportService


@pytest.fixture
def spy_engine(catalog):
    """Real engine wrapped so calls can be counted."""
    engine = EvaluationEngine(catalog)
    return MagicMock(wraps=engine)


@pytest.fixture
def compliance_service(spy_engine, report_service):
    return ComplianceService(engine=spy_engine, report_service=report_service, cache_size=2)


def _graph(name, enforce_ssl=True):
    return (
        ResourceGraphBuilder(name=name)
        .add_resource(Resource(id="bucket", kind="Bucket", attributes={"enforceSSL": enforce_ssl}))
        .build()
    )


class TestCacheKeyGeneration:
    def test_key_is_deterministic(self, compliance_service):
        key1 = compliance_service._generate_cache_key(_graph("a"), ["CIS", "NIST"])
        key2 = compliance_service._generate_cache_key(_graph("a"), ["NIST", "CIS"])
        assert key1 == key2
        assert key1.startswith("compliance:")

    def test_key_changes_with_graph(self, compliance_service):
        key1 = compliance_service._generate_cache_key(_graph("a", True), ["CIS"])
        key2 = compliance_service._generate_cache_key(_graph("a", False), ["CIS"])
        assert key1 != key2

    def test_key_changes_with_threshold(self, spy_engine):
        graph = _graph("a")
        medium = ComplianceService(spy_engine, ReportService(Severity.MEDIUM))
        low = ComplianceService(spy_engine, ReportService(Severity.LOW))
        assert medium._generate_cache_key(graph, ["CIS"]) != low._generate_cache_key(graph, ["CIS"])


class TestCheckCompliance:
    def test_default_baselines(self, compliance_service):
        report = compliance_service.check_compliance(_graph("a"))
        assert report.active_baselines == ["CIS", "FSBP", "NIST"]

    def test_explicit_baselines(self, compliance_service):
        report = compliance_service.check_compliance(_graph("a", False), ["cis"])
        assert report.active_baselines == ["CIS"]
        assert report.baseline_status("CIS") == BaselineStatus.FAIL

    def test_cache_hit_skips_evaluation(self, compliance_service, spy_engine):
        graph = _graph("a")
        first = compliance_service.check_compliance(graph, ["CIS"])
        second = compliance_service.check_compliance(graph, ["CIS"])
        assert first == second
        assert spy_engine.evaluate.call_count == 1

    def test_cached_report_is_a_copy(self, compliance_service):
        graph = _graph("a")
        first = compliance_service.check_compliance(graph, ["CIS"])
        first.baselines.clear()
        second = compliance_service.check_compliance(graph, ["CIS"])
        assert second.baselines

    def test_force_refresh(self, compliance_service, spy_engine):
        graph = _graph("a")
        compliance_service.check_compliance(graph, ["CIS"])
        compliance_service.check_compliance(graph, ["CIS"], force_refresh=True)
        assert spy_engine.evaluate.call_count == 2

    def test_lru_eviction(self, compliance_service, spy_engine):
        graphs = [_graph(name) for name in ("a", "b", "c")]
        for graph in graphs:
            compliance_service.check_compliance(graph, ["CIS"])
        compliance_service.check_compliance(graphs[0], ["CIS"])
        assert spy_engine.evaluate.call_count == 4

    def test_cache_disabled(self, spy_engine, report_service):
        service = ComplianceService(spy_engine, report_service, cache_size=0)
        graph = _graph("a")
        service.check_compliance(graph, ["CIS"])
        service.check_compliance(graph, ["CIS"])
        assert spy_engine.evaluate.call_count == 2

    def test_invalidate_cache(self, compliance_service, spy_engine):
        compliance_service.check_compliance(_graph("a"), ["CIS"])
        assert compliance_service.invalidate_cache() == 1
        compliance_service.check_compliance(_graph("a"), ["CIS"])
        assert spy_engine.evaluate.call_count == 2
