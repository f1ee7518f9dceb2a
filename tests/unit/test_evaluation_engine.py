"""Unit tests for EvaluationEngine."""

import logging

import pytest

from compliance_engine.models import (
    FindingStatus,
    RelationshipKind,
    Resource,
    ResourceGraphBuilder,
    ResourceKind,
    Severity,
)
from compliance_engine.services import EvaluationEngine, RuleCatalog, RulePredicateError


def _catalog(*rules):
    catalog = RuleCatalog()
    for rule in rules:
        catalog.register(rule)
    return catalog.freeze()


def _status_by_rule(findings):
    return {(f.baseline, f.rule_id): f.status for f in findings}


class TestEngineConstruction:
    def test_freezes_catalog(self):
        catalog = RuleCatalog()
        EvaluationEngine(catalog)
        assert catalog.is_frozen

    def test_rejects_zero_workers(self, catalog):
        with pytest.raises(ValueError):
            EvaluationEngine(catalog, max_workers=0)

    def test_requires_a_baseline(self, engine, bucket_graph):
        with pytest.raises(ValueError):
            engine.evaluate(bucket_graph, [])


class TestScenarios:
    def test_compliant_bucket(self, engine, bucket_graph):
        findings = [f for f in engine.evaluate(bucket_graph, ["CIS", "FSBP"]) if f.resource_id == "bucket"]
        assert len(findings) == 2
        assert all(f.status == FindingStatus.PASS for f in findings)

    def test_compliant_bucket_under_nist(self, engine, bucket_graph):
        findings = [f for f in engine.evaluate(bucket_graph, ["NIST"]) if f.resource_id == "bucket"]
        assert _status_by_rule(findings) == {
            ("NIST", "S3.5"): FindingStatus.PASS,
            ("NIST", "S3.9"): FindingStatus.PASS,
            ("NIST", "S3.11"): FindingStatus.PASS,
            ("NIST", "S3.13"): FindingStatus.PASS,
        }

    def test_three_ssl_findings_across_baselines(self, engine):
        graph = (
            ResourceGraphBuilder()
            .add_resource(Resource(id="bucket", kind="Bucket", attributes={"enforceSSL": True}))
            .build()
        )
        ssl = [f for f in engine.evaluate(graph, ["CIS", "FSBP", "NIST"]) if f.rule_id == "S3.5"]
        assert sorted(f.baseline for f in ssl) == ["CIS", "FSBP", "NIST"]
        assert all(f.status == FindingStatus.PASS for f in ssl)

    def test_plain_topic_fails_nist(self, engine):
        graph = ResourceGraphBuilder().add_resource(Resource(id="SnsTopic", kind="Topic")).build()
        findings = engine.evaluate(graph, ["NIST"])
        assert [(f.rule_id, f.severity, f.status) for f in findings] == [
            ("SNS.1", Severity.MEDIUM, FindingStatus.FAIL),
            ("SNS.2", Severity.MEDIUM, FindingStatus.FAIL),
        ]

    def test_plain_topic_has_no_cis_rules(self, engine):
        graph = ResourceGraphBuilder().add_resource(Resource(id="SnsTopic", kind="Topic")).build()
        assert engine.evaluate(graph, ["CIS"]) == ()

    def test_web_acl_needs_a_rule(self, engine):
        empty = Resource(id="acl", kind="WebAcl", attributes={"rules": []})
        one = Resource(id="acl", kind="WebAcl", attributes={"rules": [{"name": "ip-reputation"}]})
        for resource, expected in ((empty, FindingStatus.FAIL), (one, FindingStatus.PASS)):
            graph = ResourceGraphBuilder().add_resource(resource).build()
            (finding,) = [f for f in engine.evaluate(graph, ["FSBP"]) if f.rule_id == "WAF.10"]
            assert finding.status == expected

    def test_rest_api_waf_association(self, engine):
        api = Resource(id="api", kind="RestApi")
        acl = Resource(id="acl", kind="WebAcl", attributes={"rules": [{"name": "r"}]})

        without = ResourceGraphBuilder().add_resources([api, acl]).build()
        with_waf = (
            ResourceGraphBuilder()
            .add_resources([api, acl])
            .connect("api", "acl", RelationshipKind.WEB_ACL_ASSOCIATION)
            .build()
        )

        def waf_status(graph):
            (finding,) = [f for f in engine.evaluate(graph, ["FSBP"]) if f.rule_id == "APIGateway.4"]
            return finding.status

        assert waf_status(without) == FindingStatus.FAIL
        assert waf_status(with_waf) == FindingStatus.PASS


class TestFindings:
    def test_one_finding_per_resource_and_rule(self, engine, catalog, control_graph):
        findings = engine.evaluate(control_graph, ["CIS", "FSBP", "NIST"])
        expected = sum(
            len(catalog.rules_for(resource.kind, ["CIS", "FSBP", "NIST"])) for resource in control_graph
        )
        assert len(findings) == expected
        keys = [(f.resource_id, f.baseline, f.rule_id) for f in findings]
        assert len(keys) == len(set(keys))

    def test_graph_order_then_catalog_order(self, engine, control_graph):
        findings = engine.evaluate(control_graph, ["NIST"])
        resource_order = [r.id for r in control_graph]
        seen = []
        for finding in findings:
            if not seen or seen[-1] != finding.resource_id:
                seen.append(finding.resource_id)
        assert seen == [r for r in resource_order if r in seen]

    def test_finding_carries_rule_details(self, engine):
        graph = ResourceGraphBuilder().add_resource(Resource(id="SnsTopic", kind="Topic")).build()
        finding = engine.evaluate(graph, ["NIST"])[0]
        assert finding.resource_kind == ResourceKind.TOPIC
        assert finding.rule_title
        assert finding.remediation_text
        assert finding.error is None

    def test_evaluation_is_idempotent(self, engine, compliant_graph):
        first = engine.evaluate(compliant_graph, ["CIS", "FSBP", "NIST"])
        second = engine.evaluate(compliant_graph, ["CIS", "FSBP", "NIST"])
        assert first == second

    def test_parallel_matches_sequential(self, catalog, compliant_graph):
        sequential = EvaluationEngine(catalog).evaluate(compliant_graph, ["CIS", "FSBP", "NIST"])
        parallel = EvaluationEngine(catalog, max_workers=4).evaluate(
            compliant_graph, ["CIS", "FSBP", "NIST"]
        )
        assert parallel == sequential

    def test_single_baseline_as_string(self, engine, bucket_graph):
        assert engine.evaluate(bucket_graph, "cis") == engine.evaluate(bucket_graph, ["CIS"])

    def test_unknown_baseline_warns(self, engine, bucket_graph, caplog):
        with caplog.at_level(logging.WARNING):
            assert engine.evaluate(bucket_graph, ["PCI"]) == ()
        assert "PCI" in caplog.text


class TestPredicateErrors:
    def _graph(self):
        return ResourceGraphBuilder().add_resource(Resource(id="bucket", kind="Bucket")).build()

    def _raising(self, resource, resolver):
        raise RuntimeError("boom")

    def test_error_becomes_indeterminate(self, make_rule):
        catalog = _catalog(
            make_rule(rule_id="E.1", predicate=self._raising),
            make_rule(rule_id="E.2"),
        )
        run = EvaluationEngine(catalog).run(self._graph(), ["CIS"])
        statuses = {f.rule_id: f.status for f in run.findings}
        assert statuses == {"E.1": FindingStatus.INDETERMINATE, "E.2": FindingStatus.PASS}
        (error,) = run.errors
        assert isinstance(error, RulePredicateError)
        assert error.rule_id == "E.1"
        assert error.resource_id == "bucket"
        assert isinstance(error.cause, RuntimeError)
        failed = next(f for f in run.findings if f.rule_id == "E.1")
        assert "boom" in failed.error

    def test_missing_attribute_in_predicate_is_indeterminate(self, make_rule):
        catalog = _catalog(make_rule(predicate=lambda r, _: r.get_bool("enforceSSL")))
        (finding,) = EvaluationEngine(catalog).evaluate(self._graph(), ["CIS"])
        assert finding.status == FindingStatus.INDETERMINATE
        assert "enforceSSL" in finding.error

    def test_non_bool_result_is_indeterminate(self, make_rule):
        catalog = _catalog(make_rule(predicate=lambda r, _: "yes"))
        (finding,) = EvaluationEngine(catalog).evaluate(self._graph(), ["CIS"])
        assert finding.status == FindingStatus.INDETERMINATE
        assert "expected bool" in finding.error

    def test_strict_mode_raises(self, make_rule):
        catalog = _catalog(make_rule(predicate=self._raising))
        with pytest.raises(RulePredicateError):
            EvaluationEngine(catalog, strict=True).evaluate(self._graph(), ["CIS"])

    def test_mutating_predicate_cannot_change_the_graph(self, make_rule):
        def mutate(resource, resolver):
            resource.attributes["enforceSSL"] = False
            return True

        graph = (
            ResourceGraphBuilder()
            .add_resource(Resource(id="bucket", kind="Bucket", attributes={"enforceSSL": True}))
            .build()
        )
        catalog = _catalog(
            make_rule(rule_id="M.1", predicate=mutate),
            make_rule(rule_id="M.2", predicate=lambda r, _: r.get_bool("enforceSSL")),
        )
        run = EvaluationEngine(catalog).run(graph, ["CIS"])
        statuses = {f.rule_id: f.status for f in run.findings}
        assert statuses == {"M.1": FindingStatus.INDETERMINATE, "M.2": FindingStatus.PASS}
        assert isinstance(run.errors[0].cause, TypeError)
        assert graph.get_resource("bucket").get_bool("enforceSSL") is True

    def test_run_id_is_unique_per_run(self, engine, bucket_graph):
        assert engine.run(bucket_graph, ["CIS"]).run_id != engine.run(bucket_graph, ["CIS"]).run_id
