"""
Property-based tests for ReportService.

Property 4: Aggregation Order Independence
Property 5: Failure Threshold Monotonicity
Property 6: Summary Count Consistency

*For any* sequence of findings, the report SHALL NOT depend on the order of
the findings, lowering the failure threshold SHALL never turn a failing
baseline into a passing one, and per-baseline counts SHALL add up to the
findings of that baseline.
"""

from hypothesis import given, settings, strategies as st

from compliance_engine.models import (
    BaselineStatus,
    Finding,
    FindingStatus,
    ReportFormat,
    ResourceKind,
    Severity,
)
from compliance_engine.services import ReportService


# =============================================================================
# Hypothesis Strategies for generating test data
# =============================================================================


def finding_strategy():
    """Strategy for generating random Finding objects."""
    return st.builds(
        lambda resource, rule, baseline, severity, status: Finding(
            resource_id=resource,
            resource_kind=ResourceKind.BUCKET,
            rule_id=rule,
            rule_title=f"Title {rule}",
            baseline=baseline,
            severity=severity,
            status=status,
            remediation_text=f"Remediate {rule}",
            error="predicate failed" if status == FindingStatus.INDETERMINATE else None,
        ),
        resource=st.sampled_from(["bucket", "logs", "assets", "site"]),
        rule=st.sampled_from(["S3.5", "S3.9", "S3.11", "S3.13", "ORG.1"]),
        baseline=st.sampled_from(["CIS", "FSBP", "NIST", "ORG"]),
        severity=st.sampled_from(list(Severity)),
        status=st.sampled_from(list(FindingStatus)),
    )


def findings_strategy():
    """Findings with unique (resource, baseline, rule) keys, as the engine produces."""
    return st.lists(
        finding_strategy(),
        max_size=40,
        unique_by=lambda f: (f.resource_id, f.baseline, f.rule_id),
    )


_RANK = {BaselineStatus.PASS: 0, BaselineStatus.INDETERMINATE: 1, BaselineStatus.FAIL: 2}


# =============================================================================
# Properties
# =============================================================================


class TestAggregationOrderIndependence:
    """
    Property 4: Aggregation Order Independence

    Summarizing a permutation of the findings yields an identical report and
    identical serialized output.
    """

    @given(findings=findings_strategy(), data=st.data())
    @settings(max_examples=100)
    def test_permutation_gives_same_report(self, findings, data):
        """
        Property 4: Aggregation Order Independence
        Validates: stable key order for diffable output
        """
        service = ReportService()
        shuffled = data.draw(st.permutations(findings))

        first = service.summarize(findings, graph_name="Stack")
        second = service.summarize(shuffled, graph_name="Stack")

        assert first == second
        assert service.format_report(first, ReportFormat.JSON) == service.format_report(
            second, ReportFormat.JSON
        )


class TestFailureThresholdMonotonicity:
    """
    Property 5: Failure Threshold Monotonicity

    A baseline that fails under a threshold also fails under every lower
    threshold; a FAIL status always has a blocking failure behind it.
    """

    @given(findings=findings_strategy())
    @settings(max_examples=100)
    def test_lower_threshold_never_improves_status(self, findings):
        """
        Property 5: Failure Threshold Monotonicity
        Validates: threshold is a policy over severities
        """
        reports = {
            severity: ReportService(failure_threshold=severity).summarize(findings)
            for severity in Severity
        }
        for summary in reports[Severity.HIGH].baselines:
            high = _RANK[summary.status]
            medium = _RANK[reports[Severity.MEDIUM].baseline_status(summary.baseline)]
            low = _RANK[reports[Severity.LOW].baseline_status(summary.baseline)]
            assert high <= medium <= low

    @given(findings=findings_strategy(), threshold=st.sampled_from(list(Severity)))
    @settings(max_examples=100)
    def test_fail_status_has_blocking_failure(self, findings, threshold):
        """
        Property 5: Failure Threshold Monotonicity
        Validates: FAIL iff a failure at or above the threshold exists
        """
        report = ReportService(failure_threshold=threshold).summarize(findings)
        for summary in report.baselines:
            assert (summary.status == BaselineStatus.FAIL) == (summary.blocking_failures > 0)


class TestSummaryCountConsistency:
    """
    Property 6: Summary Count Consistency

    Per-baseline and per-severity counts add up to the input findings.
    """

    @given(findings=findings_strategy())
    @settings(max_examples=100)
    def test_counts_add_up(self, findings):
        """
        Property 6: Summary Count Consistency
        Validates: no finding is dropped or counted twice
        """
        report = ReportService().summarize(findings)

        assert report.total_findings == len(findings)
        assert sum(s.total for s in report.baselines) == len(findings)
        for summary in report.baselines:
            grouped = sum(len(group.findings) for group in summary.resources)
            assert grouped == summary.total

        failures = [f for f in findings if f.status == FindingStatus.FAIL]
        assert sum(report.severity_counts.values()) == len(failures)
        assert len(report.indeterminate) == sum(
            1 for f in findings if f.status == FindingStatus.INDETERMINATE
        )
