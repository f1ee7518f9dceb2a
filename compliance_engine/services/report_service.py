# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Findings aggregation and report formatting."""

import csv
import io
import json
import logging
from collections import defaultdict
from typing import Iterable

from ..models import (
    BaselineStatus,
    BaselineSummary,
    ComplianceReport,
    Finding,
    FindingStatus,
    ReportFormat,
    ResourceFindings,
    ResourceSummary,
    Severity,
    normalize_baseline,
)

logger = logging.getLogger(__name__)


class ReportService:
    """
    Service for turning findings into compliance reports.

    Aggregation is a pure function of the finding sequence: rules are never
    re-run and the output order does not depend on evaluation order.

    The failure threshold is a policy: a baseline fails only when it has a
    failing finding at or above this severity. Lower-severity failures are
    still listed but do not fail the baseline.
    """

    def __init__(self, failure_threshold: Severity = Severity.MEDIUM):
        """
        Initialize report service.

        Args:
            failure_threshold: Minimum severity of a FAIL finding that fails a baseline
        """
        self.failure_threshold = Severity(failure_threshold)

    def summarize(
        self,
        findings: Iterable[Finding],
        graph_name: str | None = None,
        active_baselines: Iterable[str] | None = None,
    ) -> ComplianceReport:
        """
        Aggregate findings into a compliance report.

        Args:
            findings: Findings from an evaluation pass
            graph_name: Name of the evaluated graph, if any
            active_baselines: Baselines that were evaluated; baselines without
                              findings are reported as passing

        Returns:
            ComplianceReport grouped by baseline and by resource
        """
        ordered = sorted(findings, key=Finding.sort_key)
        baselines = {f.baseline for f in ordered}
        if active_baselines is not None:
            baselines |= {normalize_baseline(b) for b in active_baselines}

        logger.info(
            f"Summarizing {len(ordered)} findings across {len(baselines)} baselines "
            f"(failure threshold {self.failure_threshold.value})"
        )

        by_baseline: dict[str, list[Finding]] = defaultdict(list)
        for finding in ordered:
            by_baseline[finding.baseline].append(finding)

        baseline_summaries = [
            self._summarize_baseline(name, by_baseline.get(name, [])) for name in sorted(baselines)
        ]

        severity_counts = {severity: 0 for severity in Severity}
        for finding in ordered:
            if finding.is_failure:
                severity_counts[finding.severity] += 1

        report = ComplianceReport(
            graph_name=graph_name,
            active_baselines=sorted(baselines),
            failure_threshold=self.failure_threshold,
            overall_status=self._overall_status(baseline_summaries),
            total_findings=len(ordered),
            baselines=baseline_summaries,
            resources=self._summarize_resources(ordered),
            severity_counts=severity_counts,
            indeterminate=[f for f in ordered if f.is_indeterminate],
        )

        logger.info(f"Report generated: overall status {report.overall_status.value}")
        return report

    def baseline_status(self, findings: Iterable[Finding], baseline: str) -> BaselineStatus:
        """Status of one baseline computed directly from findings."""
        name = normalize_baseline(baseline)
        return self._status_of([f for f in findings if f.baseline == name])

    def _status_of(self, findings: list[Finding]) -> BaselineStatus:
        if any(
            f.is_failure and f.severity.at_least(self.failure_threshold) for f in findings
        ):
            return BaselineStatus.FAIL
        # An errored predicate is never a silent pass
        if any(f.is_indeterminate for f in findings):
            return BaselineStatus.INDETERMINATE
        return BaselineStatus.PASS

    def _summarize_baseline(self, baseline: str, findings: list[Finding]) -> BaselineSummary:
        grouped: dict[str, list[Finding]] = defaultdict(list)
        for finding in findings:
            grouped[finding.resource_id].append(finding)

        return BaselineSummary(
            baseline=baseline,
            status=self._status_of(findings),
            passed=sum(1 for f in findings if f.status == FindingStatus.PASS),
            failed=sum(1 for f in findings if f.is_failure),
            indeterminate=sum(1 for f in findings if f.is_indeterminate),
            blocking_failures=sum(
                1
                for f in findings
                if f.is_failure and f.severity.at_least(self.failure_threshold)
            ),
            resources=[
                ResourceFindings(
                    resource_id=resource_id,
                    resource_kind=items[0].resource_kind,
                    findings=items,
                )
                for resource_id, items in sorted(grouped.items())
            ],
        )

    def _summarize_resources(self, findings: list[Finding]) -> list[ResourceSummary]:
        grouped: dict[str, list[Finding]] = defaultdict(list)
        for finding in findings:
            grouped[finding.resource_id].append(finding)

        summaries = []
        for resource_id, items in sorted(grouped.items()):
            failures = sorted(
                (f for f in items if f.is_failure),
                key=lambda f: (-f.severity.rank, f.rule_id, f.baseline),
            )
            # One remediation per rule id, even when several baselines share it
            remediations: list[str] = []
            seen_rules: set[str] = set()
            for finding in failures:
                if finding.rule_id in seen_rules:
                    continue
                seen_rules.add(finding.rule_id)
                remediations.append(
                    f"{finding.rule_id} ({finding.severity.value}): {finding.remediation_text}"
                )

            summaries.append(
                ResourceSummary(
                    resource_id=resource_id,
                    resource_kind=items[0].resource_kind,
                    passed=sum(1 for f in items if f.status == FindingStatus.PASS),
                    failed=len(failures),
                    indeterminate=sum(1 for f in items if f.is_indeterminate),
                    remediations=remediations,
                )
            )
        return summaries

    @staticmethod
    def _overall_status(summaries: list[BaselineSummary]) -> BaselineStatus:
        statuses = {s.status for s in summaries}
        if BaselineStatus.FAIL in statuses:
            return BaselineStatus.FAIL
        if BaselineStatus.INDETERMINATE in statuses:
            return BaselineStatus.INDETERMINATE
        return BaselineStatus.PASS

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format_report(self, report: ComplianceReport, format: ReportFormat) -> str:
        """
        Format a compliance report in the specified output format.

        Args:
            report: ComplianceReport to format
            format: Output format (JSON, CSV, or Markdown)

        Returns:
            Formatted report as a string
        """
        if format == ReportFormat.JSON:
            return self._format_as_json(report)
        elif format == ReportFormat.CSV:
            return self._format_as_csv(report)
        elif format == ReportFormat.MARKDOWN:
            return self._format_as_markdown(report)
        else:
            raise ValueError(f"Unsupported report format: {format}")

    def _format_as_json(self, report: ComplianceReport) -> str:
        """Format report as JSON with sorted keys so output diffs cleanly."""
        report_dict = report.model_dump(mode="json")
        return json.dumps(report_dict, indent=2, sort_keys=True)

    def _format_as_csv(self, report: ComplianceReport) -> str:
        """Format report as CSV, one row per finding in report order."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(
            [
                "Baseline",
                "Baseline Status",
                "Resource",
                "Kind",
                "Rule",
                "Severity",
                "Status",
                "Remediation",
                "Error",
            ]
        )
        for summary in report.baselines:
            for group in summary.resources:
                for finding in group.findings:
                    writer.writerow(
                        [
                            summary.baseline,
                            summary.status.value,
                            finding.resource_id,
                            finding.resource_kind.value,
                            finding.rule_id,
                            finding.severity.value,
                            finding.status.value,
                            finding.remediation_text,
                            finding.error or "",
                        ]
                    )
        return output.getvalue()

    def _format_as_markdown(self, report: ComplianceReport) -> str:
        """Format report as Markdown."""
        lines = []

        title = f"# Compliance Report: {report.graph_name}" if report.graph_name else "# Compliance Report"
        lines.append(title)
        lines.append("")
        lines.append(f"**Overall Status:** {report.overall_status.value}")
        lines.append(f"**Failure Threshold:** {report.failure_threshold.value}")
        lines.append(f"**Total Findings:** {report.total_findings}")
        lines.append("")

        lines.append("## Baselines")
        lines.append("")
        lines.append("| Baseline | Status | Passed | Failed | Blocking | Indeterminate |")
        lines.append("|----------|--------|--------|--------|----------|---------------|")
        for summary in report.baselines:
            lines.append(
                f"| {summary.baseline} | {summary.status.value} | {summary.passed} | "
                f"{summary.failed} | {summary.blocking_failures} | {summary.indeterminate} |"
            )
        lines.append("")

        lines.append("## Failures by Severity")
        lines.append("")
        for severity in sorted(report.severity_counts, key=lambda s: -s.rank):
            lines.append(f"- **{severity.value}:** {report.severity_counts[severity]}")
        lines.append("")

        needs_work = [r for r in report.resources if r.remediations]
        if needs_work:
            lines.append("## Remediations")
            lines.append("")
            for resource in needs_work:
                count = len(resource.remediations)
                noun = "remediation" if count == 1 else "remediations"
                lines.append(
                    f"### {resource.resource_id} ({resource.resource_kind.value}): "
                    f"{count} {noun}"
                )
                lines.append("")
                for i, remediation in enumerate(resource.remediations, 1):
                    lines.append(f"{i}. {remediation}")
                lines.append("")

        if report.indeterminate:
            lines.append("## Indeterminate")
            lines.append("")
            lines.append("| Baseline | Resource | Rule | Error |")
            lines.append("|----------|----------|------|-------|")
            for finding in report.indeterminate:
                lines.append(
                    f"| {finding.baseline} | {finding.resource_id} | {finding.rule_id} | "
                    f"{finding.error} |"
                )
            lines.append("")

        return "\n".join(lines)
