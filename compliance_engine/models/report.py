# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Report data models."""

from enum import Enum

from pydantic import BaseModel, Field

from .enums import BaselineStatus, ResourceKind, Severity, normalize_baseline
from .finding import Finding


class ReportFormat(str, Enum):
    """Supported report output formats."""

    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"


class ResourceFindings(BaseModel):
    """Findings of one baseline for one resource."""

    resource_id: str
    resource_kind: ResourceKind
    findings: list[Finding] = Field(default_factory=list)


class BaselineSummary(BaseModel):
    """Aggregated results for one baseline."""

    baseline: str = Field(..., description="Baseline name")
    status: BaselineStatus = Field(..., description="Derived baseline status")
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    indeterminate: int = Field(0, ge=0)
    blocking_failures: int = Field(
        0, description="Failures at or above the failure threshold", ge=0
    )
    resources: list[ResourceFindings] = Field(
        default_factory=list, description="Findings grouped by resource"
    )

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.indeterminate


class ResourceSummary(BaseModel):
    """Aggregated results for one resource across all baselines."""

    resource_id: str
    resource_kind: ResourceKind
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    indeterminate: int = Field(0, ge=0)
    remediations: list[str] = Field(
        default_factory=list,
        description="Remediations for failing rules, most severe first",
    )


class ComplianceReport(BaseModel):
    """Represents a compliance report over one evaluated graph."""

    graph_name: str | None = Field(None, description="Name of the evaluated graph")
    active_baselines: list[str] = Field(default_factory=list)
    failure_threshold: Severity = Field(
        Severity.MEDIUM, description="Minimum severity of a failure that fails a baseline"
    )
    overall_status: BaselineStatus
    total_findings: int = Field(0, ge=0)
    baselines: list[BaselineSummary] = Field(default_factory=list)
    resources: list[ResourceSummary] = Field(default_factory=list)
    severity_counts: dict[Severity, int] = Field(
        default_factory=dict, description="Failing findings per severity"
    )
    indeterminate: list[Finding] = Field(
        default_factory=list, description="Findings whose predicate raised an error"
    )

    def baseline_status(self, baseline: str) -> BaselineStatus:
        """
        Status of a baseline in this report.

        Raises:
            KeyError: If the baseline produced no findings in this report
        """
        name = normalize_baseline(baseline)
        for summary in self.baselines:
            if summary.baseline == name:
                return summary.status
        raise KeyError(f"Baseline '{name}' is not part of this report")

    def get_baseline(self, baseline: str) -> BaselineSummary | None:
        name = normalize_baseline(baseline)
        return next((s for s in self.baselines if s.baseline == name), None)

    def get_resource(self, resource_id: str) -> ResourceSummary | None:
        return next((s for s in self.resources if s.resource_id == resource_id), None)
