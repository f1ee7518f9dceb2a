# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Finding data model."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import FindingStatus, ResourceKind, Severity


class Finding(BaseModel):
    """Result of evaluating one rule against one resource."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "resource_id": "SnsTopic",
                "resource_kind": "Topic",
                "rule_id": "SNS.1",
                "rule_title": "SNS topics should be encrypted at-rest using AWS KMS",
                "baseline": "NIST",
                "severity": "MEDIUM",
                "status": "FAIL",
                "remediation_text": "Set masterKey to a customer or AWS managed KMS key.",
                "error": None,
            }
        },
    )

    resource_id: str = Field(..., description="Id of the evaluated resource")
    resource_kind: ResourceKind = Field(..., description="Kind of the evaluated resource")
    rule_id: str = Field(..., description="Id of the evaluated rule")
    rule_title: str = Field("", description="Title of the evaluated rule")
    baseline: str = Field(..., description="Baseline the rule belongs to")
    severity: Severity = Field(..., description="Severity of the rule")
    status: FindingStatus = Field(..., description="PASS, FAIL or INDETERMINATE")
    remediation_text: str = Field(..., description="How to remediate a failure")
    error: str | None = Field(
        None, description="Predicate error message (INDETERMINATE findings only)"
    )

    @property
    def is_failure(self) -> bool:
        return self.status == FindingStatus.FAIL

    @property
    def is_indeterminate(self) -> bool:
        return self.status == FindingStatus.INDETERMINATE

    def sort_key(self) -> tuple[str, str, int, str]:
        """Deterministic report order: baseline, resource, severity descending, rule."""
        return (self.baseline, self.resource_id, -self.severity.rank, self.rule_id)
