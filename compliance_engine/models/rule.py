# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Compliance rule data models.

``Rule`` is the compiled, executable form held by the catalog. ``RuleDefinition``
and its check variants are the data form found in rule tables.
"""

from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import RelationshipKind, ResourceKind, Severity, normalize_baseline
from .resource import Resource

ANY_KIND = "any"

# (resource, resolver) -> compliant
Predicate = Callable[[Resource, Any], bool]


class Rule(BaseModel):
    """A single compliance rule scoped to a resource kind and a baseline."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Rule identifier (e.g. S3.5)")
    baseline: str = Field(..., description="Baseline the rule belongs to (CIS, FSBP, NIST or custom)")
    applicable_kind: ResourceKind | Literal["any"] = Field(
        ..., description="Resource kind the rule applies to, or 'any'"
    )
    severity: Severity = Field(..., description="Severity of a failure of this rule")
    predicate: Predicate = Field(..., exclude=True, repr=False)
    remediation_text: str = Field(..., description="How to remediate a failure")
    title: str = Field("", description="Short title of the rule")
    reads_attributes: tuple[str, ...] = Field(
        default=(), description="Attributes the predicate reads"
    )
    reads_relationships: tuple[RelationshipKind, ...] = Field(
        default=(), description="Relationship kinds the predicate follows"
    )

    @field_validator("baseline", mode="before")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_baseline(v)

    def applies_to(self, kind: ResourceKind) -> bool:
        """Check if this rule applies to resources of ``kind``."""
        return self.applicable_kind == ANY_KIND or self.applicable_kind == kind

    @property
    def key(self) -> tuple[str, str]:
        """Catalog key: (baseline, rule id)."""
        return (self.baseline, self.id)

    def sort_key(self) -> tuple[str, int, str]:
        """Ordering used by the catalog: baseline, severity descending, rule id."""
        return (self.baseline, -self.severity.rank, self.id)


AttributeOp = Literal["equals", "one_of", "is_set", "not_empty", "at_least", "every"]


class AttributeCheck(BaseModel):
    """Data-driven check over a single attribute."""

    type: Literal["attribute"] = "attribute"
    attribute: str = Field(..., min_length=1)
    op: AttributeOp
    value: Any = None
    values: list[Any] | None = None
    path: str | None = Field(None, description="Dotted key inside each item (op 'every')")
    when_missing: Literal["fail", "pass"] = Field(
        "fail", description="Outcome when the attribute was never set"
    )

    @model_validator(mode="after")
    def validate_operands(self) -> "AttributeCheck":
        if self.op in ("equals", "at_least", "every") and "value" not in self.model_fields_set:
            raise ValueError(f"op '{self.op}' requires 'value'")
        if self.op == "one_of" and not self.values:
            raise ValueError("op 'one_of' requires a non-empty 'values' list")
        if self.op == "at_least" and (
            isinstance(self.value, bool) or not isinstance(self.value, (int, float))
        ):
            raise ValueError("op 'at_least' requires a numeric 'value'")
        if self.op == "every" and not self.path:
            raise ValueError("op 'every' requires 'path'")
        return self


class RelationshipCheck(BaseModel):
    """Data-driven check that a resource has outgoing relationships of a kind."""

    type: Literal["relationship"] = "relationship"
    relationship: RelationshipKind
    target_kinds: list[ResourceKind] | None = None
    min_count: int = Field(1, ge=1)


class PredicateCheck(BaseModel):
    """Reference to a named code predicate."""

    type: Literal["predicate"] = "predicate"
    predicate: str = Field(..., min_length=1)


RuleCheck = Annotated[
    Union[AttributeCheck, RelationshipCheck, PredicateCheck], Field(discriminator="type")
]


class RuleDefinition(BaseModel):
    """One rule table entry; compiled into one Rule per listed baseline."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "S3.5",
                "title": "S3 buckets should require requests to use SSL",
                "kind": "Bucket",
                "baselines": ["FSBP", "NIST"],
                "severity": "MEDIUM",
                "remediation": "Set enforceSSL: true on the bucket.",
                "check": {"type": "attribute", "attribute": "enforceSSL", "op": "equals", "value": True},
            }
        }
    )

    id: str = Field(..., min_length=1)
    title: str = Field("", description="Short title of the rule")
    kind: ResourceKind | Literal["any"]
    baselines: list[str] = Field(..., min_length=1)
    severity: Severity
    remediation: str = Field(..., min_length=1)
    check: RuleCheck

    @field_validator("baselines")
    @classmethod
    def normalize_baselines(cls, v: list[str]) -> list[str]:
        normalized = [normalize_baseline(b) for b in v]
        if len(set(normalized)) != len(normalized):
            raise ValueError("baselines must not repeat")
        return normalized


class BaselineInfo(BaseModel):
    """Descriptive metadata for a baseline."""

    title: str
    version: str | None = None


class RuleTable(BaseModel):
    """A complete rule table document."""

    version: str = Field(..., description="Version of the rule table")
    baselines: dict[str, BaselineInfo] = Field(default_factory=dict)
    rules: list[RuleDefinition] = Field(default_factory=list)
