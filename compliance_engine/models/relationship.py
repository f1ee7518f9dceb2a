# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Relationship (graph edge) data model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .enums import RelationshipKind
from .frozen import FrozenDict, freeze_value, thaw_value


class Relationship(BaseModel):
    """Represents a directed edge between two resources in a graph."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "source_id": "bucket",
                "target_id": "SnsTopic",
                "kind": "EventNotification",
                "attributes": {"events": ["s3:ObjectRemoved:*"]},
            }
        },
    )

    source_id: str = Field(..., min_length=1, description="Id of the source resource")
    target_id: str = Field(..., min_length=1, description="Id of the target resource")
    kind: RelationshipKind = Field(..., description="Kind of relationship")
    attributes: dict[str, Any] = Field(
        default_factory=FrozenDict,
        description="Edge details (e.g. notification events, failover status codes)",
    )

    @field_validator("attributes")
    @classmethod
    def freeze_attributes(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Detach attribute values from the caller's objects and make them read-only."""
        return freeze_value(v)

    @field_serializer("attributes")
    def dump_attributes(self, v: dict[str, Any]) -> dict[str, Any]:
        return thaw_value(v)
