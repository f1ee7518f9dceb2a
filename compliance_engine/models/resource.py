# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Cloud resource data model with typed attribute lookup."""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .enums import ResourceKind
from .frozen import FrozenDict, freeze_value, thaw_value
from .schema import attribute_schema, type_name, value_matches

T = TypeVar("T")

_MISSING = object()


class ResourceAttributeError(Exception):
    """Base class for attribute lookup errors raised by Resource."""

    def __init__(self, resource_id: str, attribute: str, message: str):
        super().__init__(message)
        self.resource_id = resource_id
        self.attribute = attribute


class AttributeMissingError(ResourceAttributeError, LookupError):
    """Raised when a requested attribute was never set on the resource."""

    def __init__(self, resource_id: str, attribute: str):
        super().__init__(
            resource_id, attribute, f"Attribute '{attribute}' is not set on resource '{resource_id}'"
        )


class AttributeTypeError(ResourceAttributeError, TypeError):
    """Raised when a requested attribute holds a value of an incompatible type."""

    def __init__(self, resource_id: str, attribute: str, expected: type, actual: Any):
        super().__init__(
            resource_id,
            attribute,
            f"Attribute '{attribute}' on resource '{resource_id}' is "
            f"{type_name(actual)}, expected {type_name(expected)}",
        )
        self.expected = expected
        self.actual_type = type(actual)


class Resource(BaseModel):
    """
    Represents a declared cloud resource.

    Attributes are validated against the kind's schema on construction and
    cannot change afterwards. An attribute that was never set is distinct
    from one set to a false or empty value: ``has()`` tells them apart and
    ``get()`` raises AttributeMissingError for the former.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "bucket",
                "kind": "Bucket",
                "attributes": {
                    "enforceSSL": True,
                    "serverAccessLogsPrefix": "logs/",
                    "lifecycleRules": [{"expiredObjectDeleteMarker": True}],
                },
            }
        },
    )

    id: str = Field(..., min_length=1, description="Identifier, unique within a graph")
    kind: ResourceKind = Field(..., description="Kind of cloud resource")
    attributes: dict[str, Any] = Field(
        default_factory=FrozenDict, description="Declared attribute values keyed by name"
    )

    @field_validator("attributes")
    @classmethod
    def freeze_attributes(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Detach attribute values from the caller's objects and make them read-only."""
        return freeze_value(v)

    @field_serializer("attributes")
    def dump_attributes(self, v: dict[str, Any]) -> dict[str, Any]:
        return thaw_value(v)

    @model_validator(mode="after")
    def validate_attributes(self) -> "Resource":
        """Ensure every attribute is part of the kind schema and correctly typed."""
        schema = attribute_schema(self.kind)
        for name, value in self.attributes.items():
            if name not in schema:
                raise ValueError(
                    f"Unknown attribute '{name}' for {self.kind.value} resource '{self.id}'"
                )
            if value is None:
                raise ValueError(
                    f"Attribute '{name}' on resource '{self.id}' is None; omit it instead"
                )
            if not value_matches(value, schema[name]):
                raise ValueError(
                    f"Attribute '{name}' on {self.kind.value} resource '{self.id}' must be "
                    f"{type_name(schema[name])}, got {type_name(value)}"
                )
        return self

    def has(self, name: str) -> bool:
        """Check if an attribute was explicitly set."""
        return name in self.attributes

    def get(self, name: str, expected_type: type[T]) -> T:
        """
        Get an attribute value checked against the requested type.

        Args:
            name: Attribute name
            expected_type: One of bool, str, int, float, list, dict

        Returns:
            The stored value

        Raises:
            AttributeMissingError: If the attribute was never set
            AttributeTypeError: If the stored value is not of the requested type
        """
        value = self.attributes.get(name, _MISSING)
        if value is _MISSING:
            raise AttributeMissingError(self.id, name)
        if not value_matches(value, expected_type):
            raise AttributeTypeError(self.id, name, expected_type, value)
        return value

    def get_optional(self, name: str, expected_type: type[T], default: Any = None) -> T | Any:
        """Get an attribute, returning ``default`` only when it was never set."""
        if name not in self.attributes:
            return default
        return self.get(name, expected_type)

    def get_path(self, path: str, expected_type: type[T]) -> T:
        """
        Get a nested value using a dotted path (e.g. ``visibilityConfig.metricName``).

        The first segment is an attribute; later segments are dictionary keys.
        """
        head, *rest = path.split(".")
        if not rest:
            return self.get(head, expected_type)
        current: Any = self.get(head, dict)
        walked = head
        for segment in rest:
            walked = f"{walked}.{segment}"
            if not isinstance(current, dict):
                raise AttributeTypeError(self.id, walked, dict, current)
            if segment not in current:
                raise AttributeMissingError(self.id, walked)
            current = current[segment]
        if not value_matches(current, expected_type):
            raise AttributeTypeError(self.id, path, expected_type, current)
        return current

    def get_bool(self, name: str) -> bool:
        return self.get(name, bool)

    def get_str(self, name: str) -> str:
        return self.get(name, str)

    def get_int(self, name: str) -> int:
        return self.get(name, int)

    def get_number(self, name: str) -> float:
        return self.get(name, float)

    def get_list(self, name: str) -> list:
        return self.get(name, list)

    def get_dict(self, name: str) -> dict:
        return self.get(name, dict)
