# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Resource graph: an arena of resources addressed by id plus a relationship list.

Graphs are assembled with ResourceGraphBuilder. Every ResourceGraph is
validated on construction, however it is created; the result is immutable
and carries an adjacency index for relationship lookups.
"""

import hashlib
import json
from collections import defaultdict
from types import MappingProxyType
from typing import Any, Iterable, Iterator

from .enums import RelationshipKind
from .relationship import Relationship
from .resource import Resource
from .schema import relationship_allowed


class GraphBuildError(Exception):
    """Base class for errors raised while building a resource graph."""

    pass


class DuplicateResourceError(GraphBuildError):
    """Raised when two resources share the same id."""

    def __init__(self, resource_id: str):
        super().__init__(f"Duplicate resource id: '{resource_id}'")
        self.resource_id = resource_id


class UnresolvedRelationshipError(GraphBuildError):
    """Raised when a relationship endpoint does not reference a resource in the graph."""

    def __init__(self, relationship: Relationship, missing_id: str):
        super().__init__(
            f"{relationship.kind.value} relationship "
            f"'{relationship.source_id}' -> '{relationship.target_id}' references "
            f"unknown resource '{missing_id}'"
        )
        self.relationship = relationship
        self.missing_id = missing_id


class InvalidRelationshipError(GraphBuildError):
    """Raised when a relationship connects resource kinds its schema does not allow."""

    def __init__(self, relationship: Relationship, source: Resource, target: Resource):
        super().__init__(
            f"{relationship.kind.value} relationship cannot connect "
            f"{source.kind.value} '{source.id}' to {target.kind.value} '{target.id}'"
        )
        self.relationship = relationship


def _index_resources(resources: tuple[Resource, ...]) -> dict[str, Resource]:
    by_id: dict[str, Resource] = {}
    for resource in resources:
        if resource.id in by_id:
            raise DuplicateResourceError(resource.id)
        by_id[resource.id] = resource
    return by_id


def _check_relationships(relationships: tuple[Relationship, ...], by_id: dict[str, Resource]) -> None:
    for relationship in relationships:
        source = by_id.get(relationship.source_id)
        if source is None:
            raise UnresolvedRelationshipError(relationship, relationship.source_id)
        target = by_id.get(relationship.target_id)
        if target is None:
            raise UnresolvedRelationshipError(relationship, relationship.target_id)
        if not relationship_allowed(relationship.kind, source.kind, target.kind):
            raise InvalidRelationshipError(relationship, source, target)


class ResourceGraph:
    """
    Immutable set of resources and relationships for one evaluation pass.

    Resources and relationships keep their insertion order. Use
    ResourceGraphBuilder (or ``ResourceGraph.from_dict``) to create one.

    Raises:
        DuplicateResourceError: If two resources share an id
        UnresolvedRelationshipError: If a relationship endpoint is missing
        InvalidRelationshipError: If a relationship connects disallowed kinds
    """

    __slots__ = ("_name", "_resources", "_relationships", "_by_id", "_outgoing", "_incoming")

    def __init__(
        self,
        resources: tuple[Resource, ...],
        relationships: tuple[Relationship, ...],
        name: str | None = None,
    ):
        resources = tuple(resources)
        relationships = tuple(relationships)
        by_id = _index_resources(resources)
        _check_relationships(relationships, by_id)

        outgoing: dict[tuple[str, RelationshipKind], list[Relationship]] = defaultdict(list)
        incoming: dict[tuple[str, RelationshipKind], list[Relationship]] = defaultdict(list)
        for relationship in relationships:
            outgoing[(relationship.source_id, relationship.kind)].append(relationship)
            incoming[(relationship.target_id, relationship.kind)].append(relationship)

        self._name = name
        self._resources = resources
        self._relationships = relationships
        self._by_id = MappingProxyType(by_id)
        self._outgoing = MappingProxyType({k: tuple(v) for k, v in outgoing.items()})
        self._incoming = MappingProxyType({k: tuple(v) for k, v in incoming.items()})

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def resources(self) -> tuple[Resource, ...]:
        return self._resources

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        return self._relationships

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._by_id

    def get_resource(self, resource_id: str) -> Resource:
        """
        Get a resource by id.

        Raises:
            KeyError: If no resource with this id exists in the graph
        """
        try:
            return self._by_id[resource_id]
        except KeyError:
            raise KeyError(f"Resource '{resource_id}' is not part of the graph") from None

    def outgoing(self, resource_id: str, kind: RelationshipKind) -> tuple[Relationship, ...]:
        """Relationships of ``kind`` whose source is ``resource_id``, in insertion order."""
        return self._outgoing.get((resource_id, RelationshipKind(kind)), ())

    def incoming(self, resource_id: str, kind: RelationshipKind) -> tuple[Relationship, ...]:
        """Relationships of ``kind`` whose target is ``resource_id``, in insertion order."""
        return self._incoming.get((resource_id, RelationshipKind(kind)), ())

    def to_dict(self) -> dict[str, Any]:
        """Serialize the graph to a JSON-compatible document."""
        return {
            "name": self._name,
            "resources": [r.model_dump(mode="json") for r in self._resources],
            "relationships": [r.model_dump(mode="json") for r in self._relationships],
        }

    def fingerprint(self) -> str:
        """SHA256 of the canonical JSON form of the graph."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResourceGraph":
        """
        Build a graph from a serialized document.

        Args:
            data: Mapping with ``resources``, optional ``relationships`` and ``name``

        Raises:
            pydantic.ValidationError: If a resource or relationship is malformed
            GraphBuildError: If the graph fails integrity validation
        """
        builder = ResourceGraphBuilder(name=data.get("name"))
        for item in data.get("resources", []):
            builder.add_resource(Resource.model_validate(item))
        for item in data.get("relationships", []):
            builder.add_relationship(Relationship.model_validate(item))
        return builder.build()

    def __repr__(self) -> str:
        return (
            f"ResourceGraph(name={self._name!r}, resources={len(self._resources)}, "
            f"relationships={len(self._relationships)})"
        )


class ResourceGraphBuilder:
    """
    Collects resources and relationships, then validates them into a ResourceGraph.

    Usage::

        builder = ResourceGraphBuilder(name="CompliantStack")
        builder.add_resource(Resource(id="bucket", kind="Bucket"))
        builder.add_resource(Resource(id="topic", kind="Topic"))
        builder.connect("bucket", "topic", RelationshipKind.EVENT_NOTIFICATION)
        graph = builder.build()
    """

    def __init__(self, name: str | None = None):
        self.name = name
        self._resources: list[Resource] = []
        self._relationships: list[Relationship] = []

    def add_resource(self, resource: Resource) -> "ResourceGraphBuilder":
        self._resources.append(resource)
        return self

    def add_resources(self, resources: Iterable[Resource]) -> "ResourceGraphBuilder":
        for resource in resources:
            self.add_resource(resource)
        return self

    def add_relationship(self, relationship: Relationship) -> "ResourceGraphBuilder":
        self._relationships.append(relationship)
        return self

    def connect(
        self,
        source_id: str,
        target_id: str,
        kind: RelationshipKind,
        **attributes: Any,
    ) -> "ResourceGraphBuilder":
        """Shortcut for adding a relationship from its parts."""
        return self.add_relationship(
            Relationship(source_id=source_id, target_id=target_id, kind=kind, attributes=attributes)
        )

    def build(self) -> ResourceGraph:
        """
        Build an immutable graph from the collected records.

        Raises:
            DuplicateResourceError: If two resources share an id
            UnresolvedRelationshipError: If a relationship endpoint is missing
            InvalidRelationshipError: If a relationship connects disallowed kinds
        """
        return ResourceGraph(
            resources=tuple(self._resources),
            relationships=tuple(self._relationships),
            name=self.name,
        )
