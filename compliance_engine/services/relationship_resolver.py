# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Relationship lookups for predicates that need cross-resource context."""

from typing import Iterable

from ..models import Relationship, RelationshipKind, Resource, ResourceGraph, ResourceKind


class RelationshipResolver:
    """
    Read-only view over a graph's adjacency index.

    Bound to one ResourceGraph and handed to every predicate during
    evaluation. All lookups are pure; endpoints were validated when the
    graph was built, so resolution never fails for resources in the graph.
    """

    def __init__(self, graph: ResourceGraph):
        self._graph = graph

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    def relationships_of(
        self, resource_id: str, kind: RelationshipKind
    ) -> tuple[Relationship, ...]:
        """
        Get outgoing relationships of a kind for a resource.

        Args:
            resource_id: Id of the source resource
            kind: Relationship kind to follow

        Returns:
            Relationships in graph insertion order

        Raises:
            KeyError: If the resource is not part of the graph
        """
        self._require(resource_id)
        return self._graph.outgoing(resource_id, kind)

    def incoming(self, resource_id: str, kind: RelationshipKind) -> tuple[Relationship, ...]:
        """Get relationships of a kind that point at a resource."""
        self._require(resource_id)
        return self._graph.incoming(resource_id, kind)

    def targets_of(
        self,
        resource_id: str,
        kind: RelationshipKind,
        target_kinds: Iterable[ResourceKind] | None = None,
    ) -> tuple[Resource, ...]:
        """Get target resources of outgoing relationships, optionally filtered by kind."""
        allowed = {ResourceKind(k) for k in target_kinds} if target_kinds else None
        targets = []
        for relationship in self.relationships_of(resource_id, kind):
            target = self._graph.get_resource(relationship.target_id)
            if allowed is None or target.kind in allowed:
                targets.append(target)
        return tuple(targets)

    def has_relationship(
        self,
        resource_id: str,
        kind: RelationshipKind,
        target_kinds: Iterable[ResourceKind] | None = None,
        min_count: int = 1,
    ) -> bool:
        """Check if a resource has at least ``min_count`` matching outgoing relationships."""
        return len(self.targets_of(resource_id, kind, target_kinds)) >= min_count

    def _require(self, resource_id: str) -> None:
        if resource_id not in self._graph:
            raise KeyError(f"Resource '{resource_id}' is not part of the graph")
