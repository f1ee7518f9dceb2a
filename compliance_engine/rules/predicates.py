# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Named code predicates for rules that need more than one attribute comparison.

Each predicate takes ``(resource, resolver)`` and returns True when the
resource is compliant. Predicates must be pure: they read the resource and
follow relationships through the resolver, and never mutate either.

To add a predicate:
1. Write a function taking (resource, resolver) -> bool
2. Decorate it with @register_predicate, declaring the kinds it supports and
   the attributes/relationships it reads
3. Reference it by name from a rule table entry ("check": {"type": "predicate", ...})
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from ..models import RelationshipKind, ResourceKind


@dataclass(frozen=True)
class PredicateSpec:
    """A registered code predicate and the inputs it declares."""

    name: str
    func: Callable
    kinds: frozenset | None  # None means any kind
    reads_attributes: tuple[str, ...] = ()
    reads_relationships: tuple[RelationshipKind, ...] = ()


_PREDICATES: dict[str, PredicateSpec] = {}


def register_predicate(
    name: str,
    kinds: Iterable[ResourceKind] | None = None,
    reads_attributes: Iterable[str] = (),
    reads_relationships: Iterable[RelationshipKind] = (),
):
    """Decorator registering a function as a named predicate."""

    def decorator(func: Callable) -> Callable:
        if name in _PREDICATES:
            raise ValueError(f"Predicate '{name}' is already registered")
        _PREDICATES[name] = PredicateSpec(
            name=name,
            func=func,
            kinds=frozenset(ResourceKind(k) for k in kinds) if kinds is not None else None,
            reads_attributes=tuple(reads_attributes),
            reads_relationships=tuple(RelationshipKind(r) for r in reads_relationships),
        )
        return func

    return decorator


def get_predicate(name: str) -> PredicateSpec:
    """
    Look up a registered predicate.

    Raises:
        KeyError: If no predicate with this name exists
    """
    if name not in _PREDICATES:
        raise KeyError(f"Unknown predicate '{name}'")
    return _PREDICATES[name]


def list_predicates() -> list[str]:
    """Names of all registered predicates."""
    return sorted(_PREDICATES)


def _non_empty_str(resource, name: str) -> bool:
    return resource.has(name) and resource.get_str(name) != ""


# =============================================================================
# SNS
# =============================================================================


@register_predicate(
    "topic_encrypted_at_rest",
    kinds=[ResourceKind.TOPIC],
    reads_attributes=["masterKey"],
    reads_relationships=[RelationshipKind.ENCRYPTION_KEY],
)
def topic_encrypted_at_rest(resource, resolver) -> bool:
    """Topic uses a customer or AWS managed KMS key."""
    if _non_empty_str(resource, "masterKey"):
        return True
    return resolver.has_relationship(
        resource.id, RelationshipKind.ENCRYPTION_KEY, [ResourceKind.KEY]
    )


# =============================================================================
# S3
# =============================================================================


@register_predicate(
    "bucket_server_access_logging",
    kinds=[ResourceKind.BUCKET],
    reads_attributes=["serverAccessLogsPrefix"],
    reads_relationships=[RelationshipKind.LOGGING_DESTINATION],
)
def bucket_server_access_logging(resource, resolver) -> bool:
    """Access logging is on when a log prefix or a destination bucket is configured.

    An empty prefix does not enable logging.
    """
    if _non_empty_str(resource, "serverAccessLogsPrefix"):
        return True
    return resolver.has_relationship(
        resource.id, RelationshipKind.LOGGING_DESTINATION, [ResourceKind.BUCKET]
    )


# =============================================================================
# WAF
# =============================================================================


@register_predicate(
    "web_acl_metrics_enabled",
    kinds=[ResourceKind.WEB_ACL],
    reads_attributes=["visibilityConfig", "rules"],
)
def web_acl_metrics_enabled(resource, resolver) -> bool:
    """CloudWatch metrics are enabled on the web ACL and on each of its rules."""
    if not resource.has("visibilityConfig"):
        return False
    if resource.get_dict("visibilityConfig").get("cloudWatchMetricsEnabled") is not True:
        return False
    for rule in resource.get_optional("rules", list, []):
        visibility = rule.get("visibilityConfig") or {}
        if visibility.get("cloudWatchMetricsEnabled") is not True:
            return False
    return True


# =============================================================================
# CloudFront
# =============================================================================


@register_predicate(
    "distribution_logging_enabled",
    kinds=[ResourceKind.DISTRIBUTION],
    reads_attributes=["loggingEnabled"],
    reads_relationships=[RelationshipKind.LOGGING_DESTINATION],
)
def distribution_logging_enabled(resource, resolver) -> bool:
    if resource.get_optional("loggingEnabled", bool, False):
        return True
    return resolver.has_relationship(
        resource.id, RelationshipKind.LOGGING_DESTINATION, [ResourceKind.BUCKET]
    )


@register_predicate(
    "distribution_waf_associated",
    kinds=[ResourceKind.DISTRIBUTION],
    reads_attributes=["webAclId"],
    reads_relationships=[RelationshipKind.WEB_ACL_ASSOCIATION],
)
def distribution_waf_associated(resource, resolver) -> bool:
    """Distribution is associated with a web ACL, by edge or by a literal web ACL id."""
    if resolver.has_relationship(
        resource.id, RelationshipKind.WEB_ACL_ASSOCIATION, [ResourceKind.WEB_ACL]
    ):
        return True
    return _non_empty_str(resource, "webAclId")


@register_predicate(
    "distribution_origin_access_control",
    kinds=[ResourceKind.DISTRIBUTION],
    reads_relationships=[RelationshipKind.ORIGIN_SOURCE, RelationshipKind.FAILOVER_ORIGIN],
)
def distribution_origin_access_control(resource, resolver) -> bool:
    """Every S3 origin, failover origins included, is reached through origin access control."""
    graph = resolver.graph
    for kind in (RelationshipKind.ORIGIN_SOURCE, RelationshipKind.FAILOVER_ORIGIN):
        for relationship in resolver.relationships_of(resource.id, kind):
            if graph.get_resource(relationship.target_id).kind != ResourceKind.BUCKET:
                continue
            if relationship.attributes.get("originAccessControl") is not True:
                return False
    return True


# =============================================================================
# DynamoDB
# =============================================================================


def _scaling_configured(resource, name: str) -> bool:
    if not resource.has(name):
        return False
    scaling = resource.get_dict(name)
    minimum = scaling["minCapacity"]
    maximum = scaling["maxCapacity"]
    return 1 <= minimum <= maximum and "targetUtilizationPercent" in scaling


@register_predicate(
    "table_capacity_autoscaling",
    kinds=[ResourceKind.TABLE],
    reads_attributes=["billingMode", "readAutoScaling", "writeAutoScaling"],
)
def table_capacity_autoscaling(resource, resolver) -> bool:
    """On-demand tables scale by themselves; provisioned tables need read and write auto scaling."""
    billing_mode = resource.get_optional("billingMode", str, "PROVISIONED")
    if billing_mode == "PAY_PER_REQUEST":
        return True
    return _scaling_configured(resource, "readAutoScaling") and _scaling_configured(
        resource, "writeAutoScaling"
    )


# =============================================================================
# KMS
# =============================================================================


@register_predicate(
    "key_rotation_enabled",
    kinds=[ResourceKind.KEY],
    reads_attributes=["managedBy", "enableKeyRotation"],
)
def key_rotation_enabled(resource, resolver) -> bool:
    """AWS managed keys rotate automatically; customer keys must enable rotation."""
    if resource.get_optional("managedBy", str, "CUSTOMER") == "AWS":
        return True
    return resource.get_optional("enableKeyRotation", bool, False)


# =============================================================================
# Organization tagging
# =============================================================================


@register_predicate("has_owner_tag", kinds=None, reads_attributes=["tags"])
def has_owner_tag(resource, resolver) -> bool:
    """Resource carries a non-empty Owner tag."""
    tags = resource.get_optional("tags", dict, {})
    owner = tags.get("Owner")
    return isinstance(owner, str) and owner.strip() != ""
