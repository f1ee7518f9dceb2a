# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Kind-specific attribute and relationship schemas.

Every resource kind has a fixed attribute schema (attribute name to value
type) and every relationship kind a fixed set of allowed source and target
kinds. Resources are validated against these on construction, graphs on
build, and rules on registration.
"""

from typing import Any

from .enums import RelationshipKind, ResourceKind

# Attributes every kind may carry
COMMON_ATTRIBUTES: dict[str, type] = {
    "tags": dict,
}

ATTRIBUTE_SCHEMAS: dict[ResourceKind, dict[str, type]] = {
    ResourceKind.FUNCTION: {
        "runtime": str,
        "handler": str,
        "memorySize": int,
        "timeout": int,
        "tracing": str,
        "publicAccess": bool,
        "vpcConfigured": bool,
        "deadLetterQueueEnabled": bool,
    },
    ResourceKind.BUCKET: {
        "enforceSSL": bool,
        "serverAccessLogsPrefix": str,
        "lifecycleRules": list,
        "versioned": bool,
        "encryption": str,
        "blockPublicAccess": bool,
    },
    ResourceKind.TOPIC: {
        "masterKey": str,
        "loggingConfigs": list,
        "fifo": bool,
        "displayName": str,
    },
    ResourceKind.QUEUE: {
        "encryption": str,
        "fifo": bool,
        "retentionPeriod": int,
        "visibilityTimeout": int,
        "deadLetterQueueEnabled": bool,
    },
    ResourceKind.TABLE: {
        "partitionKey": dict,
        "sortKey": dict,
        "billingMode": str,
        "pointInTimeRecovery": bool,
        "deletionProtection": bool,
        "readAutoScaling": dict,
        "writeAutoScaling": dict,
        "encryption": str,
    },
    ResourceKind.DISTRIBUTION: {
        "viewerProtocolPolicy": str,
        "viewerCertificate": dict,
        "loggingEnabled": bool,
        "webAclId": str,
        "priceClass": str,
        "defaultRootObject": str,
        "httpVersion": str,
        "enabled": bool,
    },
    ResourceKind.REST_API: {
        "stageName": str,
        "loggingLevel": str,
        "tracingEnabled": bool,
        "dataTraceEnabled": bool,
        "metricsEnabled": bool,
        "cacheEncrypted": bool,
        "endpointType": str,
    },
    ResourceKind.WEB_ACL: {
        "scope": str,
        "defaultAction": str,
        "rules": list,
        "visibilityConfig": dict,
    },
    ResourceKind.KEY: {
        "alias": str,
        "managedBy": str,
        "enableKeyRotation": bool,
    },
    ResourceKind.LOG_GROUP: {
        "logGroupName": str,
        "retentionDays": int,
    },
}

RELATIONSHIP_SCHEMAS: dict[RelationshipKind, tuple[frozenset, frozenset]] = {
    RelationshipKind.EVENT_NOTIFICATION: (
        frozenset({ResourceKind.BUCKET}),
        frozenset({ResourceKind.TOPIC, ResourceKind.QUEUE, ResourceKind.FUNCTION}),
    ),
    RelationshipKind.ORIGIN_SOURCE: (
        frozenset({ResourceKind.DISTRIBUTION}),
        frozenset({ResourceKind.BUCKET, ResourceKind.REST_API}),
    ),
    RelationshipKind.FAILOVER_ORIGIN: (
        frozenset({ResourceKind.DISTRIBUTION}),
        frozenset({ResourceKind.BUCKET, ResourceKind.REST_API}),
    ),
    RelationshipKind.WEB_ACL_ASSOCIATION: (
        frozenset({ResourceKind.DISTRIBUTION, ResourceKind.REST_API}),
        frozenset({ResourceKind.WEB_ACL}),
    ),
    RelationshipKind.ENCRYPTION_KEY: (
        frozenset(
            {ResourceKind.BUCKET, ResourceKind.TOPIC, ResourceKind.QUEUE, ResourceKind.TABLE}
        ),
        frozenset({ResourceKind.KEY}),
    ),
    RelationshipKind.LOGGING_DESTINATION: (
        frozenset(
            {
                ResourceKind.BUCKET,
                ResourceKind.DISTRIBUTION,
                ResourceKind.REST_API,
                ResourceKind.WEB_ACL,
                ResourceKind.FUNCTION,
            }
        ),
        frozenset({ResourceKind.BUCKET, ResourceKind.LOG_GROUP}),
    ),
}


def attribute_schema(kind: ResourceKind) -> dict[str, type]:
    """Return the full attribute schema for a kind, common attributes included."""
    return {**COMMON_ATTRIBUTES, **ATTRIBUTE_SCHEMAS[ResourceKind(kind)]}


def value_matches(value: Any, expected_type: type) -> bool:
    """
    Check a value against a schema type.

    ``bool`` is never accepted as ``int`` or ``float``; ``float`` accepts ints.
    """
    if expected_type is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if expected_type is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected_type)


def type_name(value_or_type: Any) -> str:
    """Human readable type name for error messages."""
    if isinstance(value_or_type, type):
        return value_or_type.__name__
    # read-only containers report as their base type
    if isinstance(value_or_type, dict):
        return "dict"
    if isinstance(value_or_type, list):
        return "list"
    return type(value_or_type).__name__


def relationship_allowed(
    kind: RelationshipKind, source_kind: ResourceKind, target_kind: ResourceKind
) -> bool:
    """Check if a relationship kind may connect the given resource kinds."""
    sources, targets = RELATIONSHIP_SCHEMAS[RelationshipKind(kind)]
    return source_kind in sources and target_kind in targets


def relationship_sources(kind: RelationshipKind) -> frozenset:
    """Resource kinds allowed as the source of a relationship kind."""
    return RELATIONSHIP_SCHEMAS[RelationshipKind(kind)][0]


def relationship_targets(kind: RelationshipKind) -> frozenset:
    """Resource kinds allowed as the target of a relationship kind."""
    return RELATIONSHIP_SCHEMAS[RelationshipKind(kind)][1]
