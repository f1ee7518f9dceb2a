# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Enumerations for resource kinds, relationships, severities and statuses."""

from enum import Enum


class ResourceKind(str, Enum):
    """Closed set of cloud resource kinds the engine understands."""

    FUNCTION = "Function"
    BUCKET = "Bucket"
    TOPIC = "Topic"
    QUEUE = "Queue"
    TABLE = "Table"
    DISTRIBUTION = "Distribution"
    REST_API = "RestApi"
    WEB_ACL = "WebAcl"
    KEY = "Key"
    LOG_GROUP = "LogGroup"


class RelationshipKind(str, Enum):
    """Kinds of directed edges between resources."""

    EVENT_NOTIFICATION = "EventNotification"
    ORIGIN_SOURCE = "OriginSource"
    FAILOVER_ORIGIN = "FailoverOrigin"
    WEB_ACL_ASSOCIATION = "WebAclAssociation"
    ENCRYPTION_KEY = "EncryptionKey"
    LOGGING_DESTINATION = "LoggingDestination"


class Severity(str, Enum):
    """Severity levels for compliance rules."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    def at_least(self, other: "Severity") -> bool:
        """Check if this severity is equal to or above ``other``."""
        return self.rank >= Severity(other).rank


_SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}


class Baseline(str, Enum):
    """Standard compliance baselines.

    Custom baselines are plain strings; these are the names the built-in
    rule table ships with.
    """

    CIS = "CIS"
    FSBP = "FSBP"
    NIST = "NIST"


class FindingStatus(str, Enum):
    """Outcome of evaluating one rule against one resource."""

    PASS = "PASS"
    FAIL = "FAIL"
    INDETERMINATE = "INDETERMINATE"  # predicate raised, see RulePredicateError


class BaselineStatus(str, Enum):
    """Derived pass/fail status of a baseline."""

    PASS = "PASS"
    FAIL = "FAIL"
    INDETERMINATE = "INDETERMINATE"


def normalize_baseline(name: str) -> str:
    """
    Normalize a baseline name.

    Standard baseline names are matched case-insensitively and returned
    in their canonical form; custom names are stripped but otherwise kept.

    Raises:
        ValueError: If the name is empty
    """
    value = str(name.value if isinstance(name, Enum) else name).strip()
    if not value:
        raise ValueError("baseline name must not be empty")
    for baseline in Baseline:
        if baseline.value == value.upper():
            return baseline.value
    return value
