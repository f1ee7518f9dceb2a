# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Compilation of data-driven rule checks into predicates.

Attribute and relationship checks from a rule table are validated against
the kind schemas here, then turned into plain ``(resource, resolver) -> bool``
callables. Named code predicates are looked up in ``predicates.py``.
"""

from dataclasses import dataclass
from typing import Any

from ..models import (
    ANY_KIND,
    AttributeCheck,
    PredicateCheck,
    RelationshipCheck,
    RelationshipKind,
    ResourceKind,
)
from ..models.rule import Predicate
from ..models.schema import (
    COMMON_ATTRIBUTES,
    attribute_schema,
    relationship_sources,
    relationship_targets,
    type_name,
    value_matches,
)
from .predicates import get_predicate


class RuleDefinitionError(Exception):
    """Raised when a rule does not fit the schema of the kind it targets."""

    pass


@dataclass(frozen=True)
class CompiledCheck:
    """A predicate together with the inputs it reads."""

    predicate: Predicate
    reads_attributes: tuple[str, ...] = ()
    reads_relationships: tuple[RelationshipKind, ...] = ()


def schema_for(kind: ResourceKind | str) -> dict[str, type]:
    """Attribute schema for a rule target; ``any`` only sees common attributes."""
    if kind == ANY_KIND:
        return dict(COMMON_ATTRIBUTES)
    return attribute_schema(ResourceKind(kind))


def validate_reads(
    rule_id: str,
    kind: ResourceKind | str,
    attributes: tuple[str, ...],
    relationships: tuple[RelationshipKind, ...],
) -> None:
    """
    Check that declared attribute and relationship reads exist for a kind.

    Raises:
        RuleDefinitionError: If the kind's schema does not define a read
    """
    schema = schema_for(kind)
    for name in attributes:
        if name not in schema:
            raise RuleDefinitionError(
                f"Rule '{rule_id}' reads attribute '{name}' which {kind_label(kind)} "
                f"resources do not define"
            )
    if kind == ANY_KIND:
        return
    for relationship in relationships:
        if ResourceKind(kind) not in relationship_sources(relationship):
            raise RuleDefinitionError(
                f"Rule '{rule_id}' follows {RelationshipKind(relationship).value} "
                f"relationships which {kind_label(kind)} resources cannot originate"
            )


def kind_label(kind: ResourceKind | str) -> str:
    return kind.value if isinstance(kind, ResourceKind) else str(kind)


def compile_check(
    rule_id: str, kind: ResourceKind | str, check: AttributeCheck | RelationshipCheck | PredicateCheck
) -> CompiledCheck:
    """
    Compile a rule table check for a rule targeting ``kind``.

    Raises:
        RuleDefinitionError: If the check is inconsistent with the kind schema
    """
    if isinstance(check, AttributeCheck):
        return _compile_attribute_check(rule_id, kind, check)
    if isinstance(check, RelationshipCheck):
        return _compile_relationship_check(rule_id, kind, check)
    if isinstance(check, PredicateCheck):
        return _compile_predicate_check(rule_id, kind, check)
    raise RuleDefinitionError(f"Rule '{rule_id}' has an unsupported check: {check!r}")


def _compile_attribute_check(
    rule_id: str, kind: ResourceKind | str, check: AttributeCheck
) -> CompiledCheck:
    name = check.attribute
    validate_reads(rule_id, kind, (name,), ())
    expected = schema_for(kind)[name]
    _validate_operands(rule_id, check, expected)

    missing_result = check.when_missing == "pass"

    def predicate(resource, resolver) -> bool:
        if not resource.has(name):
            return missing_result
        value = resource.get(name, expected)
        return _apply_op(check, value)

    predicate.__name__ = f"{check.op}_{name}"
    return CompiledCheck(predicate=predicate, reads_attributes=(name,))


def _validate_operands(rule_id: str, check: AttributeCheck, expected: type) -> None:
    def fail(message: str) -> None:
        raise RuleDefinitionError(f"Rule '{rule_id}' on '{check.attribute}': {message}")

    if check.op == "equals" and not value_matches(check.value, expected):
        fail(f"cannot compare a {type_name(expected)} attribute to {check.value!r}")
    if check.op == "one_of":
        for candidate in check.values or []:
            if not value_matches(candidate, expected):
                fail(f"cannot compare a {type_name(expected)} attribute to {candidate!r}")
    if check.op == "not_empty" and expected not in (str, list, dict):
        fail(f"'not_empty' does not apply to {type_name(expected)} attributes")
    if check.op == "at_least" and expected not in (int, float):
        fail(f"'at_least' does not apply to {type_name(expected)} attributes")
    if check.op == "every" and expected is not list:
        fail(f"'every' does not apply to {type_name(expected)} attributes")


def _apply_op(check: AttributeCheck, value: Any) -> bool:
    if check.op == "equals":
        return value == check.value
    if check.op == "one_of":
        return value in check.values
    if check.op == "is_set":
        return True
    if check.op == "not_empty":
        return len(value) > 0
    if check.op == "at_least":
        return value >= check.value
    if check.op == "every":
        return all(_item_path(item, check.path) == check.value for item in value)
    raise ValueError(f"Unsupported attribute op: {check.op}")


def _item_path(item: Any, path: str) -> Any:
    """Walk a dotted path inside a list item; a missing key yields None."""
    current = item
    for segment in path.split("."):
        if not isinstance(current, dict):
            raise TypeError(f"Cannot read '{segment}' from {type_name(current)} while walking '{path}'")
        current = current.get(segment)
        if current is None:
            return None
    return current


def _compile_relationship_check(
    rule_id: str, kind: ResourceKind | str, check: RelationshipCheck
) -> CompiledCheck:
    if kind == ANY_KIND:
        raise RuleDefinitionError(
            f"Rule '{rule_id}' uses a relationship check and must target a specific kind"
        )
    validate_reads(rule_id, kind, (), (check.relationship,))
    allowed_targets = relationship_targets(check.relationship)
    target_kinds = tuple(check.target_kinds or ())
    for target_kind in target_kinds:
        if target_kind not in allowed_targets:
            raise RuleDefinitionError(
                f"Rule '{rule_id}': {check.relationship.value} relationships never "
                f"target {target_kind.value} resources"
            )

    relationship = check.relationship
    min_count = check.min_count

    def predicate(resource, resolver) -> bool:
        return resolver.has_relationship(
            resource.id, relationship, target_kinds or None, min_count=min_count
        )

    predicate.__name__ = f"has_{relationship.value}"
    return CompiledCheck(predicate=predicate, reads_relationships=(relationship,))


def _compile_predicate_check(
    rule_id: str, kind: ResourceKind | str, check: PredicateCheck
) -> CompiledCheck:
    try:
        spec = get_predicate(check.predicate)
    except KeyError as e:
        raise RuleDefinitionError(f"Rule '{rule_id}': {e.args[0]}") from e

    if spec.kinds is not None and (kind == ANY_KIND or ResourceKind(kind) not in spec.kinds):
        raise RuleDefinitionError(
            f"Rule '{rule_id}': predicate '{spec.name}' does not support "
            f"{kind_label(kind)} resources"
        )
    validate_reads(rule_id, kind, spec.reads_attributes, spec.reads_relationships)
    return CompiledCheck(
        predicate=spec.func,
        reads_attributes=spec.reads_attributes,
        reads_relationships=spec.reads_relationships,
    )
