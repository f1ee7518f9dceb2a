# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Rule catalog: registration, lookup and rule table loading."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from ..models import (
    BaselineInfo,
    ResourceKind,
    Rule,
    RuleDefinition,
    RuleTable,
    normalize_baseline,
)
from ..rules import BUILTIN_RULE_TABLE_PATH, RuleDefinitionError, compile_check, validate_reads

logger = logging.getLogger(__name__)


class DuplicateRuleError(Exception):
    """Raised when a rule with the same (baseline, rule id) is already registered."""

    def __init__(self, baseline: str, rule_id: str):
        super().__init__(f"Rule '{rule_id}' is already registered for baseline '{baseline}'")
        self.baseline = baseline
        self.rule_id = rule_id


class CatalogFrozenError(Exception):
    """Raised when registering into a catalog that has been frozen."""

    pass


class RuleTableNotFoundError(Exception):
    """Raised when a rule table file is not found."""

    pass


class RuleTableValidationError(Exception):
    """Raised when a rule table file is malformed."""

    pass


class RuleCatalog:
    """
    Registry of compliance rules.

    Rules are keyed by (baseline, rule id). The catalog is populated once,
    then frozen; a frozen catalog is read-only and safe to share across
    concurrent evaluations of independent graphs.
    """

    def __init__(self):
        self._rules: dict[tuple[str, str], Rule] = {}
        self._baseline_info: dict[str, BaselineInfo] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, rule: Rule) -> None:
        """
        Register a rule.

        Args:
            rule: The rule to register

        Raises:
            CatalogFrozenError: If the catalog is frozen
            DuplicateRuleError: If (baseline, rule id) is already registered
            RuleDefinitionError: If the rule reads inputs its kind does not define
        """
        if self._frozen:
            raise CatalogFrozenError(f"Cannot register rule '{rule.id}': catalog is frozen")
        if rule.key in self._rules:
            raise DuplicateRuleError(rule.baseline, rule.id)
        validate_reads(
            rule.id, rule.applicable_kind, rule.reads_attributes, rule.reads_relationships
        )
        self._rules[rule.key] = rule
        logger.debug(f"Registered rule {rule.baseline}/{rule.id} for {rule.applicable_kind}")

    def register_definition(self, definition: RuleDefinition) -> list[Rule]:
        """
        Compile a rule table entry and register one rule per listed baseline.

        Returns:
            The registered rules
        """
        compiled = compile_check(definition.id, definition.kind, definition.check)
        rules = [
            Rule(
                id=definition.id,
                baseline=baseline,
                applicable_kind=definition.kind,
                severity=definition.severity,
                predicate=compiled.predicate,
                remediation_text=definition.remediation,
                title=definition.title,
                reads_attributes=compiled.reads_attributes,
                reads_relationships=compiled.reads_relationships,
            )
            for baseline in definition.baselines
        ]
        for rule in rules:
            self.register(rule)
        return rules

    def register_table(self, table: RuleTable) -> int:
        """Register every entry of a rule table. Returns the number of rules added."""
        if self._frozen:
            raise CatalogFrozenError("Cannot register rule table: catalog is frozen")
        count = 0
        for definition in table.rules:
            count += len(self.register_definition(definition))
        for name, info in table.baselines.items():
            self._baseline_info[normalize_baseline(name)] = info
        return count

    def load_rule_table(self, path: str | Path) -> int:
        """
        Load a JSON or YAML rule table and register its rules.

        Args:
            path: Path to the rule table (.json, .yaml or .yml)

        Returns:
            Number of rules registered

        Raises:
            RuleTableNotFoundError: If the file doesn't exist
            RuleTableValidationError: If the file cannot be parsed or validated
        """
        path = Path(path)
        if not path.exists():
            raise RuleTableNotFoundError(f"Rule table not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuleTableValidationError(f"Invalid JSON in rule table {path}: {e}") from e
        except yaml.YAMLError as e:
            raise RuleTableValidationError(f"Invalid YAML in rule table {path}: {e}") from e

        try:
            table = RuleTable.model_validate(data)
        except ValidationError as e:
            raise RuleTableValidationError(f"Invalid rule table structure in {path}: {e}") from e

        try:
            count = self.register_table(table)
        except RuleDefinitionError as e:
            raise RuleTableValidationError(f"Invalid rule in {path}: {e}") from e

        logger.info(f"Loaded {count} rules from {path} (table version {table.version})")
        return count

    def freeze(self) -> "RuleCatalog":
        """Make the catalog read-only. Idempotent."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                f"Rule catalog frozen with {len(self._rules)} rules across "
                f"baselines {self.baselines()}"
            )
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def rules_for(self, kind: ResourceKind, active_baselines: Iterable[str]) -> tuple[Rule, ...]:
        """
        Get rules applicable to a resource kind under the active baselines.

        Args:
            kind: Resource kind being evaluated
            active_baselines: Baseline names to include

        Returns:
            Rules matching ``kind`` (or ``any``), ordered by baseline,
            severity descending, then rule id
        """
        kind = ResourceKind(kind)
        baselines = frozenset(normalize_baseline(b) for b in active_baselines)

        return tuple(
            sorted(
                (
                    rule
                    for rule in self._rules.values()
                    if rule.baseline in baselines and rule.applies_to(kind)
                ),
                key=Rule.sort_key,
            )
        )

    def get(self, baseline: str, rule_id: str) -> Rule | None:
        return self._rules.get((normalize_baseline(baseline), rule_id))

    def baselines(self) -> list[str]:
        """Names of all baselines with at least one rule."""
        return sorted({rule.baseline for rule in self._rules.values()})

    def baseline_info(self, baseline: str) -> BaselineInfo | None:
        return self._baseline_info.get(normalize_baseline(baseline))

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(sorted(self._rules.values(), key=Rule.sort_key))

    # ------------------------------------------------------------------
    # Built-in catalog
    # ------------------------------------------------------------------

    @classmethod
    def from_rule_table(cls, path: str | Path) -> "RuleCatalog":
        """Create and freeze a catalog from a single rule table file."""
        catalog = cls()
        catalog.load_rule_table(path)
        return catalog.freeze()

    @classmethod
    def default(cls) -> "RuleCatalog":
        """The frozen catalog built from the built-in rule table, shared per process."""
        return _default_catalog()


@lru_cache(maxsize=1)
def _default_catalog() -> RuleCatalog:
    return RuleCatalog.from_rule_table(BUILTIN_RULE_TABLE_PATH)
