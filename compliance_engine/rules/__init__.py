"""Built-in rule table and named predicates."""

from pathlib import Path

from .checks import CompiledCheck, RuleDefinitionError, compile_check, validate_reads
from .predicates import PredicateSpec, get_predicate, list_predicates, register_predicate

BUILTIN_RULE_TABLE_PATH = Path(__file__).parent / "builtin_rules.json"

__all__ = [
    "BUILTIN_RULE_TABLE_PATH",
    "CompiledCheck",
    "RuleDefinitionError",
    "compile_check",
    "validate_reads",
    "PredicateSpec",
    "get_predicate",
    "list_predicates",
    "register_predicate",
]
