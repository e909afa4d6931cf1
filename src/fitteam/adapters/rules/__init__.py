"""Store-boundary access rules."""

from fitteam.adapters.rules.engine import Operation, Rule, RuleContext, RuleSet
from fitteam.adapters.rules.fitness_rules import rules
from fitteam.adapters.rules.secured import SecuredDocumentStore, SecuredWriteBatch

__all__ = [
    "Operation",
    "Rule",
    "RuleContext",
    "RuleSet",
    "SecuredDocumentStore",
    "SecuredWriteBatch",
    "rules",
]
