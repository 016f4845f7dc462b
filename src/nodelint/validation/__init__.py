"""Validation layer for node package consistency.

The rule catalog is data evaluated by one generic loop; see ``rules.RULE_CATALOG``.
"""

from .framework import Finding, RuleContext, RuleSpec, ValidationFramework
from .rules import RULE_CATALOG, get_rule

__all__ = [
    "Finding",
    "RuleContext",
    "RuleSpec",
    "ValidationFramework",
    "RULE_CATALOG",
    "get_rule",
]
