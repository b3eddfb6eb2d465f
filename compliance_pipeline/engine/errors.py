"""
Error taxonomy for the rule-pack engine.

Configuration problems are raised to the caller before traversal starts.
Rule-level problems are contained per (rule, node) and reported as
diagnostics, never raised out of a traversal.
"""
from typing import List


class ConfigurationError(ValueError):
    """Pack configuration is invalid; raised before traversal."""


class DuplicateRuleError(ConfigurationError):
    """Two rules in one pack share an identifier."""


class InvalidSuppressionError(ConfigurationError):
    """One or more suppressions failed validation in strict mode."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        details = "\n\t".join(self.problems)
        super().__init__(f"Invalid suppression(s) detected:\n\t{details}")


class RuleContractError(RuntimeError):
    """A rule returned something the rule contract does not allow."""


class UnresolvedValueError(LookupError):
    """A value a rule needs is missing or could not be resolved."""
