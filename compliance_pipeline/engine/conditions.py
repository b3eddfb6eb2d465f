"""
Conditions under which a rule refuses to honor a covering suppression.

A rule may carry an ignore condition; when the condition holds for a
(node, reason, rule) triple, the violation is reported even though a valid
suppression covers it, and the condition's trigger message is recorded on
the diagnostic.
"""
from abc import ABC, abstractmethod

from resource_tree import ResourceNode


class SuppressionIgnore(ABC):
    """Base class for suppression ignore conditions."""

    trigger_message: str = ""

    @abstractmethod
    def should_ignore(self, node: ResourceNode, reason: str, rule_id: str) -> bool:
        """
        Decide whether the suppression must be ignored.

        Args:
            node: Node the suppression would apply to
            reason: Justification given on the suppression
            rule_id: Rule being suppressed
        """
        pass


class SuppressionIgnoreAlways(SuppressionIgnore):
    """Always ignore the suppression."""

    def __init__(self, trigger_message: str):
        if not trigger_message:
            raise ValueError("provide a trigger_message for SuppressionIgnoreAlways")
        self.trigger_message = trigger_message

    def should_ignore(self, node: ResourceNode, reason: str, rule_id: str) -> bool:
        return True


class SuppressionIgnoreAnd(SuppressionIgnore):
    """Ignore the suppression if every given condition holds."""

    def __init__(self, *conditions: SuppressionIgnore):
        if not conditions:
            raise ValueError("SuppressionIgnoreAnd needs at least one condition")
        self.conditions = conditions
        self.trigger_message = "\nAND\n".join(c.trigger_message for c in conditions)

    def should_ignore(self, node: ResourceNode, reason: str, rule_id: str) -> bool:
        return all(c.should_ignore(node, reason, rule_id) for c in self.conditions)


class SuppressionIgnoreOr(SuppressionIgnore):
    """Ignore the suppression if at least one given condition holds."""

    def __init__(self, *conditions: SuppressionIgnore):
        if not conditions:
            raise ValueError("SuppressionIgnoreOr needs at least one condition")
        self.conditions = conditions
        self.trigger_message = "\nOR\n".join(c.trigger_message for c in conditions)

    def should_ignore(self, node: ResourceNode, reason: str, rule_id: str) -> bool:
        return any(c.should_ignore(node, reason, rule_id) for c in self.conditions)
