"""
Compliance classifier: folds a raw verdict and a suppression lookup into
the final disposition of a (rule, node) pair.

The classification is a single step with no history:
Verdict x SuppressionCoverage -> Disposition. Every traversal recomputes
dispositions from scratch.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set
import logging

from resource_tree import ResourceNode

from .rules import Rule, RuleLevel, Verdict
from .suppressions import SuppressionMatch


logger = logging.getLogger(__name__)


class Disposition(Enum):
    """Final, suppression-adjusted classification reported to the host."""
    VIOLATION = "reported-violation"
    SUPPRESSED = "reported-suppressed-violation"
    COMPLIANT = "silent-compliant"
    NOT_APPLICABLE = "silent-not-applicable"
    EVALUATION_ERROR = "evaluation-error"


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one evaluation."""
    disposition: Disposition
    level: RuleLevel
    justification: Optional[str] = None
    ignored_suppression: Optional[str] = None


class ComplianceClassifier:
    """
    Maps verdicts to dispositions.

    - COMPLIANT / NOT_APPLICABLE: always silent, suppressions irrelevant
    - EVALUATION_ERROR: always reported at ERROR, never suppressible
    - NON_COMPLIANT, not covered: violation at the rule's level
    - NON_COMPLIANT, covered: waived violation, reported at INFO,
      does not count toward the gate
    """

    REPORTED: Set[Disposition] = {Disposition.VIOLATION, Disposition.EVALUATION_ERROR}
    WAIVED: Set[Disposition] = {Disposition.SUPPRESSED}
    SILENT: Set[Disposition] = {Disposition.COMPLIANT, Disposition.NOT_APPLICABLE}

    def classify(
        self,
        verdict: Verdict,
        rule: Rule,
        match: Optional[SuppressionMatch] = None,
        node: Optional[ResourceNode] = None
    ) -> Classification:
        """
        Classify one evaluation.

        Args:
            verdict: Raw verdict from the rule
            rule: Rule that produced it (level, ignore condition)
            match: Covering suppression, if any
            node: Evaluated node, passed to ignore conditions

        Returns:
            Classification with disposition and reporting level
        """
        if verdict is Verdict.COMPLIANT:
            return Classification(Disposition.COMPLIANT, rule.level)

        if verdict is Verdict.NOT_APPLICABLE:
            return Classification(Disposition.NOT_APPLICABLE, rule.level)

        if verdict is Verdict.EVALUATION_ERROR:
            return Classification(Disposition.EVALUATION_ERROR, RuleLevel.ERROR)

        if match is None:
            return Classification(Disposition.VIOLATION, rule.level)

        condition = rule.ignore_suppression_condition
        if condition is not None and condition.should_ignore(node, match.justification, rule.rule_id):
            logger.info(
                f"Suppression of {rule.rule_id} on {node.path if node else '<unknown>'} "
                f"ignored: {condition.trigger_message}"
            )
            return Classification(
                Disposition.VIOLATION,
                rule.level,
                ignored_suppression=condition.trigger_message
            )

        return Classification(
            Disposition.SUPPRESSED,
            RuleLevel.INFO,
            justification=match.justification
        )

    def is_reported(self, disposition: Disposition) -> bool:
        return disposition in self.REPORTED

    def is_silent(self, disposition: Disposition) -> bool:
        return disposition in self.SILENT

    def describe(self, verdict: Verdict, covered: bool) -> Dict[str, Any]:
        """
        Describe the verdict -> disposition mapping for one combination.

        Returns:
            Dictionary with the transition and whether it is reported,
            waived, or silent
        """
        if verdict is Verdict.NON_COMPLIANT:
            disposition = Disposition.SUPPRESSED if covered else Disposition.VIOLATION
        else:
            disposition = {
                Verdict.COMPLIANT: Disposition.COMPLIANT,
                Verdict.NOT_APPLICABLE: Disposition.NOT_APPLICABLE,
                Verdict.EVALUATION_ERROR: Disposition.EVALUATION_ERROR,
            }[verdict]

        return {
            'verdict': verdict.value,
            'covered': covered,
            'disposition': disposition.value,
            'is_reported': disposition in self.REPORTED,
            'is_waived': disposition in self.WAIVED,
            'is_silent': disposition in self.SILENT,
            'suppression_applies': verdict is Verdict.NON_COMPLIANT and covered,
        }
