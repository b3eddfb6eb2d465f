"""
Message generator for diagnostics.

Produces the human-readable message of each diagnostic from templates.
Every message starts with the rule id token so hosts can grep or group
output by rule.
"""
from typing import Any, Dict, Optional
import logging

from .classifier import Disposition


logger = logging.getLogger(__name__)


class DiagnosticExplainer:
    """
    Renders diagnostic messages from per-disposition templates.

    In verbose mode the rule explanation (or the error detail for
    evaluation errors) is appended to the message.
    """

    DEFAULT_TEMPLATES = {
        Disposition.VIOLATION: "{rule_id}: {info}",
        Disposition.SUPPRESSED: (
            "{rule_id} was triggered but suppressed. Provided reason: \"{justification}\""
        ),
        Disposition.COMPLIANT: "{rule_id}: {path} is compliant.",
        Disposition.NOT_APPLICABLE: "{rule_id}: not applicable to {path}.",
        Disposition.EVALUATION_ERROR: (
            "{rule_id}: the rule could not be evaluated on {path}. Error: {error}"
        ),
    }

    IGNORED_SUPPRESSION_TEMPLATE = (
        " The suppression was ignored for the following reason(s): {ignored_suppression}"
    )

    def __init__(self, templates: Optional[Dict[Disposition, str]] = None, verbose: bool = False):
        """
        Initialize explainer with templates.

        Args:
            templates: Custom message templates by disposition.
                      If None, uses default templates.
            verbose: Append rule explanations and error details
        """
        self.templates = dict(self.DEFAULT_TEMPLATES)
        if templates:
            self.templates.update(templates)
        self.verbose = verbose

    def explain(
        self,
        disposition: Disposition,
        rule: Any,
        path: str,
        justification: Optional[str] = None,
        error: Optional[str] = None,
        ignored_suppression: Optional[str] = None
    ) -> str:
        """
        Generate the message for one diagnostic.

        Args:
            disposition: Final disposition of the evaluation
            rule: Rule that was evaluated
            path: Path of the evaluated node
            justification: Suppression reason for waived violations
            error: Error text for evaluation errors
            ignored_suppression: Trigger message of a rejected suppression

        Returns:
            Message string starting with the rule id
        """
        template = self.templates.get(disposition, "{rule_id}: {info}")
        values = self._prepare_values(rule, path, justification, error, ignored_suppression)

        try:
            message = template.format(**values)
        except KeyError as e:
            logger.warning(
                f"Missing template variable {e} for disposition {disposition.value}"
            )
            message = self._create_fallback_message(disposition, values)

        if ignored_suppression and disposition is Disposition.VIOLATION:
            message += self.IGNORED_SUPPRESSION_TEMPLATE.format(**values)

        if self.verbose:
            if disposition is Disposition.EVALUATION_ERROR:
                if error and values['error'] not in message:
                    message += f" {values['error']}"
            elif values['explanation']:
                message += f" {values['explanation']}"

        return message.strip()

    def _prepare_values(
        self,
        rule: Any,
        path: str,
        justification: Optional[str],
        error: Optional[str],
        ignored_suppression: Optional[str]
    ) -> Dict[str, str]:
        """Prepare substitution values, filling defaults for missing ones."""
        values = {
            'rule_id': rule.rule_id,
            'info': rule.info or '',
            'explanation': rule.explanation or '',
            'level': rule.level.value,
            'path': path,
        }

        if justification is not None:
            values['justification'] = justification
        if error is not None:
            values['error'] = error
        if ignored_suppression is not None:
            values['ignored_suppression'] = ignored_suppression

        defaults = {
            'justification': 'Not specified',
            'error': 'Unknown error',
            'ignored_suppression': '',
        }

        for key, default in defaults.items():
            if key not in values:
                values[key] = default

        return values

    def _create_fallback_message(self, disposition: Disposition, values: Dict[str, str]) -> str:
        """Create a basic message when a template fails."""
        return f"{values['rule_id']}: {disposition.value} on {values['path']}."
