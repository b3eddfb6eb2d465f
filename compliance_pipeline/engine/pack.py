"""
Rule pack: a named, configured bundle of rules evaluated in one traversal.

A pack is built from an explicit rule list. Configuration problems
(empty name, duplicate rule ids, unknown levels, invalid suppressions in
strict mode) are raised before any node is evaluated.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import logging

from resource_tree import ResourceTree

from .classifier import Classification, ComplianceClassifier, Disposition
from .diagnostics import Diagnostic, DiagnosticEmitter
from .errors import ConfigurationError, DuplicateRuleError
from .explainer import DiagnosticExplainer
from .listeners import DiagnosticListener
from .rules import Rule, RuleLevel, Verdict
from .suppressions import (
    DEFAULT_MIN_REASON_LENGTH,
    Suppression,
    SuppressionMatcher,
    collect_node_suppressions,
)
from .walker import TreeWalker


logger = logging.getLogger(__name__)


@dataclass
class PackConfig:
    """
    Pack configuration knobs.

    Attributes:
        verbose: Include waived and compliant entries in diagnostics()
        strict_suppressions: Raise on invalid suppressions instead of ignoring them
        severity_overrides: Rule id -> level replacing the rule's default
        min_reason_length: Minimum suppression justification length
        fail_on: Lowest violation level that fails the gate
    """
    verbose: bool = False
    strict_suppressions: bool = False
    severity_overrides: Dict[str, RuleLevel] = field(default_factory=dict)
    min_reason_length: int = DEFAULT_MIN_REASON_LENGTH
    fail_on: RuleLevel = RuleLevel.ERROR

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PackConfig":
        """
        Build configuration from the 'pack' section of a config file.

        Raises:
            ConfigurationError: On unknown levels or a negative reason length
        """
        data = data or {}
        overrides = {
            str(rule_id): RuleLevel.parse(level)
            for rule_id, level in (data.get('severity_overrides') or {}).items()
        }
        min_reason_length = int(data.get('min_reason_length', DEFAULT_MIN_REASON_LENGTH))
        if min_reason_length < 1:
            raise ConfigurationError("min_reason_length must be at least 1")

        return cls(
            verbose=bool(data.get('verbose', False)),
            strict_suppressions=bool(data.get('strict_suppressions', False)),
            severity_overrides=overrides,
            min_reason_length=min_reason_length,
            fail_on=RuleLevel.parse(data.get('fail_on', RuleLevel.ERROR)),
        )


class RulePack:
    """
    Aggregate root for one compliance check.

    Owns the rules, the suppression registry and the emitter holding the
    diagnostics of the latest traversal.
    """

    def __init__(
        self,
        name: str,
        rules: Iterable[Rule],
        suppressions: Optional[Iterable[Union[Suppression, Dict[str, Any]]]] = None,
        config: Optional[PackConfig] = None,
        listeners: Optional[Iterable[DiagnosticListener]] = None
    ):
        """
        Initialize the pack.

        Args:
            name: Pack name, also the rule id prefix for '<Pack>-*' selectors
            rules: Rules in registration order
            suppressions: Suppression records or dicts
            config: Pack configuration; defaults when None
            listeners: Listeners notified of every diagnostic

        Raises:
            ConfigurationError: If the name is empty or a suppression is malformed
            DuplicateRuleError: If two rules share an id
        """
        if not name or not str(name).strip():
            raise ConfigurationError("A rule pack must have a name")

        self.name = name
        self.config = config or PackConfig()

        rules = list(rules)
        seen = set()
        duplicates = []
        for rule in rules:
            if rule.rule_id in seen:
                duplicates.append(rule.rule_id)
            seen.add(rule.rule_id)
        if duplicates:
            raise DuplicateRuleError(
                f"Pack {name} registers duplicate rule id(s): {', '.join(sorted(set(duplicates)))}"
            )

        # Overrides map may be shared by several packs; only warn about our own ids
        for rule_id in sorted(set(self.config.severity_overrides) - seen):
            if rule_id.startswith(f"{name}-"):
                logger.warning(f"Pack {name}: severity override for unknown rule {rule_id}")
            else:
                logger.debug(f"Pack {name}: ignoring severity override for {rule_id}")

        self.rules: List[Rule] = [
            rule.with_level(self.config.severity_overrides[rule.rule_id])
            if rule.rule_id in self.config.severity_overrides else rule
            for rule in rules
        ]

        self.suppressions: List[Suppression] = [
            s if isinstance(s, Suppression) else Suppression.from_dict(s)
            for s in (suppressions or [])
        ]

        self.classifier = ComplianceClassifier()
        self.explainer = DiagnosticExplainer(verbose=self.config.verbose)
        self.emitter = DiagnosticEmitter(verbose=self.config.verbose, listeners=listeners)
        self.walker = TreeWalker(self.rules)
        self.invalid_suppressions: List[Tuple[Suppression, List[str]]] = []

        # Surface invalid configured suppressions at construction in strict mode
        self._build_matcher(self.suppressions)

    def add_suppression(self, suppression: Union[Suppression, Dict[str, Any]]) -> None:
        if not isinstance(suppression, Suppression):
            suppression = Suppression.from_dict(suppression)
        self.suppressions.append(suppression)

    def add_listener(self, listener: DiagnosticListener) -> None:
        self.emitter.add_listener(listener)

    def _build_matcher(self, suppressions: List[Suppression]) -> SuppressionMatcher:
        matcher = SuppressionMatcher(
            suppressions,
            pack_name=self.name,
            min_reason_length=self.config.min_reason_length,
            strict=self.config.strict_suppressions,
        )
        self.invalid_suppressions = matcher.invalid
        return matcher

    def run(self, tree: ResourceTree) -> List[Diagnostic]:
        """
        Evaluate the pack against a tree.

        Args:
            tree: Materialized resource tree

        Returns:
            Diagnostics visible to the host

        Raises:
            ConfigurationError: If suppressions are malformed, or invalid in
                strict mode; raised before any rule runs
        """
        suppressions = self.suppressions + collect_node_suppressions(tree)
        matcher = self._build_matcher(suppressions)

        logger.info(
            f"Running pack {self.name}: {len(self.rules)} rules, "
            f"{len(matcher.valid)} valid suppressions"
        )

        self.emitter.begin_pass()
        for evaluation in self.walker.walk(tree):
            match = None
            if evaluation.verdict is Verdict.NON_COMPLIANT:
                match = matcher.match(evaluation.rule.rule_id, evaluation.node.path)

            error = evaluation.error
            try:
                classification = self.classifier.classify(
                    evaluation.verdict, evaluation.rule, match, evaluation.node
                )
            except Exception as e:
                logger.error(
                    f"Error classifying rule {evaluation.rule.rule_id} on {evaluation.node.path}: {e}",
                    exc_info=True
                )
                error = f"{type(e).__name__}: {e}"
                classification = Classification(Disposition.EVALUATION_ERROR, RuleLevel.ERROR)

            message = self.explainer.explain(
                classification.disposition,
                evaluation.rule,
                evaluation.node.path,
                justification=classification.justification,
                error=error,
                ignored_suppression=classification.ignored_suppression,
            )
            self.emitter.record(Diagnostic(
                rule_id=evaluation.rule.rule_id,
                path=evaluation.node.path,
                disposition=classification.disposition,
                level=classification.level,
                rule_level=evaluation.rule.level,
                message=message,
                resource_type=evaluation.node.resource_type,
                rule_info=evaluation.rule.info,
                justification=classification.justification,
                error=error,
                ignored_suppression=classification.ignored_suppression,
            ))
        self.emitter.end_pass()

        summary = self.summary()
        logger.info(
            f"Pack {self.name} complete: "
            f"{summary[Disposition.VIOLATION.value]} violations, "
            f"{summary[Disposition.SUPPRESSED.value]} suppressed, "
            f"{summary[Disposition.EVALUATION_ERROR.value]} errors"
        )
        return self.emitter.diagnostics()

    def diagnostics(self) -> List[Diagnostic]:
        return self.emitter.diagnostics()

    def summary(self) -> Dict[str, int]:
        return self.emitter.counts()

    def passed(self) -> bool:
        return self.emitter.passed(self.config.fail_on)

    def gate_failures(self) -> List[Diagnostic]:
        return self.emitter.gate_failures(self.config.fail_on)

    def reset(self) -> None:
        self.emitter.reset()
        self.invalid_suppressions = []
