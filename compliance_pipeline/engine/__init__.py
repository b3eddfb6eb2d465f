"""
Rule-pack engine: evaluates rules over a resource tree, reconciles the
verdicts with suppressions and records diagnostics.
"""
from .classifier import Classification, ComplianceClassifier, Disposition
from .conditions import (
    SuppressionIgnore,
    SuppressionIgnoreAlways,
    SuppressionIgnoreAnd,
    SuppressionIgnoreOr,
)
from .diagnostics import Diagnostic, DiagnosticEmitter
from .errors import (
    ConfigurationError,
    DuplicateRuleError,
    InvalidSuppressionError,
    RuleContractError,
    UnresolvedValueError,
)
from .explainer import DiagnosticExplainer
from .listeners import DiagnosticListener, LoggingListener
from .pack import PackConfig, RulePack
from .rules import (
    MISSING,
    Rule,
    RuleLevel,
    Verdict,
    applies_to,
    get_property,
    require_property,
    resolve_if_primitive,
    resolve_resource_reference,
)
from .suppressions import Suppression, SuppressionMatch, SuppressionMatcher
from .walker import Evaluation, TreeWalker

__all__ = [
    'Classification',
    'ComplianceClassifier',
    'ConfigurationError',
    'Diagnostic',
    'DiagnosticEmitter',
    'DiagnosticExplainer',
    'DiagnosticListener',
    'Disposition',
    'DuplicateRuleError',
    'Evaluation',
    'InvalidSuppressionError',
    'LoggingListener',
    'MISSING',
    'PackConfig',
    'Rule',
    'RuleContractError',
    'RuleLevel',
    'RulePack',
    'Suppression',
    'SuppressionIgnore',
    'SuppressionIgnoreAlways',
    'SuppressionIgnoreAnd',
    'SuppressionIgnoreOr',
    'SuppressionMatch',
    'SuppressionMatcher',
    'TreeWalker',
    'UnresolvedValueError',
    'Verdict',
    'applies_to',
    'get_property',
    'require_property',
    'resolve_if_primitive',
    'resolve_resource_reference',
]
