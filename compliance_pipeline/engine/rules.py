"""
Rule contract for compliance checks.

A rule wraps a check callable `check(node) -> Verdict` with its identity,
messages and severity. Checks must be pure functions of the node (and of
sibling nodes reachable through node.tree) and must not mutate anything.

Helpers in this module let checks read properties in a fail-closed way:
a missing or unresolved value raises UnresolvedValueError, which the rule
turns into NON_COMPLIANT.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Tuple
import logging

from resource_tree import ResourceNode, ResourceReference, Unresolved

from .errors import ConfigurationError, RuleContractError, UnresolvedValueError


logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Direct result of one rule applied to one node."""
    COMPLIANT = "Compliant"
    NON_COMPLIANT = "Non-Compliant"
    NOT_APPLICABLE = "N/A"
    EVALUATION_ERROR = "Error"


class RuleLevel(Enum):
    """Severity of a rule, and the reporting bucket of a diagnostic."""
    INFO = "Info"
    WARN = "Warning"
    ERROR = "Error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]

    @classmethod
    def parse(cls, value: Any) -> "RuleLevel":
        """Parse a level from config text ('info', 'warn', 'warning', 'error')."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[normalized]
        raise ConfigurationError(f"Unknown rule level: {value!r}")


_LEVEL_RANKS = {RuleLevel.INFO: 0, RuleLevel.WARN: 1, RuleLevel.ERROR: 2}
_LEVEL_ALIASES = {
    "info": RuleLevel.INFO,
    "warn": RuleLevel.WARN,
    "warning": RuleLevel.WARN,
    "error": RuleLevel.ERROR,
}


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def applies_to(*resource_types: str):
    """
    Declare which resource types a check covers.

    Nodes of any other type yield NOT_APPLICABLE without calling the check.
    """
    def decorator(check):
        check.resource_types = tuple(resource_types)
        return check
    return decorator


@dataclass(frozen=True)
class Rule:
    """A named, stateless compliance check."""
    rule_id: str
    check: Callable[[ResourceNode], Verdict]
    info: str
    explanation: str = ""
    level: RuleLevel = RuleLevel.ERROR
    resource_types: Tuple[str, ...] = ()
    ignore_suppression_condition: Optional[Any] = None

    def __post_init__(self):
        if not self.rule_id or not self.rule_id.strip():
            raise ConfigurationError("A rule must have a non-empty rule_id")
        declared = self.resource_types or getattr(self.check, "resource_types", ())
        object.__setattr__(self, "resource_types", tuple(declared))

    @classmethod
    def for_pack(
        cls,
        pack_name: str,
        check: Callable[[ResourceNode], Verdict],
        info: str,
        explanation: str = "",
        level: RuleLevel = RuleLevel.ERROR,
        suffix: Optional[str] = None,
        **kwargs
    ) -> "Rule":
        """
        Build a rule whose id is '<pack_name>-<suffix>'.

        The suffix defaults to the check's function name.
        """
        if not pack_name:
            raise ConfigurationError(
                "A pack name is required to build a rule id. Set a name on the pack."
            )
        suffix = suffix or getattr(check, "__name__", type(check).__name__)
        return cls(
            rule_id=f"{pack_name}-{suffix}",
            check=check,
            info=info,
            explanation=explanation,
            level=level,
            **kwargs
        )

    def is_applicable(self, node: ResourceNode) -> bool:
        if not self.resource_types:
            return True
        return node.resource_type in self.resource_types

    def with_level(self, level: RuleLevel) -> "Rule":
        return replace(self, level=level)

    def evaluate(self, node: ResourceNode) -> Verdict:
        """
        Apply the rule to one node.

        Returns:
            Verdict for the node

        Raises:
            RuleContractError: If the check returns a non-Verdict, or returns
                NOT_APPLICABLE for a node its declared types cover
            Exception: Anything else the check raises propagates to the walker
        """
        if not self.is_applicable(node):
            return Verdict.NOT_APPLICABLE

        try:
            verdict = self.check(node)
        except UnresolvedValueError as e:
            logger.debug(f"{self.rule_id} on {node.path}: {e} - treating as non-compliant")
            return Verdict.NON_COMPLIANT

        if not isinstance(verdict, Verdict):
            raise RuleContractError(
                f"Rule {self.rule_id} returned {verdict!r}; expected a Verdict"
            )
        if verdict is Verdict.NOT_APPLICABLE and self.resource_types:
            raise RuleContractError(
                f"Rule {self.rule_id} declares {node.resource_type} but returned N/A for {node.path}"
            )
        return verdict


def get_property(node: ResourceNode, *keys: Any, default: Any = MISSING) -> Any:
    """
    Read a nested property value.

    Keys walk mappings by name and lists by integer index. Returns default
    when any step is absent.
    """
    value: Any = node.properties
    for key in keys:
        if isinstance(value, dict) or hasattr(value, "keys"):
            if key not in value:
                return default
            value = value[key]
        elif isinstance(value, list) and isinstance(key, int):
            if not -len(value) <= key < len(value):
                return default
            value = value[key]
        else:
            return default
    return value


def require_property(node: ResourceNode, *keys: Any) -> Any:
    """
    Read a nested property that must be present and resolved.

    Raises:
        UnresolvedValueError: If the value is absent, None, or unresolved
    """
    value = get_property(node, *keys)
    dotted = ".".join(str(k) for k in keys)
    if value is MISSING or value is None:
        raise UnresolvedValueError(f"Property '{dotted}' is not set")
    if isinstance(value, Unresolved):
        raise UnresolvedValueError(f"Property '{dotted}' is unresolved ({value})")
    return value


def resolve_if_primitive(value: Any) -> Any:
    """
    Use where a primitive value must be known to pass a rule.

    Raises:
        UnresolvedValueError: If the value is unresolved or not a primitive
    """
    if value is MISSING:
        raise UnresolvedValueError("The value is not set")
    if isinstance(value, (Unresolved, ResourceReference)):
        raise UnresolvedValueError(
            f"The value resolved to a non-primitive value \"{value}\", therefore the rule could not be validated"
        )
    if isinstance(value, (dict, list)) or hasattr(value, "keys"):
        raise UnresolvedValueError(
            f"The value resolved to a non-primitive value \"{value!r}\", therefore the rule could not be validated"
        )
    return value


def resolve_resource_reference(value: Any) -> Any:
    """
    Use where the referenced resource must be known to pass a rule.

    Returns:
        The logical id for a ResourceReference, otherwise the value itself
    """
    if isinstance(value, ResourceReference):
        return value.logical_id
    if isinstance(value, Unresolved):
        raise UnresolvedValueError(f"Reference {value} could not be resolved")
    return value
