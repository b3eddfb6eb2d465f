"""
Suppression records and the matcher that decides whether one covers a
(rule, resource path) pair.

Matching order (first match wins, no scoring):
1. exact path + exact rule id
2. exact path + wildcard rule id
3. ancestor path marked applies_to_children, nearest ancestor first,
   exact rule id before wildcard
4. pack-wide target '*', exact rule id before wildcard

Paths are compared segment by segment, so a suppression on 'rVpc' never
covers 'rVpcExtra'. Suppressions without a proper justification never
match anything.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import re

from resource_tree import PATH_SEPARATOR, ResourceTree, join_path, split_path

from .errors import ConfigurationError, InvalidSuppressionError


logger = logging.getLogger(__name__)

WILDCARD = "*"
DEFAULT_CHILD_ID = "Resource"
DEFAULT_MIN_REASON_LENGTH = 10
METADATA_KEY = "nag_suppressions"

_FINDING_SUFFIX = re.compile(r"\[.*\]")


@dataclass(frozen=True)
class Suppression:
    """
    Operator-authored waiver for a rule on a resource or path scope.

    Attributes:
        target: Resource path, path prefix, or '*' for the whole pack
        rule_id: Exact rule id, '*' for every rule of the evaluating pack,
            or '<Pack>-*' for every rule of the named pack
        reason: Mandatory justification, carried into diagnostics
        applies_to_children: Also cover every node below target
    """
    target: str
    rule_id: str
    reason: str = ""
    applies_to_children: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], target: Optional[str] = None) -> "Suppression":
        """
        Build a suppression from a config or metadata record.

        Accepts 'rule_id' or 'id' for the rule selector and 'target' or
        'path' for the target. An explicit target argument wins.

        Raises:
            ConfigurationError: If the record is not a mapping
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Improperly formatted suppression detected: {data!r}. "
                "Expected a mapping with 'rule_id' and 'reason'."
            )
        return cls(
            target=str(target if target is not None else data.get("target", data.get("path", ""))),
            rule_id=str(data.get("rule_id", data.get("id", "")) or ""),
            reason=data.get("reason") or "",
            applies_to_children=bool(data.get("applies_to_children", False)),
        )

    @property
    def normalized_target(self) -> str:
        if self.target.strip() == WILDCARD:
            return WILDCARD
        return join_path(*split_path(self.target))

    @property
    def is_pack_wide(self) -> bool:
        return self.normalized_target == WILDCARD

    def covers_rule(self, rule_id: str, pack_name: str) -> bool:
        """True when the rule selector names rule_id exactly or by wildcard."""
        if self.rule_id == rule_id or self.rule_id == WILDCARD:
            return True
        return self.rule_id == f"{pack_name}-{WILDCARD}"

    def validation_errors(self, min_reason_length: int = DEFAULT_MIN_REASON_LENGTH) -> List[str]:
        """Return every problem with this suppression; empty when valid."""
        errors = []
        if not self.rule_id.strip():
            errors.append("The suppression must name a rule 'rule_id'.")
        elif _FINDING_SUFFIX.search(self.rule_id):
            errors.append(
                f"The suppression 'rule_id' {self.rule_id} contains a finding; "
                "suppress the rule itself."
            )
        if not self.normalized_target:
            errors.append("The suppression must name a 'target' path or '*'.")
        if not isinstance(self.reason, str) or len(self.reason.strip()) < min_reason_length:
            errors.append(
                f"The suppression must have a 'reason' of {min_reason_length} characters or more."
            )
        return errors

    def is_valid(self, min_reason_length: int = DEFAULT_MIN_REASON_LENGTH) -> bool:
        return not self.validation_errors(min_reason_length)


@dataclass(frozen=True)
class SuppressionMatch:
    """A covering suppression and the matching tier that selected it."""
    suppression: Suppression
    tier: int

    @property
    def justification(self) -> str:
        return self.suppression.reason


def collect_node_suppressions(tree: ResourceTree) -> List[Suppression]:
    """
    Gather suppressions attached to nodes through metadata.

    The target of each record is the node path. Records on scope nodes
    (nodes without a resource type) apply to children unless they say
    otherwise, since a scope node is never evaluated as a resource.
    """
    suppressions = []
    for node in tree.walk():
        records = node.metadata.get(METADATA_KEY) or []
        if not isinstance(records, list):
            raise ConfigurationError(
                f"{node.path}: '{METADATA_KEY}' metadata must be a list of suppressions"
            )
        for record in records:
            suppression = Suppression.from_dict(record, target=node.path)
            if isinstance(record, Mapping) and "applies_to_children" not in record:
                suppression = Suppression(
                    target=suppression.target,
                    rule_id=suppression.rule_id,
                    reason=suppression.reason,
                    applies_to_children=not node.is_resource(),
                )
            suppressions.append(suppression)
    return suppressions


class SuppressionMatcher:
    """
    Resolves whether a valid suppression covers a (rule id, path) pair.

    Invalid suppressions are validated once at construction: in strict mode
    they raise InvalidSuppressionError, otherwise they are dropped with a
    warning and never match.
    """

    def __init__(
        self,
        suppressions: Iterable[Suppression],
        pack_name: str,
        min_reason_length: int = DEFAULT_MIN_REASON_LENGTH,
        strict: bool = False
    ):
        """
        Initialize the matcher.

        Args:
            suppressions: Suppressions in registration order
            pack_name: Name of the evaluating pack, for '<Pack>-*' selectors
            min_reason_length: Minimum justification length
            strict: Raise on invalid suppressions instead of dropping them
        """
        self.pack_name = pack_name
        self.min_reason_length = min_reason_length
        self.strict = strict

        self.valid: List[Suppression] = []
        self.invalid: List[Tuple[Suppression, List[str]]] = []

        for suppression in suppressions:
            errors = suppression.validation_errors(min_reason_length)
            if errors:
                self.invalid.append((suppression, errors))
            else:
                self.valid.append(suppression)

        if self.invalid:
            problems = [
                f"{s.target or '<no target>'} / {s.rule_id or '<no rule>'}: {' '.join(errors)}"
                for s, errors in self.invalid
            ]
            if strict:
                raise InvalidSuppressionError(problems)
            for problem in problems:
                logger.warning(f"Ignoring invalid suppression {problem}")

        self._by_target: Dict[str, List[Suppression]] = {}
        self._pack_wide: List[Suppression] = []
        for suppression in self.valid:
            if suppression.is_pack_wide:
                self._pack_wide.append(suppression)
            else:
                self._by_target.setdefault(suppression.normalized_target, []).append(suppression)

    def match(self, rule_id: str, path: str) -> Optional[SuppressionMatch]:
        """
        Find the suppression covering rule_id on path.

        Returns:
            SuppressionMatch for the first covering suppression, or None
        """
        segments = split_path(path)
        if not segments:
            return None
        normalized = PATH_SEPARATOR.join(segments)

        exact = list(self._by_target.get(normalized, []))
        if len(segments) > 1 and segments[-1] == DEFAULT_CHILD_ID:
            exact.extend(self._by_target.get(PATH_SEPARATOR.join(segments[:-1]), []))

        found = self._first_covering(exact, rule_id)
        if found:
            return SuppressionMatch(found, 1 if found.rule_id == rule_id else 2)

        for depth in range(len(segments) - 1, 0, -1):
            ancestor = PATH_SEPARATOR.join(segments[:depth])
            candidates = [
                s for s in self._by_target.get(ancestor, []) if s.applies_to_children
            ]
            found = self._first_covering(candidates, rule_id)
            if found:
                return SuppressionMatch(found, 3)

        found = self._first_covering(self._pack_wide, rule_id)
        if found:
            return SuppressionMatch(found, 4)

        return None

    def covers(self, rule_id: str, path: str) -> bool:
        return self.match(rule_id, path) is not None

    def _first_covering(self, candidates: List[Suppression], rule_id: str) -> Optional[Suppression]:
        for suppression in candidates:
            if suppression.rule_id == rule_id:
                return suppression
        for suppression in candidates:
            if suppression.covers_rule(rule_id, self.pack_name):
                return suppression
        return None

