"""
Tree walker that evaluates a rule set against every node of a tree.

Nodes are visited once each in pre-order (children in declaration order),
and every rule runs against every node in registration order. A rule that
raises is contained to its own (rule, node) pair: the walker records an
EVALUATION_ERROR and moves on.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
import logging

from resource_tree import ResourceNode, ResourceTree

from .rules import Rule, Verdict


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    """One (rule, node, verdict) triple produced by a traversal."""
    rule: Rule
    node: ResourceNode
    verdict: Verdict
    error: Optional[str] = None


class TreeWalker:
    """
    Deterministic walker over a resource tree.

    The order of evaluations depends only on the tree shape and the rule
    order, so identical inputs always produce the same stream.
    """

    def __init__(self, rules: List[Rule]):
        """
        Initialize the walker.

        Args:
            rules: Rules to evaluate, in registration order
        """
        self.rules = list(rules)
        self.nodes_visited = 0
        self.errors = 0

    def walk(self, tree: ResourceTree) -> Iterator[Evaluation]:
        """
        Evaluate every rule against every node.

        Args:
            tree: Resource tree to traverse (never mutated)

        Yields:
            Evaluation for each (rule, node) pair
        """
        self.nodes_visited = 0
        self.errors = 0

        for node in tree.walk():
            self.nodes_visited += 1
            for rule in self.rules:
                yield self._evaluate(rule, node)

        logger.debug(
            f"Walked {self.nodes_visited} nodes with {len(self.rules)} rules "
            f"({self.errors} evaluation errors)"
        )

    def _evaluate(self, rule: Rule, node: ResourceNode) -> Evaluation:
        try:
            return Evaluation(rule, node, rule.evaluate(node))
        except Exception as e:
            self.errors += 1
            logger.error(
                f"Error evaluating rule {rule.rule_id} on {node.path}: {e}",
                exc_info=True
            )
            return Evaluation(rule, node, Verdict.EVALUATION_ERROR, error=f"{type(e).__name__}: {e}")

    def explain_node(self, node: ResourceNode) -> Dict[str, Any]:
        """
        Get a detailed evaluation trace for one node.

        Args:
            node: Node to evaluate

        Returns:
            Dictionary with the node and the verdict of every rule
        """
        trace = []
        for rule in self.rules:
            evaluation = self._evaluate(rule, node)
            entry = {
                'rule_id': rule.rule_id,
                'applicable': rule.is_applicable(node),
                'verdict': evaluation.verdict.value,
            }
            if evaluation.error:
                entry['error'] = evaluation.error
            trace.append(entry)

        return {
            'path': node.path,
            'resource_type': node.resource_type,
            'evaluation_trace': trace,
            'total_rules_evaluated': len(trace)
        }
