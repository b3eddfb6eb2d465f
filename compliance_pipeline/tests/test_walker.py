"""
Tests for the tree walker.
"""
from engine import Rule, TreeWalker, Verdict

from conftest import BUCKET, build_tree


def always(verdict):
    def check(node):
        return verdict
    return check


def broken_check(node):
    raise ZeroDivisionError("division by zero")


class TestTreeWalker:
    """Test traversal order and error containment."""

    def test_every_rule_runs_on_every_node_in_order(self):
        tree = build_tree({"id": "a"}, {"id": "b"})
        rules = [Rule("R1", always(Verdict.COMPLIANT), info="r1"),
                 Rule("R2", always(Verdict.COMPLIANT), info="r2")]

        pairs = [(e.node.path, e.rule.rule_id) for e in TreeWalker(rules).walk(tree)]

        assert pairs == [
            ("Stack", "R1"), ("Stack", "R2"),
            ("Stack/a", "R1"), ("Stack/a", "R2"),
            ("Stack/b", "R1"), ("Stack/b", "R2"),
        ]

    def test_failing_rule_is_contained(self, encryption_rule, unencrypted_tree):
        """A raising rule yields EVALUATION_ERROR; other rules still run."""
        walker = TreeWalker([Rule("Broken", broken_check, info="broken"), encryption_rule])

        evaluations = list(walker.walk(unencrypted_tree))

        broken = [e for e in evaluations if e.rule.rule_id == "Broken"]
        assert len(broken) == 3
        assert all(e.verdict is Verdict.EVALUATION_ERROR for e in broken)
        assert broken[0].error == "ZeroDivisionError: division by zero"

        encryption = {e.node.path: e.verdict for e in evaluations if e.rule.rule_id == "EncryptionEnabled"}
        assert encryption == {
            "Stack": Verdict.NOT_APPLICABLE,
            "Stack/rBucket": Verdict.NON_COMPLIANT,
            "Stack/rSecureBucket": Verdict.COMPLIANT,
        }
        assert walker.errors == 3
        assert walker.nodes_visited == 3

    def test_contract_violation_is_an_evaluation_error(self):
        tree = build_tree({"id": "rBucket", "type": BUCKET})
        walker = TreeWalker([Rule("Boolean", lambda node: False, info="bool")])

        verdicts = [e.verdict for e in walker.walk(tree)]

        assert verdicts == [Verdict.EVALUATION_ERROR, Verdict.EVALUATION_ERROR]

    def test_walk_does_not_mutate_tree(self, encryption_rule, unencrypted_tree):
        before = {n.path: dict(n.properties) for n in unencrypted_tree.walk()}

        list(TreeWalker([encryption_rule]).walk(unencrypted_tree))

        assert {n.path: dict(n.properties) for n in unencrypted_tree.walk()} == before

    def test_explain_node(self, encryption_rule, unencrypted_tree):
        walker = TreeWalker([encryption_rule, Rule("Broken", broken_check, info="broken")])

        explanation = walker.explain_node(unencrypted_tree.get("Stack/rBucket"))

        assert explanation['path'] == "Stack/rBucket"
        assert explanation['resource_type'] == BUCKET
        assert explanation['total_rules_evaluated'] == 2
        first, second = explanation['evaluation_trace']
        assert first == {'rule_id': "EncryptionEnabled", 'applicable': True, 'verdict': "Non-Compliant"}
        assert second['verdict'] == "Error"
        assert "ZeroDivisionError" in second['error']
