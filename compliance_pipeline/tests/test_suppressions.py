"""
Tests for suppression validation and matching.
"""
import pytest

from engine import (
    ConfigurationError,
    InvalidSuppressionError,
    Suppression,
    SuppressionMatcher,
)
from engine.suppressions import collect_node_suppressions

from conftest import BUCKET, build_tree


REASON = "Reviewed and accepted by the platform team."


def matcher(*suppressions, pack_name="Baseline", **kwargs):
    return SuppressionMatcher(list(suppressions), pack_name=pack_name, **kwargs)


class TestSuppressionValidation:
    """Test suppression validation rules."""

    def test_valid_suppression(self):
        suppression = Suppression("Stack/rBucket", "Baseline-S1", REASON)

        assert suppression.is_valid()
        assert suppression.validation_errors() == []

    @pytest.mark.parametrize("reason", ["", "   ", "too short", None])
    def test_short_or_missing_reason_invalid(self, reason):
        """A justification must reach the minimum length."""
        suppression = Suppression("Stack/rBucket", "Baseline-S1", reason)

        errors = suppression.validation_errors()
        assert any("'reason'" in e for e in errors)

    def test_min_reason_length_configurable(self):
        suppression = Suppression("Stack/rBucket", "Baseline-S1", "too short")

        assert suppression.is_valid(min_reason_length=5)
        assert not suppression.is_valid(min_reason_length=50)

    def test_missing_rule_id_invalid(self):
        suppression = Suppression("Stack/rBucket", "", REASON)

        assert any("rule_id" in e for e in suppression.validation_errors())

    def test_finding_in_rule_id_invalid(self):
        """Suppressions target rules, not individual findings."""
        suppression = Suppression("Stack/rBucket", "Baseline-IAM5[Action::s3:*]", REASON)

        assert any("contains a finding" in e for e in suppression.validation_errors())

    def test_missing_target_invalid(self):
        suppression = Suppression("//", "Baseline-S1", REASON)

        assert any("'target'" in e for e in suppression.validation_errors())

    def test_from_dict_accepts_aliases(self):
        """'id' and 'path' are accepted alongside 'rule_id' and 'target'."""
        suppression = Suppression.from_dict(
            {"id": "Baseline-S1", "path": "Stack/rBucket", "reason": REASON}
        )

        assert suppression.rule_id == "Baseline-S1"
        assert suppression.target == "Stack/rBucket"
        assert suppression.applies_to_children is False

    def test_from_dict_rejects_non_mapping(self):
        """Malformed suppression records are configuration errors."""
        with pytest.raises(ConfigurationError, match="Improperly formatted suppression"):
            Suppression.from_dict(["Baseline-S1", REASON])


class TestSuppressionMatcher:
    """Test the first-match-wins tiers."""

    def test_exact_path_and_rule(self):
        m = matcher(Suppression("Stack/rBucket", "Baseline-S1", REASON))

        match = m.match("Baseline-S1", "Stack/rBucket")
        assert match.tier == 1
        assert match.justification == REASON
        assert m.match("Baseline-S2", "Stack/rBucket") is None

    def test_target_normalized(self):
        """Leading and trailing separators do not affect matching."""
        m = matcher(Suppression("/Stack/rBucket/", "Baseline-S1", REASON))

        assert m.covers("Baseline-S1", "Stack/rBucket")

    def test_exact_rule_beats_wildcard_on_same_path(self):
        wildcard = Suppression("Stack/rBucket", "*", "Wildcard waiver for every rule.")
        exact = Suppression("Stack/rBucket", "Baseline-S1", REASON)
        m = matcher(wildcard, exact)

        match = m.match("Baseline-S1", "Stack/rBucket")
        assert match.suppression is exact
        assert match.tier == 1

        other = m.match("Baseline-S2", "Stack/rBucket")
        assert other.suppression is wildcard
        assert other.tier == 2

    def test_pack_wildcard_only_covers_own_pack(self):
        """'<Pack>-*' covers that pack's rules only."""
        m = matcher(Suppression("Stack/rBucket", "Baseline-*", REASON))
        other_pack = matcher(
            Suppression("Stack/rBucket", "HIPAA.Security-*", REASON)
        )

        assert m.covers("Baseline-S1", "Stack/rBucket")
        assert not other_pack.covers("Baseline-S1", "Stack/rBucket")

    def test_no_prefix_matching_on_paths(self, vpc_tree):
        """A suppression on rVpc covers neither rVpcExtra nor, without children, rSubnet."""
        m = matcher(Suppression("Stack/rVpc", "Baseline-VPC1", REASON))

        assert m.covers("Baseline-VPC1", "Stack/rVpc")
        assert not m.covers("Baseline-VPC1", "Stack/rVpcExtra")
        assert not m.covers("Baseline-VPC1", "Stack/rVpc/rSubnet")

    def test_applies_to_children(self, vpc_tree):
        """applies_to_children extends the waiver to descendants only."""
        m = matcher(Suppression("Stack/rVpc", "Baseline-VPC1", REASON, applies_to_children=True))

        match = m.match("Baseline-VPC1", "Stack/rVpc/rSubnet")
        assert match.tier == 3
        assert not m.covers("Baseline-VPC1", "Stack/rVpcExtra")

    def test_nearest_ancestor_wins(self):
        outer = Suppression("Stack", "Baseline-S1", "Outer stack-level waiver.", applies_to_children=True)
        inner = Suppression("Stack/Group", "Baseline-S1", "Inner group-level waiver.", applies_to_children=True)
        m = matcher(outer, inner)

        match = m.match("Baseline-S1", "Stack/Group/rBucket")
        assert match.suppression is inner

    def test_exact_path_beats_ancestor(self):
        ancestor = Suppression("Stack", "Baseline-S1", "Stack-level waiver text.", applies_to_children=True)
        exact = Suppression("Stack/rBucket", "*", "Bucket-level waiver text.")
        m = matcher(ancestor, exact)

        match = m.match("Baseline-S1", "Stack/rBucket")
        assert match.suppression is exact
        assert match.tier == 2

    def test_pack_wide_target(self):
        m = matcher(Suppression("*", "Baseline-S1", REASON))

        match = m.match("Baseline-S1", "Stack/any/thing")
        assert match.tier == 4
        assert not m.covers("Baseline-S2", "Stack/any/thing")

    def test_default_child_counts_as_exact(self):
        """A suppression on a construct covers its default 'Resource' child."""
        m = matcher(Suppression("Stack/rBucket", "Baseline-S1", REASON))

        match = m.match("Baseline-S1", "Stack/rBucket/Resource")
        assert match.tier == 1
        assert not m.covers("Baseline-S1", "Stack/rBucket/Policy")

    def test_invalid_suppressions_never_match(self):
        """Non-strict mode drops invalid suppressions."""
        m = matcher(Suppression("Stack/rBucket", "Baseline-S1", "short"))

        assert not m.covers("Baseline-S1", "Stack/rBucket")
        assert len(m.invalid) == 1
        assert m.valid == []

    def test_strict_mode_raises(self):
        with pytest.raises(InvalidSuppressionError) as excinfo:
            matcher(
                Suppression("Stack/rBucket", "Baseline-S1", "short"),
                Suppression("Stack/rQueue", "", REASON),
                strict=True,
            )

        assert len(excinfo.value.problems) == 2
        assert "Stack/rBucket" in str(excinfo.value)

    def test_empty_path_never_matches(self):
        m = matcher(Suppression("*", "*", REASON))

        assert m.match("Baseline-S1", "") is None


class TestNodeSuppressions:
    """Test suppressions attached to nodes through metadata."""

    def test_resource_node_suppression_targets_node(self):
        tree = build_tree({
            "id": "rBucket", "type": BUCKET,
            "metadata": {"nag_suppressions": [{"rule_id": "Baseline-S1", "reason": REASON}]},
        })

        suppressions = collect_node_suppressions(tree)

        assert suppressions == [Suppression("Stack/rBucket", "Baseline-S1", REASON, False)]

    def test_scope_node_suppression_applies_to_children(self):
        tree = build_tree({
            "id": "Group",
            "metadata": {"nag_suppressions": [{"rule_id": "Baseline-*", "reason": REASON}]},
            "children": [{"id": "rBucket", "type": BUCKET}],
        })

        suppressions = collect_node_suppressions(tree)
        m = matcher(*suppressions)

        assert suppressions[0].applies_to_children is True
        assert m.match("Baseline-S1", "Stack/Group/rBucket").tier == 3

    def test_explicit_flag_wins_on_scope_nodes(self):
        tree = build_tree({
            "id": "Group",
            "metadata": {"nag_suppressions": [
                {"rule_id": "Baseline-S1", "reason": REASON, "applies_to_children": False}
            ]},
        })

        assert collect_node_suppressions(tree)[0].applies_to_children is False

    def test_metadata_must_be_a_list(self):
        tree = build_tree({
            "id": "rBucket", "type": BUCKET,
            "metadata": {"nag_suppressions": {"rule_id": "Baseline-S1"}},
        })

        with pytest.raises(ConfigurationError, match="must be a list"):
            collect_node_suppressions(tree)
