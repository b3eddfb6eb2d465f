"""
IAM policy checks.
"""
from engine import UnresolvedValueError, Verdict, applies_to, get_property

from .policies import grants_full_access


POLICY = "AWS::IAM::Policy"
MANAGED_POLICY = "AWS::IAM::ManagedPolicy"
ROLE = "AWS::IAM::Role"
GROUP = "AWS::IAM::Group"


def _statements(document):
    if document is None:
        return []
    if not isinstance(document, dict):
        raise UnresolvedValueError(f"Policy document is not resolved ({document})")
    statements = document.get("Statement", [])
    if isinstance(statements, dict):
        return [statements]
    if not isinstance(statements, list):
        raise UnresolvedValueError(f"Policy statements are not resolved ({statements})")
    return statements


@applies_to(POLICY, MANAGED_POLICY, ROLE, GROUP)
def iam_policy_no_statements_with_full_access(node) -> Verdict:
    """IAM policies do not grant full access to a service."""
    if node.resource_type in (POLICY, MANAGED_POLICY):
        documents = [get_property(node, "PolicyDocument", default=None)]
    else:
        inline = get_property(node, "Policies", default=[])
        if not isinstance(inline, list):
            raise UnresolvedValueError(f"Inline policies are not resolved ({inline})")
        documents = [p.get("PolicyDocument") for p in inline if isinstance(p, dict)]

    for document in documents:
        if any(grants_full_access(s) for s in _statements(document)):
            return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT
