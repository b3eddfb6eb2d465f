"""
EC2 security group checks.

Both checks accept inline ingress rules on a security group and
standalone ingress resources. Port and CIDR values must be resolved;
an unresolved value fails the check.
"""
from typing import Any, Dict, List

from engine import Verdict, applies_to, get_property, resolve_if_primitive


SECURITY_GROUP = "AWS::EC2::SecurityGroup"
SECURITY_GROUP_INGRESS = "AWS::EC2::SecurityGroupIngress"

ALL_PROTOCOLS = "-1"


def _ingress_rules(node) -> List[Dict[str, Any]]:
    if node.resource_type == SECURITY_GROUP_INGRESS:
        return [dict(node.properties)]
    rules = get_property(node, "SecurityGroupIngress", default=[])
    if not isinstance(rules, list):
        # Unresolved rule list; checked as an open rule
        return [{"CidrIp": resolve_if_primitive(rules)}]
    return [rule if isinstance(rule, dict) else {"CidrIp": rule} for rule in rules]


def _is_open_to_world(rule: Dict[str, Any]) -> bool:
    for key in ("CidrIp", "CidrIpv6"):
        if key in rule and rule[key] is not None:
            if str(resolve_if_primitive(rule[key])).endswith("/0"):
                return True
    return False


def _exposes_port(rule: Dict[str, Any], port: int) -> bool:
    protocol = rule.get("IpProtocol")
    if protocol is not None and str(resolve_if_primitive(protocol)) == ALL_PROTOCOLS:
        return True

    from_port = rule.get("FromPort")
    to_port = rule.get("ToPort")
    if from_port is not None and to_port is not None:
        from_port = int(resolve_if_primitive(from_port))
        to_port = int(resolve_if_primitive(to_port))
        return from_port == -1 or to_port == -1 or from_port <= port <= to_port
    if from_port is not None:
        return int(resolve_if_primitive(from_port)) == port
    return False


@applies_to(SECURITY_GROUP, SECURITY_GROUP_INGRESS)
def ec2_restricted_inbound(node) -> Verdict:
    """Security groups do not allow 0.0.0.0/0 or ::/0 inbound access."""
    for rule in _ingress_rules(node):
        if _is_open_to_world(rule):
            return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT


@applies_to(SECURITY_GROUP, SECURITY_GROUP_INGRESS)
def ec2_restricted_ssh(node) -> Verdict:
    """Security groups do not allow unrestricted SSH traffic."""
    for rule in _ingress_rules(node):
        if _is_open_to_world(rule) and _exposes_port(rule, 22):
            return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT
