"""
SQS queue checks.
"""
from engine import (
    UnresolvedValueError,
    Verdict,
    applies_to,
    get_property,
    resolve_if_primitive,
    resolve_resource_reference,
)

from .policies import statement_denies_insecure_transport, targets_resource


QUEUE = "AWS::SQS::Queue"
QUEUE_POLICY = "AWS::SQS::QueuePolicy"


@applies_to(QUEUE)
def sqs_queue_ssl_requests_only(node) -> Verdict:
    """
    SQS queues require requests to use SSL.

    Cross-resource check: some queue policy in the same tree must target
    this queue (by reference or by name) and deny all SQS actions for all
    principals when aws:SecureTransport is false.
    """
    queue_name = get_property(node, "QueueName", default=None)
    if queue_name is not None:
        try:
            queue_name = resolve_if_primitive(queue_name)
        except UnresolvedValueError:
            queue_name = None

    for policy in node.tree.find_all(QUEUE_POLICY):
        queues = get_property(policy, "Queues", default=[])
        if not isinstance(queues, list) or not targets_resource(queues, node.logical_id, queue_name):
            continue
        statements = get_property(policy, "PolicyDocument", "Statement", default=[])
        if not isinstance(statements, list):
            continue
        if any(statement_denies_insecure_transport(s, "sqs") for s in statements):
            return Verdict.COMPLIANT
    return Verdict.NON_COMPLIANT


@applies_to(QUEUE)
def sqs_queue_dlq(node) -> Verdict:
    """SQS queues have a dead-letter queue configured, unless they are one."""
    for other in node.tree.find_all(QUEUE):
        target = get_property(other, "RedrivePolicy", "deadLetterTargetArn", default=None)
        if target is not None and targets_resource([target], node.logical_id, None):
            return Verdict.COMPLIANT

    redrive = get_property(node, "RedrivePolicy", default=None)
    if not isinstance(redrive, dict):
        return Verdict.NON_COMPLIANT
    target = redrive.get("deadLetterTargetArn")
    if target is None:
        return Verdict.NON_COMPLIANT
    resolve_resource_reference(target)
    return Verdict.COMPLIANT
