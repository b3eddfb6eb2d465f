"""
S3 bucket checks.
"""
from engine import (
    UnresolvedValueError,
    Verdict,
    applies_to,
    get_property,
    require_property,
    resolve_if_primitive,
)

from .policies import statement_denies_insecure_transport, targets_resource


BUCKET = "AWS::S3::Bucket"
BUCKET_POLICY = "AWS::S3::BucketPolicy"

PUBLIC_ACCESS_FLAGS = (
    "BlockPublicAcls",
    "BlockPublicPolicy",
    "IgnorePublicAcls",
    "RestrictPublicBuckets",
)


@applies_to(BUCKET)
def s3_bucket_logging_enabled(node) -> Verdict:
    """S3 buckets have server access logging enabled."""
    logging_config = require_property(node, "LoggingConfiguration")
    if not logging_config:
        return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT


@applies_to(BUCKET)
def s3_bucket_level_public_access_prohibited(node) -> Verdict:
    """S3 buckets block public access through all four bucket level settings."""
    require_property(node, "PublicAccessBlockConfiguration")
    for flag in PUBLIC_ACCESS_FLAGS:
        value = resolve_if_primitive(
            get_property(node, "PublicAccessBlockConfiguration", flag)
        )
        if value is not True:
            return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT


@applies_to(BUCKET)
def s3_bucket_server_side_encryption_enabled(node) -> Verdict:
    """S3 buckets have default server side encryption configured."""
    rules = require_property(node, "BucketEncryption", "ServerSideEncryptionConfiguration")
    if not isinstance(rules, list) or not rules:
        return Verdict.NON_COMPLIANT
    for rule in rules:
        if not isinstance(rule, dict):
            return Verdict.NON_COMPLIANT
        default = rule.get("ServerSideEncryptionByDefault")
        if not isinstance(default, dict):
            return Verdict.NON_COMPLIANT
        if not resolve_if_primitive(default.get("SSEAlgorithm", "")):
            return Verdict.NON_COMPLIANT
    return Verdict.COMPLIANT


@applies_to(BUCKET)
def s3_bucket_ssl_requests_only(node) -> Verdict:
    """
    S3 buckets require requests to use SSL.

    Some bucket policy in the same tree must target this bucket and deny
    every action when aws:SecureTransport is false.
    """
    bucket_name = get_property(node, "BucketName", default=None)
    if bucket_name is not None:
        try:
            bucket_name = resolve_if_primitive(bucket_name)
        except UnresolvedValueError:
            bucket_name = None

    for policy in node.tree.find_all(BUCKET_POLICY):
        if not targets_resource([get_property(policy, "Bucket", default=None)],
                                node.logical_id, bucket_name):
            continue
        statements = get_property(policy, "PolicyDocument", "Statement", default=[])
        if not isinstance(statements, list):
            continue
        if any(statement_denies_insecure_transport(s, "s3") for s in statements):
            return Verdict.COMPLIANT
    return Verdict.NON_COMPLIANT
