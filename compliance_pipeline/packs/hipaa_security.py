"""
HIPAA Security pack.

Rule ids follow the '<Pack>-<CheckName>' convention. Full-access IAM
statements can never be waived in this pack.
"""
from typing import Iterable, List, Optional

from engine import (
    DiagnosticListener,
    PackConfig,
    Rule,
    RuleLevel,
    RulePack,
    Suppression,
    SuppressionIgnoreAlways,
)

import checks


PACK_NAME = "HIPAA.Security"

FULL_ACCESS_NOT_WAIVABLE = SuppressionIgnoreAlways(
    "Policies granting full access to a service cannot be waived under HIPAA Security."
)


def get_hipaa_security_rules() -> List[Rule]:
    """Get the HIPAA Security rules in registration order."""
    return [
        Rule.for_pack(
            PACK_NAME, checks.ec2_restricted_ssh, suffix="EC2RestrictedSSH",
            info="The Security Group allows unrestricted SSH access - "
                 "(Control IDs: 164.308(a)(3)(i), 164.308(a)(4)(i), 164.312(a)(1), 164.312(e)(1)).",
            explanation=(
                "Not allowing ingress (or remote) traffic from 0.0.0.0/0 or ::/0 to port 22 "
                "on your resources helps restrict remote access."
            ),
        ),
        Rule.for_pack(
            PACK_NAME, checks.iam_policy_no_statements_with_full_access,
            suffix="IAMPolicyNoStatementsWithFullAccess",
            info="The IAM policy grants full access - "
                 "(Control IDs: 164.308(a)(3)(i), 164.308(a)(4)(i), 164.312(a)(1)).",
            explanation=(
                "Ensure IAM Actions are restricted to only those actions that are needed. "
                "Allowing users to have more privileges than needed to complete a task may "
                "violate the principle of least privilege and separation of duties."
            ),
            ignore_suppression_condition=FULL_ACCESS_NOT_WAIVABLE,
        ),
        Rule.for_pack(
            PACK_NAME, checks.rds_instance_deletion_protection_enabled,
            suffix="RDSInstanceDeletionProtectionEnabled",
            info="The RDS DB instance or Aurora DB cluster does not have deletion protection enabled - "
                 "(Control IDs: 164.308(a)(7)(i), 164.308(a)(7)(ii)(C)).",
            explanation=(
                "Ensure RDS instances and clusters have deletion protection enabled. Use "
                "deletion protection to prevent your RDS DB instances and clusters from "
                "being accidentally or maliciously deleted."
            ),
        ),
        Rule.for_pack(
            PACK_NAME, checks.rds_storage_encrypted, suffix="RDSStorageEncrypted",
            info="The RDS DB instance or Aurora DB cluster does not have storage encrypted - "
                 "(Control IDs: 164.312(a)(2)(iv), 164.312(e)(2)(ii)).",
            explanation=(
                "Because sensitive data can exist at rest in Amazon RDS DB instances and "
                "clusters, enable encryption at rest to help protect that data."
            ),
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_level_public_access_prohibited,
            suffix="S3BucketLevelPublicAccessProhibited",
            info="The S3 bucket does not prohibit public access through bucket level settings - "
                 "(Control IDs: 164.308(a)(3)(i), 164.308(a)(4)(ii)(A), 164.312(a)(1), 164.312(e)(1)).",
            explanation=(
                "Keep sensitive data safe from unauthorized remote users by preventing "
                "public access at the bucket level."
            ),
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_logging_enabled, suffix="S3BucketLoggingEnabled",
            info="The S3 Buckets does not have server access logs enabled - "
                 "(Control IDs: 164.308(a)(3)(ii)(A), 164.312(b)).",
            explanation=(
                "Amazon S3 server access logging provides a method to monitor the network "
                "for potential cybersecurity events."
            ),
            level=RuleLevel.WARN,
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_ssl_requests_only, suffix="S3BucketSSLRequestsOnly",
            info="The S3 Bucket or bucket policy does not require requests to use SSL - "
                 "(Control IDs: 164.312(a)(2)(iv), 164.312(c)(2), 164.312(e)(1), 164.312(e)(2)(i), "
                 "164.312(e)(2)(ii)).",
            explanation=(
                "To help protect data in transit, ensure that your S3 buckets require "
                "requests to use SSL."
            ),
        ),
    ]


def build_hipaa_security_pack(
    suppressions: Optional[Iterable[Suppression]] = None,
    config: Optional[PackConfig] = None,
    listeners: Optional[Iterable[DiagnosticListener]] = None
) -> RulePack:
    return RulePack(PACK_NAME, get_hipaa_security_rules(), suppressions, config, listeners)
