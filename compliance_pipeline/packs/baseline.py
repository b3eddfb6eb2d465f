"""
Baseline hardening pack.
"""
from typing import Iterable, List, Optional

from engine import DiagnosticListener, PackConfig, Rule, RuleLevel, RulePack, Suppression

import checks


PACK_NAME = "Baseline"


def get_baseline_rules() -> List[Rule]:
    """
    Get the baseline rules in registration order.

    To add a rule:
    1. Write a check in checks/ decorated with @applies_to
    2. Add a Rule.for_pack entry here with a stable suffix
    3. Add tests in tests/test_checks.py
    """
    return [
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_logging_enabled, suffix="S1",
            info="The S3 Bucket has server access logs disabled.",
            explanation=(
                "The bucket should have server access logging enabled to provide "
                "detailed records for the requests that are made to the bucket."
            ),
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_level_public_access_prohibited, suffix="S2",
            info="The S3 Bucket does not have public access restricted and blocked.",
            explanation=(
                "The bucket should have public access restricted and blocked to "
                "prevent unauthorized access."
            ),
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_server_side_encryption_enabled, suffix="S3",
            info="The S3 Bucket does not have default encryption enabled.",
            explanation="The bucket should minimally have SSE enabled to help protect data-at-rest.",
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.s3_bucket_ssl_requests_only, suffix="S10",
            info="The S3 Bucket does not require requests to use SSL.",
            explanation=(
                "Allow only encrypted connections over HTTPS using the "
                "aws:SecureTransport condition on bucket policies."
            ),
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.ec2_restricted_inbound, suffix="EC23",
            info="The Security Group allows for 0.0.0.0/0 or ::/0 inbound access.",
            explanation=(
                "Large port ranges, when open, expose instances to unwanted attacks. "
                "Security groups should only expose the ports a workload needs."
            ),
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.rds_storage_encrypted, suffix="RDS2",
            info="The RDS instance or Aurora DB cluster does not have storage encryption enabled.",
            explanation=(
                "Storage encryption helps protect data-at-rest by encrypting the underlying "
                "storage, automated backups, read replicas, and snapshots for the database."
            ),
            level=RuleLevel.ERROR,
        ),
        Rule.for_pack(
            PACK_NAME, checks.rds_instance_deletion_protection_enabled, suffix="RDS10",
            info="The RDS instance or Aurora DB cluster does not have deletion protection enabled.",
            explanation=(
                "The deletion protection feature helps protect the database from being "
                "accidentally deleted."
            ),
            level=RuleLevel.WARN,
        ),
        Rule.for_pack(
            PACK_NAME, checks.sqs_queue_dlq, suffix="SQS3",
            info="The SQS queue is not used as a DLQ and does not have a DLQ enabled.",
            explanation=(
                "Using a DLQ helps maintain the queue flow and avoid losing data by "
                "detecting and mitigating failures and service disruptions on time."
            ),
            level=RuleLevel.WARN,
        ),
        Rule.for_pack(
            PACK_NAME, checks.sqs_queue_ssl_requests_only, suffix="SQS4",
            info="The SQS queue does not require requests to use SSL.",
            explanation=(
                "Allow only encrypted connections over HTTPS using the "
                "aws:SecureTransport condition in the queue policy."
            ),
            level=RuleLevel.ERROR,
        ),
    ]


def build_baseline_pack(
    suppressions: Optional[Iterable[Suppression]] = None,
    config: Optional[PackConfig] = None,
    listeners: Optional[Iterable[DiagnosticListener]] = None
) -> RulePack:
    return RulePack(PACK_NAME, get_baseline_rules(), suppressions, config, listeners)
