"""
Sample compliance checks.

Each check is a plain function `check(node) -> Verdict` decorated with
@applies_to to declare the resource types it covers. Packs wrap checks
into rules with ids, messages and levels.
"""
from .ec2 import ec2_restricted_inbound, ec2_restricted_ssh
from .iam import iam_policy_no_statements_with_full_access
from .rds import rds_instance_deletion_protection_enabled, rds_storage_encrypted
from .s3 import (
    s3_bucket_level_public_access_prohibited,
    s3_bucket_logging_enabled,
    s3_bucket_server_side_encryption_enabled,
    s3_bucket_ssl_requests_only,
)
from .sqs import sqs_queue_dlq, sqs_queue_ssl_requests_only


__all__ = [
    'ec2_restricted_inbound',
    'ec2_restricted_ssh',
    'iam_policy_no_statements_with_full_access',
    'rds_instance_deletion_protection_enabled',
    'rds_storage_encrypted',
    's3_bucket_level_public_access_prohibited',
    's3_bucket_logging_enabled',
    's3_bucket_server_side_encryption_enabled',
    's3_bucket_ssl_requests_only',
    'sqs_queue_dlq',
    'sqs_queue_ssl_requests_only',
]
