"""
Tests for the sample checks and the packs built from them.
"""
import pytest

import checks
from engine import Disposition, PackConfig, RulePack, UnresolvedValueError, Verdict
from packs import (
    PACK_FACTORIES,
    build_baseline_pack,
    build_hipaa_security_pack,
    get_baseline_rules,
    get_hipaa_security_rules,
)

from conftest import BUCKET, build_tree


SSL_DENY = {
    "Effect": "Deny",
    "Principal": {"AWS": "*"},
    "Action": "s3:*",
    "Condition": {"Bool": {"aws:SecureTransport": "false"}},
}


def node_of(*children, path, parameters=None):
    return build_tree(*children, parameters=parameters).get(path)


class TestS3Checks:
    """Test S3 bucket checks."""

    def test_logging(self):
        logged = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "LoggingConfiguration": {"DestinationBucketName": "logs"}}}, path="Stack/rBucket")
        unlogged = node_of({"id": "rBucket", "type": BUCKET}, path="Stack/rBucket")

        assert checks.s3_bucket_logging_enabled(logged) is Verdict.COMPLIANT
        with pytest.raises(UnresolvedValueError):
            checks.s3_bucket_logging_enabled(unlogged)

    def test_logging_behind_condition_is_unresolved(self):
        bucket = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "LoggingConfiguration": {"Fn::If": [
                "IsProd", {"DestinationBucketName": "logs"}, {"Ref": "AWS::NoValue"}]}}},
            path="Stack/rBucket")

        with pytest.raises(UnresolvedValueError):
            checks.s3_bucket_logging_enabled(bucket)

    def test_public_access_requires_all_flags(self):
        flags = {
            "BlockPublicAcls": True,
            "BlockPublicPolicy": True,
            "IgnorePublicAcls": True,
            "RestrictPublicBuckets": True,
        }
        blocked = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "PublicAccessBlockConfiguration": flags}}, path="Stack/rBucket")
        partial = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "PublicAccessBlockConfiguration": dict(flags, RestrictPublicBuckets=False)}},
            path="Stack/rBucket")

        assert checks.s3_bucket_level_public_access_prohibited(blocked) is Verdict.COMPLIANT
        assert checks.s3_bucket_level_public_access_prohibited(partial) is Verdict.NON_COMPLIANT

    def test_encryption_needs_algorithm(self):
        encrypted = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "BucketEncryption": {"ServerSideEncryptionConfiguration": [
                {"ServerSideEncryptionByDefault": {"SSEAlgorithm": "aws:kms"}}]}}},
            path="Stack/rBucket")
        empty = node_of({"id": "rBucket", "type": BUCKET, "properties": {
            "BucketEncryption": {"ServerSideEncryptionConfiguration": []}}},
            path="Stack/rBucket")

        assert checks.s3_bucket_server_side_encryption_enabled(encrypted) is Verdict.COMPLIANT
        assert checks.s3_bucket_server_side_encryption_enabled(empty) is Verdict.NON_COMPLIANT

    def test_ssl_policy_by_reference(self):
        bucket = node_of(
            {"id": "rBucket", "type": BUCKET},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": {"Ref": "rBucket"},
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
            path="Stack/rBucket",
        )

        assert checks.s3_bucket_ssl_requests_only(bucket) is Verdict.COMPLIANT

    def test_ssl_policy_by_name(self):
        bucket = node_of(
            {"id": "rBucket", "type": BUCKET, "properties": {"BucketName": "data-bucket"}},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": "data-bucket",
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
            path="Stack/rBucket",
        )

        assert checks.s3_bucket_ssl_requests_only(bucket) is Verdict.COMPLIANT

    @pytest.mark.parametrize("target,expected", [
        ("logs", Verdict.COMPLIANT),
        ("arn:aws:s3:::logs", Verdict.COMPLIANT),
        ("arn:aws:s3:::logs/*", Verdict.COMPLIANT),
        ("prod-logs", Verdict.NON_COMPLIANT),
        ("arn:aws:s3:::prod-logs", Verdict.NON_COMPLIANT),
    ])
    def test_ssl_policy_name_must_match_exactly(self, target, expected):
        bucket = node_of(
            {"id": "rBucket", "type": BUCKET, "properties": {"BucketName": "logs"}},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": target,
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
            path="Stack/rBucket",
        )

        assert checks.s3_bucket_ssl_requests_only(bucket) is expected

    def test_ssl_policy_for_other_bucket(self):
        bucket = node_of(
            {"id": "rBucket", "type": BUCKET},
            {"id": "rOther", "type": BUCKET},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": {"Ref": "rOther"},
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
            path="Stack/rBucket",
        )

        assert checks.s3_bucket_ssl_requests_only(bucket) is Verdict.NON_COMPLIANT

    def test_ssl_policy_allowing_insecure_transport(self):
        allow = dict(SSL_DENY, Effect="Allow")
        bucket = node_of(
            {"id": "rBucket", "type": BUCKET},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": {"Ref": "rBucket"},
                "PolicyDocument": {"Statement": [allow]}}},
            path="Stack/rBucket",
        )

        assert checks.s3_bucket_ssl_requests_only(bucket) is Verdict.NON_COMPLIANT


class TestSqsChecks:
    """Test SQS queue checks."""

    QUEUE = "AWS::SQS::Queue"

    def test_dlq_configured(self):
        queue = node_of(
            {"id": "rQueue", "type": self.QUEUE, "properties": {
                "RedrivePolicy": {"deadLetterTargetArn": {"Fn::GetAtt": ["rDlq", "Arn"]},
                                  "maxReceiveCount": 3}}},
            {"id": "rDlq", "type": self.QUEUE},
            path="Stack/rQueue",
        )

        assert checks.sqs_queue_dlq(queue) is Verdict.COMPLIANT
        assert checks.sqs_queue_dlq(queue.tree.get("Stack/rDlq")) is Verdict.COMPLIANT

    def test_queue_without_dlq(self):
        queue = node_of({"id": "rQueue", "type": self.QUEUE}, path="Stack/rQueue")

        assert checks.sqs_queue_dlq(queue) is Verdict.NON_COMPLIANT

    def test_unresolved_dlq_target(self):
        queue = node_of(
            {"id": "rQueue", "type": self.QUEUE, "properties": {
                "RedrivePolicy": {"deadLetterTargetArn": {"Fn::ImportValue": "shared-dlq-arn"}}}},
            path="Stack/rQueue",
        )

        with pytest.raises(UnresolvedValueError):
            checks.sqs_queue_dlq(queue)

    def test_ssl_policy(self):
        deny = dict(SSL_DENY, Action="sqs:*", Principal="*")
        queue = node_of(
            {"id": "rQueue", "type": self.QUEUE},
            {"id": "rPolicy", "type": "AWS::SQS::QueuePolicy", "properties": {
                "Queues": [{"Ref": "rQueue"}],
                "PolicyDocument": {"Statement": [deny]}}},
            path="Stack/rQueue",
        )

        assert checks.sqs_queue_ssl_requests_only(queue) is Verdict.COMPLIANT

    def test_ssl_policy_with_wrong_service(self):
        queue = node_of(
            {"id": "rQueue", "type": self.QUEUE},
            {"id": "rPolicy", "type": "AWS::SQS::QueuePolicy", "properties": {
                "Queues": [{"Ref": "rQueue"}],
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
            path="Stack/rQueue",
        )

        assert checks.sqs_queue_ssl_requests_only(queue) is Verdict.NON_COMPLIANT


class TestEc2Checks:
    """Test security group checks."""

    GROUP = "AWS::EC2::SecurityGroup"

    def group(self, *ingress, parameters=None):
        return node_of({"id": "rGroup", "type": self.GROUP, "properties": {
            "SecurityGroupIngress": list(ingress)}}, path="Stack/rGroup", parameters=parameters)

    def test_restricted_inbound(self):
        private = self.group({"CidrIp": "10.0.0.0/8", "FromPort": 443, "ToPort": 443, "IpProtocol": "tcp"})
        open_v6 = self.group({"CidrIpv6": "::/0", "FromPort": 443, "ToPort": 443, "IpProtocol": "tcp"})

        assert checks.ec2_restricted_inbound(private) is Verdict.COMPLIANT
        assert checks.ec2_restricted_inbound(open_v6) is Verdict.NON_COMPLIANT

    @pytest.mark.parametrize("rule,expected", [
        ({"CidrIp": "0.0.0.0/0", "FromPort": 22, "ToPort": 22, "IpProtocol": "tcp"}, Verdict.NON_COMPLIANT),
        ({"CidrIp": "0.0.0.0/0", "FromPort": 0, "ToPort": 1024, "IpProtocol": "tcp"}, Verdict.NON_COMPLIANT),
        ({"CidrIp": "0.0.0.0/0", "IpProtocol": "-1"}, Verdict.NON_COMPLIANT),
        ({"CidrIp": "0.0.0.0/0", "FromPort": 443, "ToPort": 443, "IpProtocol": "tcp"}, Verdict.COMPLIANT),
        ({"CidrIp": "10.0.0.0/16", "FromPort": 22, "ToPort": 22, "IpProtocol": "tcp"}, Verdict.COMPLIANT),
    ])
    def test_restricted_ssh(self, rule, expected):
        assert checks.ec2_restricted_ssh(self.group(rule)) is expected

    def test_cidr_from_parameter(self):
        group = self.group({"CidrIp": {"Ref": "AdminCidr"}, "FromPort": 22, "ToPort": 22},
                           parameters={"AdminCidr": "10.20.0.0/16"})

        assert checks.ec2_restricted_ssh(group) is Verdict.COMPLIANT

    def test_standalone_ingress(self):
        ingress = node_of({"id": "rIngress", "type": "AWS::EC2::SecurityGroupIngress", "properties": {
            "CidrIp": "0.0.0.0/0", "FromPort": 22, "ToPort": 22, "IpProtocol": "tcp"}},
            path="Stack/rIngress")

        assert checks.ec2_restricted_ssh(ingress) is Verdict.NON_COMPLIANT


class TestRdsAndIamChecks:
    """Test database and IAM checks."""

    INSTANCE = "AWS::RDS::DBInstance"

    def test_storage_encrypted(self):
        encrypted = node_of({"id": "rDb", "type": self.INSTANCE, "properties": {
            "StorageEncrypted": "true"}}, path="Stack/rDb")
        plain = node_of({"id": "rDb", "type": self.INSTANCE, "properties": {
            "StorageEncrypted": False}}, path="Stack/rDb")

        assert checks.rds_storage_encrypted(encrypted) is Verdict.COMPLIANT
        assert checks.rds_storage_encrypted(plain) is Verdict.NON_COMPLIANT

    def test_aurora_instances_inherit_deletion_protection(self):
        aurora = node_of({"id": "rDb", "type": self.INSTANCE, "properties": {
            "Engine": "aurora-postgresql"}}, path="Stack/rDb")
        postgres = node_of({"id": "rDb", "type": self.INSTANCE, "properties": {
            "Engine": "postgres", "DeletionProtection": False}}, path="Stack/rDb")

        assert checks.rds_instance_deletion_protection_enabled(aurora) is Verdict.COMPLIANT
        assert checks.rds_instance_deletion_protection_enabled(postgres) is Verdict.NON_COMPLIANT

    def test_full_access_policy(self):
        policy = node_of({"id": "rPolicy", "type": "AWS::IAM::Policy", "properties": {
            "PolicyDocument": {"Statement": {"Effect": "Allow", "Action": "s3:*", "Resource": "*"}}}},
            path="Stack/rPolicy")
        scoped = node_of({"id": "rRole", "type": "AWS::IAM::Role", "properties": {
            "Policies": [{"PolicyDocument": {"Statement": [
                {"Effect": "Allow", "Action": ["s3:GetObject"], "Resource": "*"}]}}]}},
            path="Stack/rRole")

        assert checks.iam_policy_no_statements_with_full_access(policy) is Verdict.NON_COMPLIANT
        assert checks.iam_policy_no_statements_with_full_access(scoped) is Verdict.COMPLIANT


    @pytest.mark.parametrize("statement", [
        {"Effect": "Allow", "Action": {"Fn::ImportValue": "admin-actions"}, "Resource": "*"},
        {"Effect": "Allow", "Action": ["s3:GetObject", {"Fn::ImportValue": "extra"}], "Resource": "*"},
        {"Effect": {"Fn::If": ["IsProd", "Deny", "Allow"]}, "Action": "*", "Resource": "*"},
    ])
    def test_full_access_with_unresolved_statement(self, statement):
        policy = node_of({"id": "rPolicy", "type": "AWS::IAM::Policy", "properties": {
            "PolicyDocument": {"Statement": [statement]}}}, path="Stack/rPolicy")

        with pytest.raises(UnresolvedValueError):
            checks.iam_policy_no_statements_with_full_access(policy)



class TestPacks:
    """Test the sample packs."""

    @pytest.mark.parametrize("get_rules,prefix", [
        (get_baseline_rules, "Baseline-"),
        (get_hipaa_security_rules, "HIPAA.Security-"),
    ])
    def test_rule_ids_unique_and_prefixed(self, get_rules, prefix):
        ids = [rule.rule_id for rule in get_rules()]

        assert len(ids) == len(set(ids))
        assert all(rule_id.startswith(prefix) for rule_id in ids)

    def test_factories(self):
        assert set(PACK_FACTORIES) == {"Baseline", "HIPAA.Security"}
        assert PACK_FACTORIES["Baseline"]().name == "Baseline"

    def test_full_access_cannot_be_waived(self):
        tree = build_tree({"id": "rPolicy", "type": "AWS::IAM::Policy", "properties": {
            "PolicyDocument": {"Statement": [{"Effect": "Allow", "Action": "*", "Resource": "*"}]}}})
        pack = build_hipaa_security_pack(suppressions=[{
            "target": "Stack/rPolicy", "rule_id": "HIPAA.Security-*",
            "reason": "Break-glass administrator policy.",
        }])

        diagnostics = pack.run(tree)

        assert [d.rule_id for d in diagnostics] == ["HIPAA.Security-IAMPolicyNoStatementsWithFullAccess"]
        assert diagnostics[0].ignored_suppression is not None

    def test_baseline_pack_on_compliant_bucket(self):
        tree = build_tree(
            {"id": "rBucket", "type": BUCKET, "properties": {
                "LoggingConfiguration": {"DestinationBucketName": "logs"},
                "PublicAccessBlockConfiguration": {
                    "BlockPublicAcls": True, "BlockPublicPolicy": True,
                    "IgnorePublicAcls": True, "RestrictPublicBuckets": True},
                "BucketEncryption": {"ServerSideEncryptionConfiguration": [
                    {"ServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}]},
            }},
            {"id": "rPolicy", "type": "AWS::S3::BucketPolicy", "properties": {
                "Bucket": {"Ref": "rBucket"},
                "PolicyDocument": {"Statement": [SSL_DENY]}}},
        )
        pack = build_baseline_pack(config=PackConfig(verbose=True))

        diagnostics = pack.run(tree)

        assert {d.disposition for d in diagnostics} == {Disposition.COMPLIANT}
        assert len(diagnostics) == 4
        assert pack.passed()

    def test_malformed_reference_is_violation(self):
        tree = build_tree({"id": "rDb", "type": "AWS::RDS::DBInstance", "properties": {
            "Engine": "postgres", "StorageEncrypted": {"Fn::Join": "bad"}, "DeletionProtection": True}})
        pack = build_baseline_pack()

        diagnostics = pack.run(tree)

        assert [(d.rule_id, d.disposition) for d in diagnostics] == [
            ("Baseline-RDS2", Disposition.VIOLATION)
        ]

    def test_level_override_through_factory(self):
        tree = build_tree({"id": "rDb", "type": "AWS::RDS::DBInstance", "properties": {
            "Engine": "postgres", "StorageEncrypted": True, "DeletionProtection": False}})
        pack = build_baseline_pack(config=PackConfig.from_dict(
            {"severity_overrides": {"Baseline-RDS10": "error"}}))

        diagnostics = pack.run(tree)

        assert [d.rule_id for d in diagnostics] == ["Baseline-RDS10"]
        assert not pack.passed()
        assert isinstance(pack, RulePack)
