"""
Shared pytest fixtures for compliance pipeline tests.

This module provides reusable fixtures that simplify test setup
and reduce code duplication across test modules.
"""
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from engine import Rule, RuleLevel, Verdict, applies_to, require_property
from resource_tree import TemplateTreeProvider
from storage import Database


BUCKET = "AWS::S3::Bucket"
VPC = "AWS::EC2::VPC"
SUBNET = "AWS::EC2::Subnet"


@applies_to(BUCKET)
def bucket_encryption_enabled(node) -> Verdict:
    """Buckets must declare a default encryption configuration."""
    require_property(node, "BucketEncryption")
    return Verdict.COMPLIANT


def build_tree(*children, root_id="Stack", parameters=None):
    """Materialize a tree whose root scope node holds the given children."""
    document = {"tree": {"id": root_id, "children": list(children)}}
    if parameters:
        document["parameters"] = parameters
    return TemplateTreeProvider(document).load()


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Yields:
        Database instance with schema initialized

    Cleanup:
        Automatically closes connection and removes file after test
    """
    with tempfile.NamedTemporaryFile(suffix=".duckdb", delete=True) as f:
        db_path = f.name

    db = Database(db_path)
    db.initialize_schema()
    yield db
    db.close()

    # Cleanup
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def encryption_rule():
    """
    The "EncryptionEnabled" rule over S3 buckets, at ERROR level.

    Returns:
        Rule instance
    """
    return Rule(
        rule_id="EncryptionEnabled",
        check=bucket_encryption_enabled,
        info="The bucket does not have encryption enabled.",
        explanation="Encryption at rest protects stored objects.",
        level=RuleLevel.ERROR,
    )


@pytest.fixture
def unencrypted_tree():
    """
    Tree with one bucket lacking an encryption property and one encrypted bucket.

    Paths: Stack/rBucket (violating), Stack/rSecureBucket (compliant)
    """
    return build_tree(
        {"id": "rBucket", "type": BUCKET, "properties": {"BucketName": "data"}},
        {
            "id": "rSecureBucket",
            "type": BUCKET,
            "properties": {"BucketEncryption": {"ServerSideEncryptionConfiguration": []}},
        },
    )


@pytest.fixture
def vpc_tree():
    """
    Tree for path boundary tests.

    Paths: Stack/rVpc, Stack/rVpc/rSubnet, Stack/rVpcExtra
    """
    return build_tree(
        {
            "id": "rVpc",
            "type": VPC,
            "children": [{"id": "rSubnet", "type": SUBNET}],
        },
        {"id": "rVpcExtra", "type": VPC},
    )
