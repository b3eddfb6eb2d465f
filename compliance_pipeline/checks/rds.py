"""
RDS database checks.
"""
from engine import Verdict, applies_to, get_property, require_property, resolve_if_primitive


DB_INSTANCE = "AWS::RDS::DBInstance"
DB_CLUSTER = "AWS::RDS::DBCluster"


@applies_to(DB_INSTANCE, DB_CLUSTER)
def rds_storage_encrypted(node) -> Verdict:
    """RDS instances and Aurora clusters have storage encryption enabled."""
    encrypted = resolve_if_primitive(require_property(node, "StorageEncrypted"))
    if encrypted is True or str(encrypted).lower() == "true":
        return Verdict.COMPLIANT
    return Verdict.NON_COMPLIANT


@applies_to(DB_INSTANCE, DB_CLUSTER)
def rds_instance_deletion_protection_enabled(node) -> Verdict:
    """
    RDS instances and Aurora clusters have deletion protection enabled.

    Aurora instances inherit protection from their cluster and pass.
    """
    if node.resource_type == DB_INSTANCE:
        engine = get_property(node, "Engine", default=None)
        if engine is not None and "aurora" in str(resolve_if_primitive(engine)).lower():
            return Verdict.COMPLIANT

    protection = resolve_if_primitive(require_property(node, "DeletionProtection"))
    if protection is True or str(protection).lower() == "true":
        return Verdict.COMPLIANT
    return Verdict.NON_COMPLIANT
