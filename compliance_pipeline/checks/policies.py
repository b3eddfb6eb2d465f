"""
Helpers shared by checks that inspect resource policies.
"""
import re
from typing import Any, Iterable, Optional

from engine import UnresolvedValueError, resolve_resource_reference
from resource_tree import Unresolved


ARN_SEPARATORS = re.compile(r"[:/]")


def names_resource(value: str, name: str) -> bool:
    """
    True when a literal name, ARN or URL ends with exactly the resource name.

    A trailing '/*' object selector is ignored, so 'arn:aws:s3:::logs/*'
    names bucket 'logs' while 'prod-logs' does not.
    """
    if value == name:
        return True
    segments = [s for s in ARN_SEPARATORS.split(value) if s and s != "*"]
    return bool(segments) and segments[-1] == name


def targets_resource(entries: Iterable[Any], logical_id: str, name: Optional[str] = None) -> bool:
    """
    True when one of a policy's target entries names the resource.

    Entries may be references to the resource, its literal name, or an
    ARN or URL whose final segment is the name. Unresolved entries never
    match.
    """
    for entry in entries:
        if entry is None:
            continue
        try:
            resolved = resolve_resource_reference(entry)
        except UnresolvedValueError:
            continue
        if resolved == logical_id:
            return True
        if name and isinstance(resolved, str) and names_resource(resolved, name):
            return True
    return False


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    return [value]


def matches_action(actions: Any, service: str) -> bool:
    """True when the actions cover every action of the service."""
    for action in _as_list(actions):
        if not isinstance(action, str):
            continue
        if action == "*" or action.lower() == f"{service}:*":
            return True
    return False


def matches_any_principal(principal: Any) -> bool:
    if principal == "*":
        return True
    if isinstance(principal, dict):
        return any(p == "*" for p in _as_list(principal.get("AWS")))
    return False


def statement_denies_insecure_transport(statement: Any, service: str) -> bool:
    """
    True for a Deny statement on all principals and all service actions
    conditioned on aws:SecureTransport being false.
    """
    if not isinstance(statement, dict) or statement.get("Effect") != "Deny":
        return False
    condition = statement.get("Condition") or {}
    secure_transport = (condition.get("Bool") or {}).get("aws:SecureTransport")
    return (
        secure_transport in ("false", False)
        and matches_action(statement.get("Action"), service)
        and matches_any_principal(statement.get("Principal"))
    )


def grants_full_access(statement: Any) -> bool:
    """
    True for an Allow statement whose actions include '*' or '<service>:*'.

    Raises:
        UnresolvedValueError: If the statement, its Effect, or one of its
            actions is unresolved
    """
    if isinstance(statement, Unresolved):
        raise UnresolvedValueError(f"Policy statement is not resolved ({statement})")
    if not isinstance(statement, dict):
        return False
    effect = statement.get("Effect")
    if isinstance(effect, Unresolved):
        raise UnresolvedValueError(f"Statement effect is not resolved ({effect})")
    if effect != "Allow":
        return False
    for action in _as_list(statement.get("Action")):
        if isinstance(action, Unresolved):
            raise UnresolvedValueError(f"Statement action is not resolved ({action})")
        if isinstance(action, str) and (action == "*" or action.endswith(":*")):
            return True
    return False
