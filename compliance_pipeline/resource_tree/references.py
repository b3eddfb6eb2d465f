"""
Flatten reference expressions into plain strings.

Used to render unresolved values in diagnostic messages in a stable,
greppable form, e.g. {"Fn::GetAtt": ["rBucket", "Arn"]} -> "<rBucket.Arn>".
"""
import json
from typing import Any


def is_intrinsic(value: Any) -> bool:
    """True when value is a single-key mapping naming Ref or an Fn:: function."""
    if not isinstance(value, dict) or len(value) != 1:
        return False
    key = next(iter(value))
    return isinstance(key, str) and (key == "Ref" or key.startswith("Fn::"))


def flatten_reference(reference: Any) -> str:
    """
    Turn a reference expression into a flat string.

    Args:
        reference: Plain value or intrinsic expression

    Returns:
        Flattened string; unknown or malformed structures fall back to
        sorted JSON
    """
    if reference is None:
        return ""

    if isinstance(reference, str):
        # ${Param} placeholders become <Param>
        return reference.replace("${", "<").replace("}", ">")

    if is_intrinsic(reference):
        name, argument = next(iter(reference.items()))

        if name == "Fn::Join" and isinstance(argument, list) and len(argument) == 2:
            delimiter, items = argument
            if isinstance(delimiter, str) and isinstance(items, list):
                return delimiter.join(flatten_reference(item) for item in items)

        elif name == "Fn::Sub" and isinstance(argument, (str, list)):
            if isinstance(argument, list):
                argument = argument[0] if argument else ""
            return flatten_reference(argument)

        elif name == "Fn::GetAtt":
            if isinstance(argument, str):
                argument = argument.split(".", 1)
            if isinstance(argument, list) and len(argument) == 2:
                resource, attribute = argument
                return f"<{flatten_reference(resource)}.{flatten_reference(attribute)}>"

        elif name == "Fn::ImportValue":
            return flatten_reference(argument)

        elif name == "Ref" and isinstance(argument, str):
            return f"<{argument}>"

    return json.dumps(reference, sort_keys=True, default=str)
