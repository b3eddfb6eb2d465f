"""
Provider that materializes a resource tree from a YAML or JSON document.

Expected document layout:

    parameters:            # optional, values for Ref resolution
      Environment: prod
    tree:
      id: Stack
      children:
        - id: rBucket
          type: AWS::S3::Bucket
          logical_id: rBucket   # optional, defaults to id
          properties: {...}
          metadata:
            nag_suppressions:
              - rule_id: Baseline-S1
                reason: Access logs are shipped by the CDN.
          children: [...]

Resolution performed before any rule sees a value:
- Ref to a known parameter -> parameter value
- Ref to a resource in the tree -> ResourceReference
- Fn::GetAtt -> ResourceReference(logical_id, attribute)
- Fn::Join / Fn::Sub -> string, when every part resolves to a primitive
- any other Ref or Fn:: expression (Fn::If, Fn::Select, ...) -> Unresolved(expression)
"""
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from .base_provider import (
    ResourceNode,
    ResourceReference,
    ResourceTree,
    TreeProvider,
    Unresolved,
    join_path,
)
from .references import is_intrinsic


logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = (str, int, float, bool)
SUB_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class TemplateTreeProvider(TreeProvider):
    """
    Loads a materialized tree document and resolves reference expressions.
    """

    def __init__(
        self,
        document: Dict[str, Any],
        parameters: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize provider.

        Args:
            document: Parsed tree document (see module docstring)
            parameters: Extra parameter values; override document parameters
            config: Optional provider configuration
        """
        super().__init__(config)
        if not isinstance(document, dict) or "tree" not in document:
            raise ValueError("Tree document must be a mapping with a 'tree' section")

        self.document = document
        self.parameters: Dict[str, Any] = dict(document.get("parameters") or {})
        self.parameters.update(parameters or {})
        self._logical_ids: Set[str] = set()

    @classmethod
    def from_file(
        cls,
        path: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> "TemplateTreeProvider":
        """
        Build a provider from a YAML or JSON file.

        JSON is a subset of YAML, so one loader handles both.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Tree document not found: {path}")

        with open(file_path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)

        logger.info(f"Loaded tree document from {file_path}")
        return cls(document, parameters=parameters, config={"path": str(file_path)})

    def load(self) -> ResourceTree:
        """Materialize the tree, resolving all property values."""
        self._unresolved_count = 0
        raw_root = self.document["tree"]
        self._logical_ids = set(self._collect_logical_ids(raw_root))

        root = self.normalize(raw_root)
        tree = ResourceTree(root)

        if self._unresolved_count:
            logger.info(
                f"Tree loaded with {self._unresolved_count} unresolved value(s) "
                f"across {len(tree)} nodes"
            )
        return tree

    def normalize(self, raw_node: Dict[str, Any], parent_path: str = "") -> ResourceNode:
        node_id = str(raw_node.get("id", "")).strip()
        if not node_id:
            raise ValueError(f"Tree node under '{parent_path or '<root>'}' is missing an 'id'")
        if "/" in node_id:
            raise ValueError(f"Tree node id must not contain '/': {node_id}")

        path = join_path(parent_path, node_id)
        children = [
            self.normalize(child, path)
            for child in (raw_node.get("children") or [])
        ]

        return ResourceNode(
            node_id=node_id,
            path=path,
            resource_type=raw_node.get("type"),
            logical_id=raw_node.get("logical_id"),
            properties=self.resolve(raw_node.get("properties") or {}),
            metadata=raw_node.get("metadata") or {},
            children=children,
        )

    def resolve(self, value: Any) -> Any:
        """
        Resolve a property value recursively.

        Returns:
            Plain data, ResourceReference, or Unresolved
        """
        if is_intrinsic(value):
            return self._resolve_intrinsic(value)
        if isinstance(value, dict):
            return {key: self.resolve(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve(item) for item in value]
        return value

    def _resolve_intrinsic(self, expression: Dict[str, Any]) -> Any:
        name, argument = next(iter(expression.items()))

        if name == "Ref":
            if argument in self.parameters:
                return self.parameters[argument]
            if argument in self._logical_ids:
                return ResourceReference(argument)

        elif name == "Fn::GetAtt":
            if isinstance(argument, str) and "." in argument:
                argument = argument.split(".", 1)
            if isinstance(argument, list) and len(argument) == 2 and isinstance(argument[0], str):
                return ResourceReference(argument[0], str(argument[1]))

        elif name == "Fn::Join":
            if isinstance(argument, list) and len(argument) == 2 and isinstance(argument[1], list):
                delimiter, items = argument
                parts = [self.resolve(item) for item in items]
                if all(isinstance(part, PRIMITIVE_TYPES) for part in parts):
                    return str(delimiter).join(str(part) for part in parts)

        elif name == "Fn::Sub":
            if isinstance(argument, str):
                names = SUB_PLACEHOLDER.findall(argument)
                if all(isinstance(self.parameters.get(n), PRIMITIVE_TYPES) for n in names):
                    return SUB_PLACEHOLDER.sub(lambda m: str(self.parameters[m.group(1)]), argument)

        self._unresolved_count += 1
        return Unresolved(expression)

    def _collect_logical_ids(self, raw_node: Dict[str, Any]) -> List[str]:
        ids = []
        if raw_node.get("type"):
            ids.append(raw_node.get("logical_id") or str(raw_node.get("id")))
        for child in raw_node.get("children") or []:
            ids.extend(self._collect_logical_ids(child))
        return ids
