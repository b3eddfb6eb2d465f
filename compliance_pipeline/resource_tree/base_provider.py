"""
Base provider interface for resource trees.

Defines the contract every tree provider must implement and the shared
data model that rules and the engine consume:
- ResourceNode: one element of the materialized infrastructure tree
- ResourceTree: read-only index over the nodes of one tree
- Unresolved / ResourceReference: markers for values the provider could
  not turn into plain data
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .references import flatten_reference


PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class Unresolved:
    """A deferred value the provider could not resolve."""
    expression: Any

    def __str__(self) -> str:
        return flatten_reference(self.expression)


@dataclass(frozen=True)
class ResourceReference:
    """A reference to another node of the same tree (Ref / GetAtt)."""
    logical_id: str
    attribute: Optional[str] = None

    def __str__(self) -> str:
        if self.attribute:
            return f"<{self.logical_id}.{self.attribute}>"
        return f"<{self.logical_id}>"


@dataclass(eq=False)
class ResourceNode:
    """
    One node of the resource tree.

    Scope nodes (stacks, grouping constructs) carry no resource_type.
    Properties and metadata are exposed as read-only mappings; the engine
    only ever reads them.
    """
    node_id: str
    path: str
    resource_type: Optional[str] = None
    logical_id: Optional[str] = None
    properties: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple["ResourceNode", ...] = ()
    tree: Optional["ResourceTree"] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.logical_id:
            self.logical_id = self.node_id
        self.properties = MappingProxyType(dict(self.properties))
        self.metadata = MappingProxyType(dict(self.metadata))
        self.children = tuple(self.children)

    @property
    def segments(self) -> List[str]:
        return split_path(self.path)

    def is_resource(self) -> bool:
        return self.resource_type is not None


def split_path(path: str) -> List[str]:
    """Split a node path into its segments, ignoring empty segments."""
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


def join_path(*segments: str) -> str:
    return PATH_SEPARATOR.join(s.strip(PATH_SEPARATOR) for s in segments if s)


class ResourceTree:
    """
    Read-only index over a materialized resource tree.

    Nodes are visited in pre-order (parent first, children in declaration
    order). The same input document always yields the same order.
    """

    def __init__(self, root: ResourceNode):
        self.root = root
        self._by_path: Dict[str, ResourceNode] = {}
        self._by_logical_id: Dict[str, ResourceNode] = {}

        for node in self._iter(root):
            if node.path in self._by_path:
                raise ValueError(f"Duplicate node path in resource tree: {node.path}")
            self._by_path[node.path] = node
            if node.is_resource():
                # First declaration wins for cross-reference lookups
                self._by_logical_id.setdefault(node.logical_id, node)
            node.tree = self

    def _iter(self, node: ResourceNode) -> Iterator[ResourceNode]:
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def walk(self) -> Iterator[ResourceNode]:
        """Yield every node exactly once, in stable pre-order."""
        return self._iter(self.root)

    def get(self, path: str) -> Optional[ResourceNode]:
        return self._by_path.get(path.strip(PATH_SEPARATOR))

    def find_by_logical_id(self, logical_id: str) -> Optional[ResourceNode]:
        return self._by_logical_id.get(logical_id)

    def find_all(self, resource_type: str) -> List[ResourceNode]:
        return [node for node in self.walk() if node.resource_type == resource_type]

    def __len__(self) -> int:
        return len(self._by_path)

    def __contains__(self, path: str) -> bool:
        return path.strip(PATH_SEPARATOR) in self._by_path


class TreeProvider(ABC):
    """
    Abstract base class for tree providers.

    Providers materialize a ResourceTree and perform all deferred-value
    resolution before any rule sees a node.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self._unresolved_count: int = 0

    @abstractmethod
    def load(self) -> ResourceTree:
        """
        Materialize the resource tree.

        Returns:
            ResourceTree ready for traversal
        """
        pass

    @abstractmethod
    def normalize(self, raw_node: Dict[str, Any], parent_path: str = "") -> ResourceNode:
        """
        Transform a raw node record (and its children) into a ResourceNode.

        Args:
            raw_node: Raw node data from the source document
            parent_path: Path of the parent node ("" for the root)

        Returns:
            ResourceNode with resolved properties
        """
        pass

    @property
    def unresolved_count(self) -> int:
        """Number of property values left unresolved by the last load()."""
        return self._unresolved_count
