"""
Resource tree layer for the compliance checks.

Provides the tree provider contract the engine consumes and a reference
provider that materializes trees from YAML/JSON documents:
- ResourceNode / ResourceTree: read-only tree model
- TreeProvider: base class for providers
- TemplateTreeProvider: document-backed provider with reference resolution
"""
from .base_provider import (
    PATH_SEPARATOR,
    ResourceNode,
    ResourceReference,
    ResourceTree,
    TreeProvider,
    Unresolved,
    join_path,
    split_path,
)
from .references import flatten_reference
from .template_provider import TemplateTreeProvider

__all__ = [
    "PATH_SEPARATOR",
    "ResourceNode",
    "ResourceReference",
    "ResourceTree",
    "TreeProvider",
    "Unresolved",
    "TemplateTreeProvider",
    "flatten_reference",
    "join_path",
    "split_path",
]
