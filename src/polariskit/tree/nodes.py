"""
Tree node identity for the catalog explorer.

A node id is ``"<kind>:"`` followed by the node's lineage joined with the
unit separator (0x1F). The lineage is the catalog name, the namespace segments
and, for tables, the table name. The kind prefix keeps a table ``a/t`` apart
from a namespace ``a/t``; the separator never occurs inside a segment, so two
distinct nodes never share an id.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from polariskit.models.enums import TreeNodeType
from polariskit.models.namespaces import NAMESPACE_SEPARATOR, Namespace, as_namespace, format_namespace


@dataclass(frozen=True)
class TreeNode:
    """
    A catalog, namespace or table in the explorer tree.

    Nodes are plain view values; whether a node is expanded or loaded is
    tracked separately in ExpansionState.
    """
    kind: TreeNodeType
    catalog_name: str
    name: str
    parent_namespace: Namespace = ()

    @classmethod
    def for_catalog(cls, catalog_name: str) -> "TreeNode":
        return cls(TreeNodeType.CATALOG, catalog_name, catalog_name)

    @classmethod
    def for_namespace(cls, catalog_name: str, path: Iterable[str]) -> "TreeNode":
        path = as_namespace(path)
        if not path:
            raise ValueError("A namespace node needs at least one segment")
        return cls(TreeNodeType.NAMESPACE, catalog_name, path[-1], path[:-1])

    @classmethod
    def for_table(cls, catalog_name: str, namespace: Iterable[str], table_name: str) -> "TreeNode":
        return cls(TreeNodeType.TABLE, catalog_name, table_name, as_namespace(namespace))

    @property
    def path(self) -> Namespace:
        """Namespace this node denotes (tables: the namespace holding them)."""
        if self.kind == TreeNodeType.CATALOG:
            return ()
        if self.kind == TreeNodeType.NAMESPACE:
            return self.parent_namespace + (self.name,)
        return self.parent_namespace

    @property
    def lineage(self) -> Tuple[str, ...]:
        if self.kind == TreeNodeType.CATALOG:
            return (self.catalog_name,)
        return (self.catalog_name,) + self.parent_namespace + (self.name,)

    @property
    def id(self) -> str:
        return f"{self.kind.value}:{NAMESPACE_SEPARATOR.join(self.lineage)}"

    @property
    def is_leaf(self) -> bool:
        return self.kind == TreeNodeType.TABLE

    def is_descendant_of(self, other: "TreeNode") -> bool:
        """True if this node lies strictly below ``other`` in the tree."""
        if other.kind == TreeNodeType.TABLE or self.catalog_name != other.catalog_name:
            return False
        mine, theirs = self.lineage, other.lineage
        return len(mine) > len(theirs) and mine[:len(theirs)] == theirs

    @property
    def display_name(self) -> str:
        if self.kind == TreeNodeType.CATALOG:
            return self.catalog_name
        return format_namespace(self.parent_namespace + (self.name,))
