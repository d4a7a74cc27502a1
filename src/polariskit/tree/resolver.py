"""
Namespace tree resolver.

Reconstructs the catalog -> namespace -> table hierarchy from flat listing
calls, one level at a time, as nodes are expanded. The listing endpoints do
not reliably respect the requested parent, so every result is filtered
against the node being expanded before it becomes a child.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from polariskit.client.base import CatalogBackend
from polariskit.errors import StaleResponse
from polariskit.models.enums import TreeNodeType
from polariskit.models.namespaces import format_namespace, is_strict_prefix

from .nodes import TreeNode
from .state import ExpansionState, NodeState, NodeStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibleNode:
    """One row of the flattened tree."""
    node: TreeNode
    depth: int
    state: NodeState


class NamespaceTreeResolver:
    """
    Lazily expands catalog trees against a CatalogBackend.

    Example:
        resolver = NamespaceTreeResolver(backend)
        roots = await resolver.list_catalog_nodes()
        await resolver.expand(roots[0])
        for row in resolver.visible_nodes(roots):
            print("  " * row.depth + row.node.name)
    """

    def __init__(self, backend: CatalogBackend, state: Optional[ExpansionState] = None):
        self.backend = backend
        self.state = state or ExpansionState()
        self._nodes: Dict[str, TreeNode] = {}

    # =========================================================================
    # CHILD RESOLUTION
    # =========================================================================

    async def list_catalog_nodes(self) -> List[TreeNode]:
        """Root nodes, one per catalog."""
        catalogs = await self.backend.list_catalogs()
        nodes = [TreeNode.for_catalog(c.name) for c in catalogs]
        self._register(nodes)
        return nodes

    async def children_of(self, node: TreeNode) -> List[TreeNode]:
        """
        Fetch and filter the direct children of a node.

        Args:
            node: Node to resolve

        Returns:
            Namespace children first, then tables, in backend order

        Raises:
            TransportError: If any listing call fails
        """
        if node.kind == TreeNodeType.TABLE:
            return []
        if node.kind == TreeNodeType.CATALOG:
            return await self._catalog_children(node)
        return await self._namespace_children(node)

    async def _catalog_children(self, node: TreeNode) -> List[TreeNode]:
        results = await self.backend.list_namespaces(node.catalog_name)
        children: List[TreeNode] = []
        seen = set()
        for path in results:
            if len(path) != 1:
                logger.debug(
                    f"Dropping non top-level namespace {format_namespace(path)!r} "
                    f"from catalog {node.catalog_name}"
                )
                continue
            if path[0] in seen:
                continue
            seen.add(path[0])
            children.append(TreeNode.for_namespace(node.catalog_name, path))
        return children

    async def _namespace_children(self, node: TreeNode) -> List[TreeNode]:
        parent = node.path
        # Both calls must finish before anything is published
        ns_result, table_result = await asyncio.gather(
            self.backend.list_namespaces(node.catalog_name, parent),
            self.backend.list_tables(node.catalog_name, parent),
            return_exceptions=True,
        )
        for result in (ns_result, table_result):
            if isinstance(result, BaseException):
                raise result

        children: List[TreeNode] = []
        seen = set()
        for path in ns_result:
            if not is_strict_prefix(parent, path):
                logger.debug(
                    f"Dropping namespace {format_namespace(path)!r} outside parent "
                    f"{format_namespace(parent)!r}"
                )
                continue
            name = path[len(parent)]
            if name in seen:
                continue
            seen.add(name)
            children.append(TreeNode.for_namespace(node.catalog_name, parent + (name,)))

        tables_seen = set()
        for table in table_result:
            if table.name in tables_seen:
                logger.debug(f"Dropping repeated table {table.name!r} in {format_namespace(parent)!r}")
                continue
            tables_seen.add(table.name)
            children.append(TreeNode.for_table(node.catalog_name, parent, table.name))
        return children

    # =========================================================================
    # EXPANSION
    # =========================================================================

    async def expand(self, node: TreeNode, refresh: bool = False) -> NodeState:
        """
        Expand a node, loading its children unless already loaded.

        Any failed load, transport or otherwise, puts only this node into the
        error state. A response that arrives after the node was collapsed or
        expanded again is discarded.

        Args:
            node: Node to expand
            refresh: Refetch even if children are already loaded

        Returns:
            The node's state after the load settled
        """
        self._register([node])
        current = self.state.get(node.id)
        if current.status == NodeStatus.LOADED and not refresh:
            self.state.reopen(node.id)
            return self.state.get(node.id)

        generation = self.state.begin(node.id)
        try:
            children = await self.children_of(node)
        except Exception as e:
            # Any failure settles the node; it never stays loading
            logger.warning(f"Failed to load children of {node.id!r}: {e}")
            self._apply(node, generation, error=str(e))
            return self.state.get(node.id)

        self._apply(node, generation, children=children)
        return self.state.get(node.id)

    def _apply(
        self,
        node: TreeNode,
        generation: int,
        children: Optional[List[TreeNode]] = None,
        error: Optional[str] = None,
    ) -> None:
        try:
            if error is not None:
                self.state.fail(node.id, generation, error)
            else:
                self.state.settle(node.id, generation, children or [])
                self._register(children or [])
        except StaleResponse as stale:
            logger.debug(str(stale))

    def collapse(self, node: TreeNode) -> None:
        self.state.collapse(node.id)

    async def toggle(self, node: TreeNode) -> NodeState:
        """Expand a collapsed node or collapse an expanded one."""
        if self.state.is_expanded(node.id):
            self.collapse(node)
            return self.state.get(node.id)
        return await self.expand(node)

    def state_of(self, node: TreeNode) -> NodeState:
        return self.state.get(node.id)

    def visible_nodes(self, roots: Iterable[TreeNode]) -> List[VisibleNode]:
        """Depth-first flattening of the expanded part of the tree."""
        rows: List[VisibleNode] = []

        def walk(node: TreeNode, depth: int) -> None:
            state = self.state.get(node.id)
            rows.append(VisibleNode(node, depth, state))
            if state.expanded and state.status == NodeStatus.LOADED:
                for child in state.children:
                    walk(child, depth + 1)

        for root in roots:
            walk(root, 0)
        return rows

    def invalidate(self, node: Optional[TreeNode] = None) -> int:
        """
        Drop loaded children so the next expansion refetches.

        Args:
            node: Subtree root to invalidate; None invalidates everything

        Returns:
            Number of nodes reset
        """
        if node is None:
            self._nodes.clear()
            return self.state.reset_where(lambda _key: True)

        def in_subtree(key: str) -> bool:
            known = self._nodes.get(key)
            return known is not None and (known == node or known.is_descendant_of(node))

        reset = self.state.reset_where(in_subtree)
        # Descendants are registered again when the node is re-expanded
        for key in [k for k, n in self._nodes.items() if n.is_descendant_of(node)]:
            del self._nodes[key]
        return reset

    def _register(self, nodes: Iterable[TreeNode]) -> None:
        for n in nodes:
            self._nodes[n.id] = n
