"""
Lazily loaded catalog explorer tree.
"""

from .nodes import TreeNode
from .state import ExpansionState, NodeState, NodeStatus
from .resolver import NamespaceTreeResolver, VisibleNode

__all__ = [
    'TreeNode',
    'ExpansionState',
    'NodeState',
    'NodeStatus',
    'NamespaceTreeResolver',
    'VisibleNode',
]
