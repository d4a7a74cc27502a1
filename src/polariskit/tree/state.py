"""
Expansion and load state for lazily materialized trees.

ExpansionState maps a node key to whether the node is expanded, a generation
counter and the node's load state. Every expansion and every collapse bumps
the generation; a response is only applied when the node is still expanded
and its generation is unchanged, so a late response for a collapsed or
re-expanded node is dropped instead of overwriting newer state.

The class is keyed by plain strings and is shared by the namespace tree and
the access map.
"""

import itertools
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from polariskit.errors import StaleResponse

logger = logging.getLogger(__name__)


class NodeStatus(str, Enum):
    """Load state of a node's children."""
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class NodeState:
    """Snapshot of one node's expansion and load state."""
    expanded: bool = False
    status: NodeStatus = NodeStatus.IDLE
    generation: int = 0
    children: List[Any] = field(default_factory=list)
    error: Optional[str] = None


class ExpansionState:
    """Mutable registry of NodeState snapshots, one per node key."""

    def __init__(self):
        self._states: Dict[str, NodeState] = {}
        # Generations are never reused, even across clear()
        self._generations = itertools.count(1)

    def get(self, key: str) -> NodeState:
        return self._states.get(key, NodeState())

    def is_expanded(self, key: str) -> bool:
        return self.get(key).expanded

    def keys(self) -> List[str]:
        return list(self._states)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def begin(self, key: str) -> int:
        """
        Mark a node expanded and loading.

        Returns:
            The generation a response must carry to be applied
        """
        current = self.get(key)
        generation = next(self._generations)
        self._states[key] = replace(
            current, expanded=True, status=NodeStatus.LOADING, generation=generation, error=None
        )
        return generation

    def reopen(self, key: str) -> None:
        """Mark an already loaded node expanded again without refetching."""
        current = self.get(key)
        self._states[key] = replace(current, expanded=True, generation=next(self._generations))

    def collapse(self, key: str) -> None:
        """Collapse a node; an in-flight load for it becomes stale."""
        current = self.get(key)
        status = NodeStatus.IDLE if current.status == NodeStatus.LOADING else current.status
        self._states[key] = replace(
            current, expanded=False, status=status, generation=next(self._generations)
        )

    def is_current(self, key: str, generation: int) -> bool:
        current = self.get(key)
        return current.expanded and current.generation == generation

    def settle(self, key: str, generation: int, children: List[Any]) -> NodeState:
        """
        Publish loaded children.

        Raises:
            StaleResponse: If the node was collapsed or re-expanded meanwhile
        """
        if not self.is_current(key, generation):
            raise StaleResponse(key, generation)
        state = replace(self.get(key), status=NodeStatus.LOADED, children=list(children), error=None)
        self._states[key] = state
        return state

    def fail(self, key: str, generation: int, error: str) -> NodeState:
        """
        Record a failed load; the node gets no children.

        Raises:
            StaleResponse: If the node was collapsed or re-expanded meanwhile
        """
        if not self.is_current(key, generation):
            raise StaleResponse(key, generation)
        state = replace(self.get(key), status=NodeStatus.ERROR, children=[], error=error)
        self._states[key] = state
        return state

    def reset(self, key: str) -> None:
        """Forget loaded children so the next expansion refetches."""
        current = self._states.get(key)
        if current is None:
            return
        self._states[key] = replace(
            current,
            status=NodeStatus.IDLE,
            children=[],
            error=None,
            generation=next(self._generations),
        )

    def reset_where(self, predicate: Callable[[str], bool]) -> int:
        """Reset every node whose key matches ``predicate``; returns the count."""
        keys = [k for k in self._states if predicate(k)]
        for key in keys:
            self.reset(key)
        if keys:
            logger.debug(f"Reset load state of {len(keys)} nodes")
        return len(keys)

    def clear(self) -> None:
        self._states.clear()
