"""
World - Container of all coasters and their track graph.

Manages:
- Coasters and nodes, keyed by stable ids
- Connecting and disconnecting nodes
- Deferred refresh of node shapes
- State listeners (particles, per-viewer visibility)
- Animation playback
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol
import logging

from coasternet.simulation.animator import AnimatorConfig, TrackAnimator
from coasternet.track.coaster import TrackCoaster
from coasternet.track.connection import TrackConnection
from coasternet.track.exceptions import TrackLockedError, TrackNodeRemovedError
from coasternet.track.node import TrackNode
from coasternet.track.state import TrackNodeState

logger = logging.getLogger(__name__)


@dataclass
class TrackWorldConfig:
    """Track graph configuration."""
    # Rail path subdivision: spans are split until the curve deviates
    # from the chord by at most 1 / smoothness
    smoothness: float = 10.0
    max_subdivision_depth: int = 8

    # Bezier control arm length as a fraction of the connection length
    tangent_strength: float = 0.4

    # Distance of junction labels from the junction node
    junction_label_distance: float = 1.5

    # Refresh neighbours of scheduled nodes too
    refresh_neighbours: bool = True


class NodeStateListener(Protocol):
    """Receives state updates of nodes, e.g. to refresh visuals per viewer."""

    def on_node_state_updated(self, node: TrackNode, viewer: Optional[object]) -> None:
        ...


class TrackWorld:
    """World state container for the track graph.

    Owns all coasters; nodes refer back to their coaster by id.

    Usage:
        world = TrackWorld()
        coaster = world.create_coaster("Loop")
        a = coaster.add_node((0.0, 0.0, 0.0))
        b = coaster.add_node((5.0, 0.0, 0.0))
        world.connect(a, b)
        world.update()
    """

    def __init__(
        self,
        config: TrackWorldConfig | None = None,
        animator_config: AnimatorConfig | None = None,
    ):
        """Initialize world.

        Args:
            config: Track configuration. Uses defaults if None.
            animator_config: Animation configuration. Uses defaults if None.
        """
        self.config = config or TrackWorldConfig()
        self.animator = TrackAnimator(self, animator_config)

        self._coasters: Dict[int, TrackCoaster] = {}
        self._next_coaster_id: int = 0
        self._next_node_id: int = 0

        # Nodes waiting for on_shape_updated, in scheduling order
        self._pending_refresh: Dict[int, TrackNode] = {}
        self._listeners: List[NodeStateListener] = []

        self._time: float = 0.0
        self._frame: int = 0

    @property
    def time(self) -> float:
        """Current world time in seconds."""
        return self._time

    @property
    def frame(self) -> int:
        return self._frame

    @property
    def coasters(self) -> List[TrackCoaster]:
        return list(self._coasters.values())

    @property
    def pending_refresh_count(self) -> int:
        return len(self._pending_refresh)

    def create_coaster(self, name: str | None = None) -> TrackCoaster:
        """Create a new, empty coaster.

        Args:
            name: Coaster name, generated if None

        Returns:
            The new coaster
        """
        coaster_id = self._next_coaster_id
        self._next_coaster_id += 1
        coaster = TrackCoaster(self, coaster_id, name or f"coaster{coaster_id}")
        self._coasters[coaster_id] = coaster
        logger.debug("Created %r", coaster)
        return coaster

    def get_coaster(self, coaster_id: int) -> Optional[TrackCoaster]:
        return self._coasters.get(coaster_id)

    def find_coaster(self, name: str) -> Optional[TrackCoaster]:
        for coaster in self._coasters.values():
            if coaster.name == name:
                return coaster
        return None

    def remove_coaster(self, coaster: TrackCoaster) -> bool:
        """Remove a coaster and all of its nodes.

        Returns:
            True if the coaster was part of this world
        """
        if self._coasters.get(coaster.coaster_id) is not coaster:
            return False
        for node in coaster.nodes:
            self.remove_node(node)
        del self._coasters[coaster.coaster_id]
        logger.debug("Removed %r", coaster)
        return True

    def get_nodes(self) -> List[TrackNode]:
        """All nodes of all coasters."""
        return [node for coaster in self._coasters.values() for node in coaster.nodes]

    def add_node(self, coaster: TrackCoaster, state: TrackNodeState) -> TrackNode:
        """Create a node in a coaster of this world.

        Args:
            coaster: Coaster to add the node to
            state: Initial node state

        Returns:
            The new node
        """
        if self._coasters.get(coaster.coaster_id) is not coaster:
            raise ValueError(f"{coaster!r} is not part of this world")
        node = TrackNode(self, coaster.coaster_id, self._next_node_id, state)
        self._next_node_id += 1
        coaster._attach(node)
        node.on_shape_updated()
        return node

    def remove_node(self, node: TrackNode) -> None:
        """Disconnect a node from all neighbours and remove it.

        Raises:
            TrackNodeRemovedError: If the node was already removed
        """
        coaster = node.coaster
        if coaster is None:
            raise TrackNodeRemovedError(f"{node!r} was already removed")
        for neighbour in node.get_neighbours():
            self.disconnect(node, neighbour)
        self.animator.cancel(node)
        self._pending_refresh.pop(node.node_id, None)
        coaster._detach(node)
        node._on_removed()
        logger.debug("Removed %r from %r", node, coaster)

    def connect(self, node_a: TrackNode, node_b: TrackNode) -> TrackConnection:
        """Connect two nodes.

        Both nodes get the connection appended to their priority order
        and have their shape updated immediately.

        Raises:
            ValueError: If the nodes are the same or already connected
            TrackNodeRemovedError: If either node was removed
        """
        self._check_present(node_a, node_b)
        if node_a is node_b:
            raise ValueError("Cannot connect a node to itself")
        if node_a.find_connection(node_b) is not None:
            raise ValueError(f"{node_a!r} and {node_b!r} are already connected")

        connection = TrackConnection(node_a, node_b, self.config.tangent_strength)
        node_a._add_connection(connection)
        node_b._add_connection(connection)
        self._on_connections_changed(node_a, node_b)
        return connection

    def disconnect(self, node_a: TrackNode, node_b: TrackNode) -> bool:
        """Remove the connection between two nodes.

        Returns:
            True if the nodes were connected
        """
        self._check_present(node_a, node_b)
        connection = node_a.find_connection(node_b)
        if connection is None:
            return False
        node_a._remove_connection(connection)
        node_b._remove_connection(connection)
        self._on_connections_changed(node_a, node_b)
        return True

    def _check_present(self, *nodes: TrackNode) -> None:
        for node in nodes:
            if node.is_removed:
                raise TrackNodeRemovedError(f"{node!r} was removed")
            if node.world is not self:
                raise ValueError(f"{node!r} belongs to another world")

    def _on_connections_changed(self, *nodes: TrackNode) -> None:
        for node in nodes:
            node.on_shape_updated()
            node.schedule_refresh()
            node.mark_changed()

    def schedule_node_refresh(self, node: TrackNode) -> None:
        """Queue a node for on_shape_updated on the next refresh()."""
        self._pending_refresh.setdefault(node.node_id, node)

    def refresh(self) -> int:
        """Run on_shape_updated for every scheduled node and its neighbours.

        Returns:
            Number of nodes refreshed
        """
        if not self._pending_refresh:
            return 0
        pending = list(self._pending_refresh.values())
        self._pending_refresh.clear()

        to_refresh: Dict[int, TrackNode] = {}
        for node in pending:
            if node.is_removed:
                continue
            to_refresh.setdefault(node.node_id, node)
            if self.config.refresh_neighbours:
                for neighbour in node.get_neighbours():
                    to_refresh.setdefault(neighbour.node_id, neighbour)

        for node in to_refresh.values():
            node.on_shape_updated()
        logger.debug("Refreshed %d node(s)", len(to_refresh))
        return len(to_refresh)

    def update(self, dt: float | None = None) -> None:
        """Advance animations and refresh changed nodes.

        Args:
            dt: Time step in seconds (uses animator default if None)
        """
        dt = dt if dt is not None else self.animator.config.default_dt
        self.animator.update(dt)
        self.refresh()
        self._time += dt
        self._frame += 1

    def add_listener(self, listener: NodeStateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: NodeStateListener) -> None:
        self._listeners.remove(listener)

    def notify_state_updated(self, node: TrackNode, viewer: Optional[object]) -> None:
        for listener in self._listeners:
            listener.on_node_state_updated(node, viewer)

    def check_unlocked(self, node: TrackNode) -> None:
        """Raise TrackLockedError when the node's coaster is locked."""
        if node.is_locked:
            raise TrackLockedError([node])

    def apply_all(
        self,
        nodes: Iterable[TrackNode],
        action: Callable[[TrackNode], None],
    ) -> None:
        """Run an edit on every node, skipping nodes of locked coasters.

        Every node is attempted; locked nodes are collected and reported
        together after all others were changed.

        Raises:
            TrackLockedError: If any node belonged to a locked coaster
        """
        locked: List[TrackNode] = []
        for node in nodes:
            try:
                self.check_unlocked(node)
                action(node)
            except TrackLockedError as ex:
                locked.extend(ex.nodes or [node])
        if locked:
            logger.warning("Skipped %d node(s) of locked coasters", len(locked))
            raise TrackLockedError(locked)

    def get_state(self) -> dict:
        """Get world summary."""
        return {
            "time": self._time,
            "frame": self._frame,
            "coasters": [c.get_state() for c in self._coasters.values()],
            "pending_refresh": len(self._pending_refresh),
            "active_animations": self.animator.active_count,
        }
