"""
Coaster - Named group of track nodes.
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from coasternet.track.node import TrackNode
from coasternet.track.state import TrackNodeState

if TYPE_CHECKING:
    from coasternet.simulation.world import TrackWorld


class TrackCoaster:
    """A coaster: the set of nodes that are saved and locked together.

    Nodes are stored by id. Connections between nodes, including nodes
    of other coasters, are managed by the world.
    """

    def __init__(self, world: "TrackWorld", coaster_id: int, name: str):
        """Initialize coaster.

        Args:
            world: Owning world
            coaster_id: Unique id within the world
            name: Display name of the coaster
        """
        self._world = world
        self.coaster_id = coaster_id
        self.name = name
        self.locked = False

        self._nodes: Dict[int, TrackNode] = {}
        self._changed = False

    @property
    def world(self) -> "TrackWorld":
        return self._world

    @property
    def nodes(self) -> List[TrackNode]:
        return list(self._nodes.values())

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def is_changed(self) -> bool:
        """Whether nodes changed since the last clear_changed()."""
        return self._changed

    def mark_changed(self) -> None:
        self._changed = True

    def clear_changed(self) -> None:
        self._changed = False

    def get_node(self, node_id: int) -> Optional[TrackNode]:
        return self._nodes.get(node_id)

    def add_node(self, position: Iterable[float], up: Iterable[float] = (0.0, 0.0, 0.0)) -> TrackNode:
        """Create a new node in this coaster."""
        return self._world.add_node(self, TrackNodeState.create(position, up))

    def remove_node(self, node: TrackNode) -> None:
        self._world.remove_node(node)

    def _attach(self, node: TrackNode) -> None:
        self._nodes[node.node_id] = node
        self._changed = True

    def _detach(self, node: TrackNode) -> None:
        del self._nodes[node.node_id]
        self._changed = True

    def get_state(self) -> dict:
        """Get coaster summary."""
        return {
            "coaster_id": self.coaster_id,
            "name": self.name,
            "locked": self.locked,
            "num_nodes": len(self._nodes),
            "changed": self._changed,
        }

    def __repr__(self) -> str:
        return f"TrackCoaster#{self.coaster_id}({self.name!r})"
