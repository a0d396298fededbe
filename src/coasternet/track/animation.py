"""
Animation states - Named target states of a track node.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple, TYPE_CHECKING

from coasternet.geometry.vector import IntVector3
from coasternet.track.state import TrackNodeReference, TrackNodeState

if TYPE_CHECKING:
    from coasternet.track.node import TrackNode


@dataclass(frozen=True, eq=False)
class TrackNodeAnimationState:
    """Named snapshot of a node's pose and the nodes it connected to.

    The connections are references to neighbour nodes in the raw
    connection order at capture time, not the connection objects.
    """
    name: str
    state: TrackNodeState
    connections: Tuple[TrackNodeReference, ...]
    index: int

    @classmethod
    def create(
        cls,
        name: str,
        state: TrackNodeState,
        connections: Iterable[TrackNodeReference],
        index: int,
    ) -> "TrackNodeAnimationState":
        if not name:
            raise ValueError("Animation state name must not be empty")
        return cls(name, state, tuple(connections), index)

    def update_index(self, index: int) -> "TrackNodeAnimationState":
        return replace(self, index=index)

    def change_rail(self, rail_block: Optional[IntVector3]) -> "TrackNodeAnimationState":
        return replace(self, state=self.state.change_rail(rail_block))

    def get_connected_nodes(self) -> List[Optional["TrackNode"]]:
        """Referenced nodes in captured order; None for removed nodes."""
        return [ref.get_node() for ref in self.connections]

    def get_state(self) -> dict:
        """Get animation state as a plain dictionary."""
        return {
            "name": self.name,
            "index": self.index,
            "state": self.state.get_state(),
            "connections": [tuple(float(v) for v in ref.position) for ref in self.connections],
        }
