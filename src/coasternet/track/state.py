"""
Node state - Immutable snapshots of a track node.

Defines:
- TrackNodeState: position, orientation and optional rail block
- TrackNodeReference: non-owning reference to a connected node
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional
import numpy as np

from coasternet.geometry.vector import IntVector3, as_vector

if TYPE_CHECKING:
    from coasternet.track.node import TrackNode


def _frozen(values: Iterable[float]) -> np.ndarray:
    v = as_vector(values)
    v.setflags(write=False)
    return v


@dataclass(frozen=True, eq=False)
class TrackNodeState:
    """Snapshot of the editable state of a track node.

    Used by the undo history, serialization and animation states.
    Vectors are stored as read-only arrays.
    """
    position: np.ndarray
    orientation: np.ndarray
    rail_block: Optional[IntVector3] = None

    @classmethod
    def create(
        cls,
        position: Iterable[float],
        orientation: Iterable[float],
        rail_block: Optional[IntVector3] = None,
    ) -> "TrackNodeState":
        """Create a state from plain sequences.

        Args:
            position: World position
            orientation: Up vector (zero when unset)
            rail_block: Explicit rail block, None to derive from position

        Returns:
            New TrackNodeState
        """
        return cls(_frozen(position), _frozen(orientation), rail_block)

    @classmethod
    def from_node(cls, node: "TrackNode") -> "TrackNodeState":
        """Capture the current state of a node."""
        return cls.create(node.position, node.orientation, node.get_rail_block(False))

    def change_position(self, position: Iterable[float]) -> "TrackNodeState":
        return TrackNodeState.create(position, self.orientation, self.rail_block)

    def change_orientation(self, orientation: Iterable[float]) -> "TrackNodeState":
        return TrackNodeState.create(self.position, orientation, self.rail_block)

    def change_rail(self, rail_block: Optional[IntVector3]) -> "TrackNodeState":
        return TrackNodeState.create(self.position, self.orientation, rail_block)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TrackNodeState):
            return NotImplemented
        return (
            np.array_equal(self.position, other.position)
            and np.array_equal(self.orientation, other.orientation)
            and self.rail_block == other.rail_block
        )

    def __hash__(self) -> int:
        return hash((
            tuple(float(v) for v in self.position),
            tuple(float(v) for v in self.orientation),
            self.rail_block,
        ))

    def get_state(self) -> dict:
        """Get state as a plain dictionary."""
        return {
            "position": tuple(float(v) for v in self.position),
            "orientation": tuple(float(v) for v in self.orientation),
            "rail_block": self.rail_block.as_tuple() if self.rail_block else None,
        }


@dataclass(frozen=True, eq=False)
class TrackNodeReference:
    """Reference to a node by identity, remembering where it was.

    Does not keep the node alive in its coaster: once the node is
    removed, get_node() returns None.
    """
    node: "TrackNode"
    position: np.ndarray

    @classmethod
    def of(cls, node: "TrackNode") -> "TrackNodeReference":
        return cls(node, _frozen(node.position))

    def get_node(self) -> Optional["TrackNode"]:
        """Referenced node, or None when it has been removed."""
        if self.node.is_removed:
            return None
        return self.node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TrackNodeReference):
            return NotImplemented
        return self.node is other.node

    def __hash__(self) -> int:
        return id(self.node)
