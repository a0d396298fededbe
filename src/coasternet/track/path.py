"""
Rail path - Geometry handed to the rail navigation layer.

Defines:
- RailPathPoint: position relative to the rail block, plus up vector
- RailPath: ordered points anchored at a rail block
- RailPathPosition / RailJunction: named positions on connections
"""

from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np

from coasternet.geometry.vector import IntVector3


@dataclass(eq=False)
class RailPathPoint:
    """Single point of a rail path.

    Position is relative to the rail block the path is anchored at.
    """
    position: np.ndarray
    up: np.ndarray


@dataclass(eq=False)
class RailPath:
    """Ordered sequence of rail path points anchored at a rail block."""
    rail_block: Optional[IntVector3] = None
    points: List[RailPathPoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def total_distance(self) -> float:
        """Length of the polyline through all points."""
        if len(self.points) < 2:
            return 0.0
        positions = np.array([p.position for p in self.points])
        return float(np.sum(np.linalg.norm(np.diff(positions, axis=0), axis=1)))

    def world_points(self) -> List[np.ndarray]:
        """Point positions converted back to world coordinates."""
        if self.rail_block is None:
            return [p.position.copy() for p in self.points]
        offset = self.rail_block.as_vector()
        return [p.position + offset for p in self.points]

    def __len__(self) -> int:
        return len(self.points)


@dataclass(eq=False)
class RailPathPosition:
    """World position and motion direction on a connection."""
    position: np.ndarray
    direction: np.ndarray


@dataclass(eq=False)
class RailJunction:
    """Named junction exit of a node, used by junction switching logic."""
    name: str
    position: RailPathPosition
