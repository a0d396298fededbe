"""
Track connection - Edge between two track nodes.

Defines:
- SmoothingMode: how a connection shapes its tangent at each end
- TrackConnectionEnd: one end of a connection and its smoothing mode
- TrackConnection: cubic Bezier geometry between two nodes
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple
import math
import numpy as np

from coasternet.geometry.vector import (
    IntVector3,
    lerp,
    normalization_factor,
    normalize,
    ortho_normalize,
)
from coasternet.track.exceptions import ConnectionNotFoundError
from coasternet.track.path import RailPathPoint, RailPathPosition

if TYPE_CHECKING:
    from coasternet.track.node import TrackNode

# Control arm length as a fraction of the connection length
DEFAULT_TANGENT_STRENGTH = 0.4
DEFAULT_MAX_SUBDIVISION_DEPTH = 8


class SmoothingMode(Enum):
    """Tangent policy at one end of a connection."""
    AUTO = "auto"          # Junction node, tangent from geometry only
    NORMAL = "normal"      # Along the node direction (first connection)
    INVERTED = "inverted"  # Against the node direction (second connection)


class TrackConnectionEnd:
    """One end of a connection.

    The smoothing mode is set by the node at this end every time its
    shape is updated.
    """

    def __init__(self, node: "TrackNode", other: "TrackNode"):
        self.node = node
        self.other = other
        self.mode = SmoothingMode.AUTO

    def init_auto(self) -> None:
        self.mode = SmoothingMode.AUTO

    def init_normal(self) -> None:
        self.mode = SmoothingMode.NORMAL

    def init_inverted(self) -> None:
        self.mode = SmoothingMode.INVERTED

    @property
    def direction(self) -> np.ndarray:
        """Unit tangent at this end, pointing into the connection."""
        d = self.node.direction
        if self.mode is SmoothingMode.NORMAL:
            return d.copy()
        if self.mode is SmoothingMode.INVERTED:
            return -d
        delta = self.other.position - self.node.position
        return d.copy() if float(np.dot(d, delta)) >= 0.0 else -d


class TrackConnection:
    """Connection between exactly two distinct track nodes.

    Geometry is a cubic Bezier curve from node A (t=0) to node B (t=1),
    with control arms along each end's smoothing direction.

    Connections are created and destroyed by the world; nodes only
    hold references to them.
    """

    def __init__(
        self,
        node_a: "TrackNode",
        node_b: "TrackNode",
        tangent_strength: float = DEFAULT_TANGENT_STRENGTH,
    ):
        """Initialize connection.

        Args:
            node_a: First endpoint (t=0)
            node_b: Second endpoint (t=1)
            tangent_strength: Control arm length as fraction of the length
        """
        if node_a is node_b:
            raise ValueError("A connection requires two distinct nodes")
        self._end_a = TrackConnectionEnd(node_a, node_b)
        self._end_b = TrackConnectionEnd(node_b, node_a)
        self.tangent_strength = tangent_strength

    @property
    def node_a(self) -> "TrackNode":
        return self._end_a.node

    @property
    def node_b(self) -> "TrackNode":
        return self._end_b.node

    @property
    def end_a(self) -> TrackConnectionEnd:
        return self._end_a

    @property
    def end_b(self) -> TrackConnectionEnd:
        return self._end_b

    def get_end(self, node: "TrackNode") -> TrackConnectionEnd:
        """Get the end of this connection at a node.

        Raises:
            ConnectionNotFoundError: If node is not an endpoint
        """
        if node is self._end_a.node:
            return self._end_a
        if node is self._end_b.node:
            return self._end_b
        raise ConnectionNotFoundError(f"{node!r} is not an endpoint of {self!r}")

    def get_other_node(self, node: "TrackNode") -> "TrackNode":
        """Get the endpoint that is not the given node."""
        return self.get_end(node).other

    def is_connected(self, node: "TrackNode") -> bool:
        return node is self._end_a.node or node is self._end_b.node

    @property
    def full_distance(self) -> float:
        """Straight-line distance between both nodes."""
        return float(np.linalg.norm(self.node_b.position - self.node_a.position))

    def _control_points(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        p0 = self.node_a.position
        p3 = self.node_b.position
        arm = self.full_distance * self.tangent_strength
        p1 = p0 + self._end_a.direction * arm
        p2 = p3 + self._end_b.direction * arm
        return p0, p1, p2, p3

    def get_position(self, t: float) -> np.ndarray:
        """World position at parameter t (0 = node A, 1 = node B)."""
        p0, p1, p2, p3 = self._control_points()
        mt = 1.0 - t
        return (
            mt**3 * p0
            + 3 * mt**2 * t * p1
            + 3 * mt * t**2 * p2
            + t**3 * p3
        )

    def get_motion_vector(self, t: float) -> np.ndarray:
        """Unit tangent at parameter t, pointing from A towards B."""
        p0, p1, p2, p3 = self._control_points()
        mt = 1.0 - t
        d = (
            3 * mt**2 * (p1 - p0)
            + 6 * mt * t * (p2 - p1)
            + 3 * t**2 * (p3 - p2)
        )
        n = normalization_factor(d)
        if math.isinf(n):
            # Zero-length arms at an endpoint or coincident nodes
            return normalize(p3 - p0, fallback=self.node_a.direction)
        return d * n

    def get_orientation(self, t: float) -> np.ndarray:
        """Up vector at parameter t, orthogonal to the motion vector."""
        up = lerp(self.node_a.visual_up, self.node_b.visual_up, t)
        return ortho_normalize(up, self.get_motion_vector(t))

    def _param_from(self, node: "TrackNode", t: float) -> float:
        return t if self.get_end(node) is self._end_a else 1.0 - t

    def get_path_position(self, node: "TrackNode", t: float) -> RailPathPosition:
        """Position and direction measured from one end of the connection.

        Args:
            node: Endpoint that t is measured from
            t: Parameter from that endpoint (0 = at node, 1 = other end)

        Returns:
            RailPathPosition with direction pointing away from node
        """
        param = self._param_from(node, t)
        direction = self.get_motion_vector(param)
        if node is self.node_b:
            direction = -direction
        return RailPathPosition(self.get_position(param), direction)

    def get_near_end_position(self, node: "TrackNode", distance: float = 1.5) -> np.ndarray:
        """Point on the connection a short distance from a node.

        Never further than a quarter of the connection from the node.
        """
        length = self.full_distance
        t = min(0.25, distance / length) if length > 0.0 else 0.0
        return self.get_position(self._param_from(node, t))

    def get_path_point(self, rail_block: Optional[IntVector3], t: float) -> RailPathPoint:
        """Rail path point at parameter t, relative to a rail block."""
        position = self.get_position(t)
        if rail_block is not None:
            position = position - rail_block.as_vector()
        return RailPathPoint(position, self.get_orientation(t))

    def build_path(
        self,
        points: List[RailPathPoint],
        rail_block: Optional[IntVector3],
        smoothness: float,
        t_start: float,
        t_end: float,
        max_depth: int = DEFAULT_MAX_SUBDIVISION_DEPTH,
    ) -> None:
        """Append path points covering [t_start, t_end] of this connection.

        The range is subdivided until each span's curve midpoint lies
        within 1 / smoothness of its chord midpoint. Both t_start and
        t_end produce a point; t_start may be larger than t_end to
        walk the connection backwards.

        Args:
            points: Output list, appended to
            rail_block: Block the points are made relative to
            smoothness: Subdivision density (higher is finer)
            t_start: Parameter of the first point
            t_end: Parameter of the last point
            max_depth: Maximum recursion depth of the subdivision
        """
        tolerance = 1.0 / smoothness if smoothness > 0.0 else math.inf
        start = self.get_position(t_start)
        end = self.get_position(t_end)
        points.append(self.get_path_point(rail_block, t_start))
        self._subdivide(points, rail_block, tolerance, t_start, start, t_end, end, 0, max_depth)

    def _subdivide(
        self,
        points: List[RailPathPoint],
        rail_block: Optional[IntVector3],
        tolerance: float,
        t0: float,
        p0: np.ndarray,
        t1: float,
        p1: np.ndarray,
        depth: int,
        max_depth: int,
    ) -> None:
        t_mid = 0.5 * (t0 + t1)
        p_mid = self.get_position(t_mid)
        deviation = float(np.linalg.norm(p_mid - 0.5 * (p0 + p1)))
        if depth < max_depth and (depth == 0 or deviation > tolerance):
            self._subdivide(points, rail_block, tolerance, t0, p0, t_mid, p_mid, depth + 1, max_depth)
            self._subdivide(points, rail_block, tolerance, t_mid, p_mid, t1, p1, depth + 1, max_depth)
        else:
            points.append(self.get_path_point(rail_block, t1))

    def __repr__(self) -> str:
        return f"TrackConnection({self.node_a!r} <-> {self.node_b!r})"
