"""
Track node - Vertex of the coaster track graph.

Stores the 3D position and 'up' vector of a node and derives from its
connections:
- The forward direction and the visual up vector
- Smoothing modes of the connection ends at this node
- Junction ordering, switching and labels
- Rail paths through the node
- Named animation states
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence
import logging
import numpy as np

from coasternet.geometry.vector import (
    IntVector3,
    as_vector,
    look_at_pitch,
    look_at_yaw,
    normalization_factor,
    normalize,
    ortho_normalize,
    vector,
)
from coasternet.track.animation import TrackNodeAnimationState
from coasternet.track.connection import TrackConnection
from coasternet.track.exceptions import TrackNodeRemovedError
from coasternet.track.junction import JunctionLabel, JunctionOrder, sort_junctions
from coasternet.track.path import RailJunction, RailPath, RailPathPoint
from coasternet.track.state import TrackNodeReference, TrackNodeState

if TYPE_CHECKING:
    from coasternet.simulation.world import TrackWorld
    from coasternet.track.coaster import TrackCoaster

logger = logging.getLogger(__name__)

# Direction used when the neighbours do not determine one
FALLBACK_DIRECTION = (0.0, 0.0, 1.0)

# Squared length below which an orientation counts as unset
UNSET_ORIENTATION_EPSILON = 1e-10

# Distance of the up-arrow tip from the node position
UP_POSITION_DISTANCE = 0.4


def _readonly(v: np.ndarray) -> np.ndarray:
    v = np.array(v, dtype=float)
    v.setflags(write=False)
    return v


@dataclass(eq=False)
class SpawnLocation:
    """Where and how vehicles are placed on a node."""
    position: np.ndarray
    yaw: float
    pitch: float


class TrackNode:
    """A single node of track of a coaster.

    Nodes are created by the world, which also connects and
    disconnects them. Derived state (direction, visual up, smoothing
    modes, junction labels) is recomputed by on_shape_updated().

    Usage:
        node = coaster.add_node((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        world.connect(node, other)
        path = node.build_path()
    """

    def __init__(
        self,
        world: "TrackWorld",
        coaster_id: int,
        node_id: int,
        state: TrackNodeState,
    ):
        """Initialize node.

        Args:
            world: World that owns the coaster of this node
            coaster_id: Id of the coaster this node belongs to
            node_id: Unique id of this node in the world
            state: Initial position, orientation and rail block
        """
        self._world = world
        self._coaster_id: Optional[int] = coaster_id
        self.node_id = node_id

        self._pos = _readonly(state.position)
        self._rail_block: Optional[IntVector3] = state.rail_block
        orientation = as_vector(state.orientation)
        if float(np.dot(orientation, orientation)) < UNSET_ORIENTATION_EPSILON:
            self._up = _readonly(vector())
        else:
            self._up = _readonly(normalize(orientation))
        self._dir = _readonly(FALLBACK_DIRECTION)
        self._up_visual = self._up

        # Raw priority order, kept up to date by the world
        self._connections: JunctionOrder[TrackConnection] = JunctionOrder()
        self._animation_states: List[TrackNodeAnimationState] = []
        self._junction_labels: List[JunctionLabel] = []

        self._refresh_orientation()

    @property
    def world(self) -> "TrackWorld":
        return self._world

    @property
    def coaster(self) -> Optional["TrackCoaster"]:
        """Coaster this node belongs to, None once removed."""
        if self._coaster_id is None:
            return None
        return self._world.get_coaster(self._coaster_id)

    @property
    def coaster_id(self) -> Optional[int]:
        return self._coaster_id

    @property
    def is_removed(self) -> bool:
        """Whether this node was removed and is no longer part of a coaster."""
        return self._coaster_id is None

    @property
    def is_locked(self) -> bool:
        coaster = self.coaster
        return coaster is not None and coaster.locked

    @property
    def position(self) -> np.ndarray:
        return self._pos

    @property
    def direction(self) -> np.ndarray:
        """Unit forward direction, derived from the neighbours."""
        return self._dir

    @property
    def orientation(self) -> np.ndarray:
        """Up vector as set by the user; zero when unset."""
        return self._up

    @property
    def visual_up(self) -> np.ndarray:
        """Up vector orthogonal to the direction."""
        return self._up_visual

    def _check_not_removed(self) -> None:
        if self._coaster_id is None:
            raise TrackNodeRemovedError(f"{self!r} was removed")

    def get_state(self) -> TrackNodeState:
        return TrackNodeState.from_node(self)

    def set_state(self, state: TrackNodeState) -> None:
        self.set_position(state.position)
        self.set_orientation(state.orientation)
        self.set_rail_block(state.rail_block)

    def mark_changed(self) -> None:
        """Notify the coaster that it has unsaved changes."""
        self._check_not_removed()
        self.coaster.mark_changed()

    def schedule_refresh(self) -> None:
        """Ask the world to refresh this node and its neighbours later."""
        self._check_not_removed()
        self._world.schedule_node_refresh(self)

    def remove(self) -> None:
        self._world.remove_node(self)

    def set_position(self, position: Iterable[float]) -> None:
        self._check_not_removed()
        position = as_vector(position)
        if not np.array_equal(self._pos, position):
            self._pos = _readonly(position)
            self.schedule_refresh()
            self.mark_changed()

    def get_up_position(self) -> np.ndarray:
        return self._pos + self._up * UP_POSITION_DISTANCE

    def get_spawn_location(self, orientation: Iterable[float]) -> SpawnLocation:
        """Get where vehicles should be spawned on this node.

        Args:
            orientation: Preferred travel direction; the node direction
                is flipped when it points the other way

        Returns:
            SpawnLocation with yaw/pitch of the travel direction
        """
        d = self._dir
        if float(np.dot(d, as_vector(orientation))) < 0.0:
            d = -d
        return SpawnLocation(
            self._pos.copy(),
            look_at_yaw(d[0], d[2]),
            look_at_pitch(d[0], d[1], d[2]),
        )

    def set_orientation(self, up: Iterable[float]) -> None:
        """Set the up vector. Zero-length input leaves it unchanged."""
        self._check_not_removed()
        up = as_vector(up)
        n = normalization_factor(up)
        if not np.isinf(n):
            up = up * n
            if not np.array_equal(self._up, up):
                self._up = _readonly(up)
                self.schedule_refresh()
                self.mark_changed()
        self._refresh_orientation()

    def _refresh_orientation(self) -> None:
        # Visual up is kept on a 90-degree angle with the direction
        self._up_visual = _readonly(ortho_normalize(self._up, self._dir))

    def push_back_junction(self, connection: TrackConnection) -> None:
        """Move a connection to the end of the priority order.

        This takes the connection out of the active pair of a junction.

        Raises:
            ConnectionNotFoundError: If the connection is not on this node
        """
        self._check_not_removed()
        if self._connections.move_to_back(connection):
            logger.debug("Pushed back %r at %r", connection, self)
            self.schedule_refresh()
            self.mark_changed()
            self.on_shape_updated()

    def switch_junction(self, connection: TrackConnection) -> None:
        """Make a connection active at index 0.

        Switching to the connection at index 1 swaps the pair, so the
        previously switched connection stays active as the alternate.
        Does nothing with 2 or fewer connections.

        Raises:
            ConnectionNotFoundError: If the connection is not on this node
        """
        self._check_not_removed()
        if len(self._connections) <= 2:
            return
        if self._connections.move_to_front(connection):
            logger.debug("Switched %r to %r", self, connection)
            self.schedule_refresh()
            self.mark_changed()
            self.on_shape_updated()

    def on_shape_updated(self) -> None:
        """Recompute direction, visual up, end smoothing and junction labels.

        Called when the position of this node, the position of one of its
        neighbours, or its connections change.
        """
        self._check_not_removed()
        connections = self.get_sorted_connections()
        is_junction = len(connections) > 2

        direction = vector()
        for i, conn in enumerate(connections):
            v = conn.get_other_node(self).position - self._pos
            n = normalization_factor(v)
            if np.isinf(n):
                continue
            v = v * n
            if is_junction:
                # Best fit, folding opposite neighbours onto one tangent
                if float(np.dot(direction, v)) > 0.0:
                    direction += v
                else:
                    direction -= v
            elif i == 0:
                direction += v
            else:
                direction -= v

        self._dir = _readonly(normalize(direction, fallback=vector(*FALLBACK_DIRECTION)))
        self._refresh_orientation()

        for i, conn in enumerate(connections):
            end = conn.get_end(self)
            if is_junction:
                end.init_auto()
            elif i == 0:
                end.init_normal()
            else:
                end.init_inverted()

        self._refresh_junction_labels(connections)
        self.on_state_updated(None)

    def _refresh_junction_labels(self, sorted_connections: Sequence[TrackConnection]) -> None:
        if len(sorted_connections) <= 2:
            self._junction_labels = []
            return

        distance = self._world.config.junction_label_distance
        labels = []
        for i, conn in enumerate(sorted_connections):
            active = conn is self._connections[0] or conn is self._connections[1]
            labels.append(JunctionLabel(
                JunctionLabel.format_text(i, active),
                conn.get_near_end_position(self, distance),
                active,
            ))
        self._junction_labels = labels

    def on_state_updated(self, viewer: Optional[object]) -> None:
        """Let state listeners (particles, visibility) refresh for a viewer.

        Args:
            viewer: Viewer whose view changed, None for all viewers
        """
        self._world.notify_state_updated(self, viewer)

    def get_junction_labels(self) -> List[JunctionLabel]:
        return list(self._junction_labels)

    def get_junctions(self) -> List[RailJunction]:
        """Named junction exits of this node, in sorted order.

        Returns:
            One RailJunction per connection, named "1", "2", ...,
            positioned halfway along the connection
        """
        return [
            RailJunction(str(i + 1), conn.get_path_position(self, 0.5))
            for i, conn in enumerate(self.get_sorted_connections())
        ]

    def get_connections(self) -> List[TrackConnection]:
        """Connections in raw priority order."""
        return list(self._connections)

    def get_sorted_connections(self) -> List[TrackConnection]:
        """Connections in angular order around this node.

        With 2 or fewer connections this is the raw order. Computed on
        every call from the current positions.
        """
        connections = self.get_connections()
        if len(connections) <= 2:
            return connections
        targets = [conn.get_other_node(self).position for conn in connections]
        return [connections[i] for i in sort_junctions(self._pos, targets)]

    def get_neighbours(self) -> List["TrackNode"]:
        return [conn.get_other_node(self) for conn in self._connections]

    def find_connection(self, other: "TrackNode") -> Optional[TrackConnection]:
        for conn in self._connections:
            if conn.get_other_node(self) is other:
                return conn
        return None

    def _add_connection(self, connection: TrackConnection) -> None:
        self._connections.append(connection)

    def _remove_connection(self, connection: TrackConnection) -> None:
        self._connections.remove(connection)

    def _reorder_connections(self, connections: Sequence[TrackConnection]) -> None:
        if self._connections.reorder(connections):
            logger.debug("Reordered connections of %r", self)
            self.schedule_refresh()
            self.mark_changed()

    # Animation states

    def play_animation(self, name: str, duration: float) -> bool:
        """Animate this node towards a named target state.

        Args:
            name: Name of the animation state
            duration: Duration in seconds, 0 for instant

        Returns:
            True if the state exists and the animation is now playing
        """
        self._check_not_removed()
        if duration < 0.0:
            raise ValueError("Animation duration must not be negative")
        anim_state = self.find_animation_state(name)
        if anim_state is None:
            return False
        connections = None
        if self.do_animation_states_change_connections():
            connections = anim_state.connections
        self._world.animator.animate(self, anim_state.state, connections, duration)
        return True

    def find_animation_state(self, name: str) -> Optional[TrackNodeAnimationState]:
        for anim_state in self._animation_states:
            if anim_state.name == name:
                return anim_state
        return None

    def remove_animation_state(self, name: str) -> bool:
        """Remove a named animation state, re-indexing the ones after it.

        Returns:
            True if a state by this name existed
        """
        self._check_not_removed()
        for i, anim_state in enumerate(self._animation_states):
            if anim_state.name == name:
                del self._animation_states[i]
                for j in range(i, len(self._animation_states)):
                    self._animation_states[j] = self._animation_states[j].update_index(j)
                self.mark_changed()
                return True
        return False

    def update_animation_state(
        self,
        name: str,
        state: Optional[TrackNodeState] = None,
        connections: Optional[Sequence[TrackNodeReference]] = None,
    ) -> TrackNodeAnimationState:
        """Store a named animation state, overwriting one with the same name.

        Args:
            name: Name of the state
            state: State to store, the current state if None
            connections: Connected nodes to store, the current raw-order
                neighbours if None

        Returns:
            The stored animation state
        """
        self._check_not_removed()
        if state is None:
            state = self.get_state()
        if connections is None:
            connections = [TrackNodeReference.of(n) for n in self.get_neighbours()]

        for i, existing in enumerate(self._animation_states):
            if existing.name == name:
                anim_state = TrackNodeAnimationState.create(name, state, connections, i)
                self._animation_states[i] = anim_state
                break
        else:
            anim_state = TrackNodeAnimationState.create(
                name, state, connections, len(self._animation_states))
            self._animation_states.append(anim_state)

        self.mark_changed()
        return anim_state

    def do_animation_states_change_connections(self) -> bool:
        """Whether playing any animation state alters the connections.

        With exactly 2 connections the order is ignored; otherwise the
        captured neighbours must match count and order.
        """
        neighbours = self.get_neighbours()
        for anim_state in self._animation_states:
            captured = [ref.node for ref in anim_state.connections]
            if len(captured) != len(neighbours):
                return True
            if len(neighbours) == 2:
                if any(node is not neighbours[0] and node is not neighbours[1]
                       for node in captured):
                    return True
            elif any(a is not b for a, b in zip(captured, neighbours)):
                return True
        return False

    def has_animation_states(self) -> bool:
        return bool(self._animation_states)

    def get_animation_states(self) -> List[TrackNodeAnimationState]:
        return list(self._animation_states)

    # Rail block and paths

    def get_rail_block(self, create_default: bool = True) -> Optional[IntVector3]:
        """Get the rail block, where signs are triggered.

        Args:
            create_default: Derive the block from the position when unset

        Returns:
            Rail block, or None when unset and create_default is False
        """
        if self._rail_block is None and create_default:
            return IntVector3.from_position(self._pos)
        return self._rail_block

    def set_rail_block(self, rail_block: Optional[IntVector3]) -> None:
        """Set the rail block; animation states follow the new block."""
        self._check_not_removed()
        if self._rail_block != rail_block:
            self._rail_block = rail_block
            self.mark_changed()
            self.schedule_refresh()
            self._animation_states = [
                anim_state.change_rail(rail_block) for anim_state in self._animation_states
            ]

    def build_path(self) -> RailPath:
        """Build the rail path of this node.

        Covers half of the first two connections in raw order. With a
        single connection the path runs from the node to the middle of
        that connection.
        """
        count = len(self._connections)
        if count == 0:
            return RailPath(self.get_rail_block(True))
        if count == 1:
            return self.build_path_between(None, self._connections[0])
        return self.build_path_between(self._connections[0], self._connections[1])

    def build_path_between(
        self,
        connection_a: Optional[TrackConnection],
        connection_b: Optional[TrackConnection],
    ) -> RailPath:
        """Build a rail path through this node along two connections.

        The path runs from the middle of connection_a to this node, then
        to the middle of connection_b. Either may be None.

        Raises:
            ConnectionNotFoundError: If a connection is not on this node
        """
        rail_block = self.get_rail_block(True)
        if connection_a is None and connection_b is None:
            return RailPath(rail_block)

        smoothness = self._world.config.smoothness
        max_depth = self._world.config.max_subdivision_depth
        points: List[RailPathPoint] = []
        if connection_a is not None:
            near = 0.0 if connection_a.get_end(self) is connection_a.end_a else 1.0
            connection_a.build_path(points, rail_block, smoothness, 0.5, near, max_depth)
        if connection_b is not None:
            near = 0.0 if connection_b.get_end(self) is connection_b.end_a else 1.0
            if connection_a is not None:
                # Both halves share the point at this node
                points.pop()
            connection_b.build_path(points, rail_block, smoothness, near, 0.5, max_depth)
        return RailPath(rail_block, points)

    def _on_removed(self) -> None:
        self._junction_labels = []
        self._animation_states = []
        self._coaster_id = None

    def __repr__(self) -> str:
        x, y, z = self._pos
        return f"TrackNode#{self.node_id}({x:.3f}, {y:.3f}, {z:.3f})"
