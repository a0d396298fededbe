"""
Animator - Plays node animation states over time.

Manages:
- Interpolation of node position/orientation towards a target state
- Applying the captured connection topology when an animation finishes
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
import logging
import numpy as np

from coasternet.geometry.vector import lerp
from coasternet.track.node import TrackNode
from coasternet.track.state import TrackNodeReference, TrackNodeState

if TYPE_CHECKING:
    from coasternet.simulation.world import TrackWorld

logger = logging.getLogger(__name__)


@dataclass
class AnimatorConfig:
    """Animation playback configuration."""
    default_dt: float = 0.05            # One world tick
    apply_connections: bool = True      # Reconnect nodes when animations finish


@dataclass(eq=False)
class NodeAnimation:
    """A single node moving towards a target state."""
    node: TrackNode
    start: TrackNodeState
    target: TrackNodeState
    connections: Optional[Tuple[TrackNodeReference, ...]]
    duration: float
    elapsed: float = 0.0

    @property
    def progress(self) -> float:
        """Fraction completed (0-1)."""
        if self.duration <= 0.0:
            return 1.0
        return min(1.0, self.elapsed / self.duration)


class TrackAnimator:
    """Animation driver of a world.

    Nodes call animate() from play_animation(); the world advances all
    running animations every update.
    """

    def __init__(self, world: "TrackWorld", config: AnimatorConfig | None = None):
        """Initialize animator.

        Args:
            world: World whose nodes are animated
            config: Animator configuration. Uses defaults if None.
        """
        self._world = world
        self.config = config or AnimatorConfig()
        self._animations: Dict[int, NodeAnimation] = {}

    @property
    def active_count(self) -> int:
        """Number of running animations."""
        return len(self._animations)

    def is_animating(self, node: TrackNode) -> bool:
        return node.node_id in self._animations

    def animate(
        self,
        node: TrackNode,
        target: TrackNodeState,
        connections: Optional[Sequence[TrackNodeReference]],
        duration: float,
    ) -> None:
        """Start animating a node, replacing any animation it was running.

        Args:
            node: Node to animate
            target: State to move towards
            connections: Neighbours to connect to when done, None to keep
                the current connections
            duration: Duration in seconds, 0 for instant
        """
        animation = NodeAnimation(
            node,
            node.get_state(),
            target,
            tuple(connections) if connections is not None else None,
            duration,
        )
        self._animations.pop(node.node_id, None)
        if duration <= 0.0:
            self._finish(animation)
        else:
            self._animations[node.node_id] = animation

    def cancel(self, node: TrackNode) -> bool:
        """Stop an animation where it is.

        Returns:
            True if the node was animating
        """
        return self._animations.pop(node.node_id, None) is not None

    def update(self, dt: float | None = None) -> int:
        """Advance all running animations.

        Args:
            dt: Time step in seconds (uses config default if None)

        Returns:
            Number of animations that finished
        """
        dt = dt if dt is not None else self.config.default_dt
        finished: List[NodeAnimation] = []
        for animation in list(self._animations.values()):
            if animation.node.is_removed:
                del self._animations[animation.node.node_id]
                continue
            animation.elapsed += dt
            t = animation.progress
            if t >= 1.0:
                del self._animations[animation.node.node_id]
                finished.append(animation)
                continue
            animation.node.set_position(lerp(animation.start.position, animation.target.position, t))
            orientation = lerp(animation.start.orientation, animation.target.orientation, t)
            animation.node.set_orientation(orientation)

        for animation in finished:
            self._finish(animation)
        return len(finished)

    def _finish(self, animation: NodeAnimation) -> None:
        node = animation.node
        node.set_state(animation.target)
        if animation.connections is not None and self.config.apply_connections:
            self._apply_connections(node, animation.connections)
        logger.debug("Finished animation of %r", node)

    def _apply_connections(
        self,
        node: TrackNode,
        references: Sequence[TrackNodeReference],
    ) -> None:
        targets: List[TrackNode] = []
        for ref in references:
            target = ref.get_node()
            if target is None or target is node or any(t is target for t in targets):
                continue
            targets.append(target)

        for neighbour in node.get_neighbours():
            if not any(t is neighbour for t in targets):
                self._world.disconnect(node, neighbour)
        for target in targets:
            if node.find_connection(target) is None:
                self._world.connect(node, target)

        node._reorder_connections([node.find_connection(t) for t in targets])
        node.on_shape_updated()
