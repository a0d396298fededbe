"""Tests for node animation states and playback."""

import pytest
import numpy as np

from coasternet.geometry.vector import IntVector3
from coasternet.simulation.animator import AnimatorConfig
from coasternet.simulation.world import TrackWorld
from coasternet.track.animation import TrackNodeAnimationState
from coasternet.track.state import TrackNodeReference, TrackNodeState


@pytest.fixture
def world():
    """Create an empty world."""
    return TrackWorld()


@pytest.fixture
def coaster(world):
    """Create an empty coaster."""
    return world.create_coaster("anim")


class TestAnimationStates:
    """Test storing and removing named animation states."""

    def test_capture_current_state(self, world, coaster):
        """Test capturing the current pose and neighbours."""
        node = coaster.add_node((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        other = coaster.add_node((5.0, 0.0, 0.0))
        world.connect(node, other)

        anim_state = node.update_animation_state("rest")
        assert anim_state.index == 0
        assert anim_state.state == node.get_state()
        assert anim_state.get_connected_nodes() == [other]
        assert node.find_animation_state("rest") is anim_state
        assert node.has_animation_states()

    def test_overwrite_keeps_index(self, coaster):
        """Test storing an existing name overwrites it in place."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        node.update_animation_state("a")
        node.update_animation_state("b")

        node.set_position((1.0, 0.0, 0.0))
        replaced = node.update_animation_state("a")
        assert replaced.index == 0
        assert [s.name for s in node.get_animation_states()] == ["a", "b"]
        assert np.allclose(node.find_animation_state("a").state.position, [1.0, 0.0, 0.0])

    def test_explicit_state(self, coaster):
        """Test storing a given state and connection list."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        other = coaster.add_node((3.0, 0.0, 0.0))
        target = TrackNodeState.create((0.0, 2.0, 0.0), (0.0, 1.0, 0.0))

        anim_state = node.update_animation_state("lifted", target, [TrackNodeReference.of(other)])
        assert anim_state.state == target
        assert anim_state.get_connected_nodes() == [other]

    def test_remove_reindexes(self, coaster):
        """Test removing a state shifts the indices after it."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        for name in ("a", "b", "c"):
            node.update_animation_state(name)

        assert node.remove_animation_state("a")
        assert [(s.name, s.index) for s in node.get_animation_states()] == [("b", 0), ("c", 1)]
        assert not node.remove_animation_state("a")

    def test_changes_mark_coaster(self, coaster):
        """Test storing and removing states marks the coaster changed."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        coaster.clear_changed()

        node.update_animation_state("a")
        assert coaster.is_changed
        coaster.clear_changed()
        node.remove_animation_state("a")
        assert coaster.is_changed

    def test_empty_name_rejected(self, coaster):
        """Test animation states need a name."""
        node = coaster.add_node((0.0, 0.0, 0.0))

        with pytest.raises(ValueError):
            node.update_animation_state("")

    def test_rail_block_follows_node(self, coaster):
        """Test changing the rail block rewrites stored states."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        node.update_animation_state("a")

        node.set_rail_block(IntVector3(1, 2, 3))
        assert node.find_animation_state("a").state.rail_block == IntVector3(1, 2, 3)

    def test_removed_reference(self, world, coaster):
        """Test references to removed nodes resolve to None."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        other = coaster.add_node((5.0, 0.0, 0.0))
        world.connect(node, other)
        anim_state = node.update_animation_state("a")

        other.remove()
        assert anim_state.get_connected_nodes() == [None]

    def test_state_dict(self):
        """Test the plain dictionary form of an animation state."""
        state = TrackNodeState.create((1.0, 2.0, 3.0), (0.0, 1.0, 0.0), IntVector3(1, 2, 3))
        anim_state = TrackNodeAnimationState.create("a", state, [], 0)

        assert anim_state.get_state() == {
            "name": "a",
            "index": 0,
            "state": {
                "position": (1.0, 2.0, 3.0),
                "orientation": (0.0, 1.0, 0.0),
                "rail_block": (1, 2, 3),
            },
            "connections": [],
        }


class TestConnectionChanges:
    """Test detecting whether states alter the connections."""

    def _chain(self, world, coaster, count):
        node = coaster.add_node((0.0, 0.0, 0.0))
        positions = [(5.0, 0.0, 0.0), (-5.0, 0.0, 0.0), (0.0, 0.0, 5.0)]
        others = [coaster.add_node(p) for p in positions[:count]]
        for other in others:
            world.connect(node, other)
        return node, others

    def test_no_states(self, world, coaster):
        """Test a node without states never changes connections."""
        node, _ = self._chain(world, coaster, 2)
        assert not node.do_animation_states_change_connections()

    def test_same_neighbours(self, world, coaster):
        """Test states captured with the current neighbours."""
        node, _ = self._chain(world, coaster, 3)
        node.update_animation_state("a")
        assert not node.do_animation_states_change_connections()

    def test_pair_order_ignored(self, world, coaster):
        """Test swapped order of exactly two neighbours is no change."""
        node, (x, y) = self._chain(world, coaster, 2)
        node.update_animation_state("a", connections=[TrackNodeReference.of(y), TrackNodeReference.of(x)])
        assert not node.do_animation_states_change_connections()

    def test_junction_order_matters(self, world, coaster):
        """Test a reordered junction counts as a change."""
        node, (x, y, z) = self._chain(world, coaster, 3)
        node.update_animation_state("a")
        node.switch_junction(node.find_connection(z))
        assert node.do_animation_states_change_connections()

    def test_count_differs(self, world, coaster):
        """Test a different number of neighbours counts as a change."""
        node, (x, y) = self._chain(world, coaster, 2)
        node.update_animation_state("a", connections=[TrackNodeReference.of(x)])
        assert node.do_animation_states_change_connections()


class TestPlayback:
    """Test playing animation states."""

    def test_unknown_state(self, coaster):
        """Test playing a missing state does nothing."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        assert not node.play_animation("missing", 1.0)

    def test_negative_duration(self, coaster):
        """Test negative durations are rejected."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        node.update_animation_state("a")

        with pytest.raises(ValueError):
            node.play_animation("a", -1.0)

    def test_instant(self, world, coaster):
        """Test a zero duration applies the state immediately."""
        node = coaster.add_node((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        node.update_animation_state("home")
        node.set_position((3.0, 3.0, 3.0))

        assert node.play_animation("home", 0.0)
        assert np.allclose(node.position, [0.0, 0.0, 0.0])
        assert not world.animator.is_animating(node)

    def test_timed(self, world, coaster):
        """Test a timed animation interpolates over world updates."""
        node = coaster.add_node((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        target = TrackNodeState.create((4.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        node.update_animation_state("out", target)

        node.play_animation("out", 1.0)
        assert world.animator.active_count == 1

        world.update(0.25)
        assert np.allclose(node.position, [1.0, 0.0, 0.0])

        for _ in range(3):
            world.update(0.25)
        assert np.allclose(node.position, [4.0, 0.0, 0.0])
        assert world.animator.active_count == 0

    def test_replay_replaces(self, world, coaster):
        """Test playing again replaces the running animation."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        node.update_animation_state("a", TrackNodeState.create((4.0, 0.0, 0.0), (0.0, 0.0, 0.0)))
        node.update_animation_state("b", TrackNodeState.create((0.0, 4.0, 0.0), (0.0, 0.0, 0.0)))

        node.play_animation("a", 1.0)
        node.play_animation("b", 1.0)
        assert world.animator.active_count == 1

        world.update(1.0)
        assert np.allclose(node.position, [0.0, 4.0, 0.0])

    def test_restores_connections(self, world, coaster):
        """Test finishing an animation reconnects the captured neighbours."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        a = coaster.add_node((5.0, 0.0, 0.0))
        b = coaster.add_node((0.0, 0.0, 5.0))
        world.connect(node, a)
        node.update_animation_state("to_a")

        world.disconnect(node, a)
        world.connect(node, b)
        node.play_animation("to_a", 0.0)

        assert node.get_neighbours() == [a]
        assert b.get_neighbours() == []

    def test_restores_junction_order(self, world, coaster):
        """Test finishing an animation restores the captured priority order."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        others = [coaster.add_node(p) for p in [(5.0, 0.0, 0.0), (-5.0, 0.0, 0.0), (0.0, 0.0, 5.0)]]
        for other in others:
            world.connect(node, other)
        node.update_animation_state("straight")

        node.switch_junction(node.find_connection(others[2]))
        node.play_animation("straight", 0.0)
        assert node.get_neighbours() == others

    def test_restored_order_marks_changed(self, world, coaster):
        """Test restoring only the priority order marks the coaster changed."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        others = [coaster.add_node(p) for p in [(5.0, 0.0, 0.0), (-4.0, 0.0, 3.0), (-1.0, 0.0, -6.0)]]
        for other in others:
            world.connect(node, other)
        node.update_animation_state("x")
        node.switch_junction(node.find_connection(others[2]))
        world.refresh()
        coaster.clear_changed()

        node.play_animation("x", 0.0)
        assert node.get_neighbours() == others
        assert coaster.is_changed
        assert world.pending_refresh_count == 1

        coaster.clear_changed()
        node.play_animation("x", 0.0)
        assert not coaster.is_changed

    def test_removed_neighbour_skipped(self, world, coaster):
        """Test removed captured neighbours are not reconnected."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        a = coaster.add_node((5.0, 0.0, 0.0))
        b = coaster.add_node((-5.0, 0.0, 0.0))
        world.connect(node, a)
        node.update_animation_state("to_a")
        world.disconnect(node, a)
        world.connect(node, b)

        a.remove()
        node.play_animation("to_a", 0.0)
        assert node.get_neighbours() == []

    def test_connections_kept_when_disabled(self):
        """Test connection changes can be turned off."""
        world = TrackWorld(animator_config=AnimatorConfig(apply_connections=False))
        coaster = world.create_coaster()
        node = coaster.add_node((0.0, 0.0, 0.0))
        a = coaster.add_node((5.0, 0.0, 0.0))
        b = coaster.add_node((-5.0, 0.0, 0.0))
        world.connect(node, a)
        node.update_animation_state("to_a")
        world.disconnect(node, a)
        world.connect(node, b)

        node.play_animation("to_a", 0.0)
        assert node.get_neighbours() == [b]

    def test_removed_node_cancels(self, world, coaster):
        """Test removing a node stops its animation."""
        node = coaster.add_node((0.0, 0.0, 0.0))
        node.update_animation_state("a", TrackNodeState.create((4.0, 0.0, 0.0), (0.0, 0.0, 0.0)))
        node.play_animation("a", 1.0)

        node.remove()
        assert world.animator.active_count == 0
        world.update(1.0)
