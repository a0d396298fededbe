#!/usr/bin/env python3
"""
Junction Layout Example

This example demonstrates how to:
1. Build a coaster with a 3-way junction
2. Inspect sorted exits and junction labels
3. Switch the junction and build the rail path
4. Record an animation state and play it back

Run with: python build_junction.py [--log-level DEBUG]
"""

import argparse
import logging
import sys

from coasternet import TrackWorld, TrackWorldConfig


def build_layout(world):
    """Build a junction node with three exits."""
    print("=" * 60)
    print("1. Junction Layout")
    print("=" * 60)

    coaster = world.create_coaster("Junction Demo")
    junction = coaster.add_node((0.0, 64.0, 0.0), (0.0, 1.0, 0.0))
    exits = [
        coaster.add_node((0.0, 64.0, 8.0)),
        coaster.add_node((-7.0, 64.0, -4.0)),
        coaster.add_node((7.0, 64.0, -4.0)),
    ]
    for node in exits:
        world.connect(junction, node)
    world.refresh()

    print(f"\nCoaster: {coaster.name} ({coaster.node_count} nodes)")
    print(f"Junction: {junction!r}")
    print(f"Direction: {junction.direction.round(3)}")
    return junction, exits


def show_junctions(junction):
    """Print sorted exits and their labels."""
    print("\n" + "=" * 60)
    print("2. Exits and Labels")
    print("=" * 60)

    for rail_junction, label in zip(junction.get_junctions(), junction.get_junction_labels()):
        pos = rail_junction.position.position
        print(f"  Exit {rail_junction.name}: label {label.text:<3} at "
              f"({pos[0]:6.2f}, {pos[1]:6.2f}, {pos[2]:6.2f})")


def switch_and_path(junction, exits):
    """Switch to the last exit and print the rail path."""
    print("\n" + "=" * 60)
    print("3. Switching")
    print("=" * 60)

    junction.switch_junction(junction.find_connection(exits[2]))
    path = junction.build_path()

    print(f"\nActive pair: {[repr(n) for n in junction.get_neighbours()[:2]]}")
    print(f"Path points: {len(path)}")
    print(f"Path length: {path.total_distance:.2f}")
    print(f"Rail block: {path.rail_block.as_tuple()}")


def animate(world, junction):
    """Record a raised pose and animate towards it."""
    print("\n" + "=" * 60)
    print("4. Animation")
    print("=" * 60)

    home = junction.update_animation_state("home")
    raised = home.state.change_position((0.0, 66.0, 0.0))
    junction.update_animation_state("raised", raised)

    junction.play_animation("raised", 1.0)
    while world.animator.is_animating(junction):
        world.update(0.25)
        print(f"  t={world.time:.2f}s  y={junction.position[1]:.2f}")

    junction.play_animation("home", 0.0)
    print(f"\nBack home: {junction!r}")


def main():
    parser = argparse.ArgumentParser(description="Build and inspect a coaster junction")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    world = TrackWorld(TrackWorldConfig(smoothness=20.0))
    junction, exits = build_layout(world)
    show_junctions(junction)
    switch_and_path(junction, exits)
    animate(world, junction)

    print("\n" + "=" * 60)
    print("Junction example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
