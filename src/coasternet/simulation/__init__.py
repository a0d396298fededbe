"""
Simulation module - World state and animation playback.

This module contains:
- TrackWorld: Coasters, connections and deferred node refresh
- TrackAnimator: Plays node animation states over time
"""

from coasternet.simulation.world import NodeStateListener, TrackWorld, TrackWorldConfig
from coasternet.simulation.animator import AnimatorConfig, TrackAnimator

__all__ = [
    "TrackWorld",
    "TrackWorldConfig",
    "NodeStateListener",
    "TrackAnimator",
    "AnimatorConfig",
]
