"""
CoasterNet - Track graph engine for interactively sculpted coasters.

This package provides the in-memory track graph of a coaster editor:
- Nodes with derived direction and orientation from their neighbours
- Deterministic junction ordering and switching
- Continuous rail paths through nodes along Bezier connections
- Named animation states that move nodes and remap connections
"""

__version__ = "0.1.0"

from coasternet.simulation.world import TrackWorld, TrackWorldConfig
from coasternet.track.node import TrackNode
from coasternet.track.connection import TrackConnection

__all__ = ["TrackWorld", "TrackWorldConfig", "TrackNode", "TrackConnection", "__version__"]
