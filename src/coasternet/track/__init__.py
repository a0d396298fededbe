"""
Track module - Node and connection graph of coaster track.

This module contains:
- TrackNode: Graph vertex deriving direction, orientation and junction order
- TrackConnection: Edge between two nodes with per-end smoothing
- TrackNodeAnimationState: Named target states of a node
- TrackCoaster: Group of nodes that are saved and locked together
- RailPath: Path geometry built through nodes
"""

from coasternet.track.animation import TrackNodeAnimationState
from coasternet.track.coaster import TrackCoaster
from coasternet.track.connection import SmoothingMode, TrackConnection, TrackConnectionEnd
from coasternet.track.exceptions import (
    ConnectionNotFoundError,
    TrackError,
    TrackLockedError,
    TrackNodeRemovedError,
)
from coasternet.track.junction import JunctionLabel, JunctionOrder, sort_junctions
from coasternet.track.node import SpawnLocation, TrackNode
from coasternet.track.path import RailJunction, RailPath, RailPathPoint, RailPathPosition
from coasternet.track.state import TrackNodeReference, TrackNodeState

__all__ = [
    "TrackNode",
    "TrackConnection",
    "TrackConnectionEnd",
    "SmoothingMode",
    "TrackNodeAnimationState",
    "TrackCoaster",
    "TrackNodeState",
    "TrackNodeReference",
    "JunctionOrder",
    "JunctionLabel",
    "sort_junctions",
    "RailPath",
    "RailPathPoint",
    "RailPathPosition",
    "RailJunction",
    "SpawnLocation",
    "TrackError",
    "TrackLockedError",
    "TrackNodeRemovedError",
    "ConnectionNotFoundError",
]
