"""
Geometry module - Vector math primitives used by the track graph.

This module contains:
- Vector helpers: normalization, angle difference, look-at yaw/pitch
- IntVector3: Integer block coordinate
"""

from coasternet.geometry.vector import (
    IntVector3,
    angle_difference,
    as_vector,
    lerp,
    look_at_pitch,
    look_at_yaw,
    normalization_factor,
    normalize,
    ortho_normalize,
    vector,
    wrap_degrees_positive,
)

__all__ = [
    "IntVector3",
    "angle_difference",
    "as_vector",
    "lerp",
    "look_at_pitch",
    "look_at_yaw",
    "normalization_factor",
    "normalize",
    "ortho_normalize",
    "vector",
    "wrap_degrees_positive",
]
