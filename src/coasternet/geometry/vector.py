"""
Vector math - Small 3D helpers shared by the track graph.

Provides:
- Vector construction and normalization with explicit degenerate handling
- Angle difference between directions
- Look-at yaw/pitch (block-world convention: yaw 0 faces +Z, 90 faces -X)
- Integer block coordinates
"""

from dataclasses import dataclass
from typing import Iterable, Tuple
import math
import numpy as np


def vector(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Create a float64 3-vector."""
    return np.array([x, y, z], dtype=float)


# Fallback helpers for projecting an up vector that is parallel to the direction
_UP_HELPER = vector(1.0, 1.0, 1.0)
_UP_HELPER_DIAGONAL = vector(1.0, 0.0, 0.0)


def as_vector(values: Iterable[float]) -> np.ndarray:
    """Copy any 3-element sequence into a new float64 3-vector.

    Raises:
        ValueError: If the input does not hold exactly 3 finite values
    """
    v = np.array(list(values), dtype=float)
    if v.shape != (3,):
        raise ValueError("vector must contain exactly 3 coordinates")
    if not np.all(np.isfinite(v)):
        raise ValueError("vector coordinates must be finite numbers")
    return v


def normalization_factor(v: np.ndarray) -> float:
    """Get the factor that scales a vector to unit length.

    Args:
        v: Vector to inspect

    Returns:
        1 / |v|, or infinity when the vector has zero length
    """
    length_sq = float(np.dot(v, v))
    if length_sq <= 0.0:
        return math.inf
    n = 1.0 / math.sqrt(length_sq)
    return n if math.isfinite(n) else math.inf


def normalize(v: np.ndarray, fallback: np.ndarray | None = None) -> np.ndarray:
    """Return a unit-length copy of a vector.

    Args:
        v: Vector to normalize
        fallback: Returned (copied) when v has zero length

    Returns:
        Normalized vector, or the fallback (zero vector if None)
    """
    n = normalization_factor(v)
    if math.isinf(n):
        return vector() if fallback is None else np.array(fallback, dtype=float)
    return v * n


def angle_difference(a: np.ndarray, b: np.ndarray) -> float:
    """Get the angle between two direction vectors.

    Returns:
        Angle in degrees, in [0, 180]
    """
    denom = math.sqrt(float(np.dot(a, a)) * float(np.dot(b, b)))
    if denom <= 0.0:
        return 0.0
    cos_theta = float(np.clip(np.dot(a, b) / denom, -1.0, 1.0))
    return math.degrees(math.acos(cos_theta))


def look_at_yaw(dx: float, dz: float) -> float:
    """Get the horizontal bearing of a direction.

    Args:
        dx: X component
        dz: Z component

    Returns:
        Yaw in degrees, 0 facing +Z and 90 facing -X
    """
    return -math.degrees(math.atan2(dx, dz))


def look_at_pitch(dx: float, dy: float, dz: float) -> float:
    """Get the vertical angle of a direction (negative looks up)."""
    return -math.degrees(math.atan2(dy, math.hypot(dx, dz)))


def wrap_degrees_positive(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    while angle < 0.0:
        angle += 360.0
    while angle >= 360.0:
        angle -= 360.0
    return angle


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between two vectors."""
    return a + (b - a) * t


def ortho_normalize(up: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """Project an up vector onto the plane orthogonal to a direction.

    Uses direction x up x direction. When up is zero or parallel to the
    direction, the constant (1, 1, 1) helper is projected instead
    (and (1, 0, 0) when the direction itself lies along that diagonal).

    Args:
        up: Desired up vector
        direction: Unit forward direction

    Returns:
        Unit vector orthogonal to direction
    """
    for candidate in (up, _UP_HELPER, _UP_HELPER_DIAGONAL):
        result = np.cross(np.cross(direction, candidate), direction)
        n = normalization_factor(result)
        if not math.isinf(n):
            return result * n
    return vector(0.0, 1.0, 0.0)


@dataclass(frozen=True)
class IntVector3:
    """Integer block coordinate."""
    x: int
    y: int
    z: int

    @classmethod
    def from_position(cls, position: Iterable[float]) -> "IntVector3":
        """Floor each coordinate of a world position."""
        px, py, pz = (float(v) for v in position)
        return cls(math.floor(px), math.floor(py), math.floor(pz))

    def as_vector(self) -> np.ndarray:
        """Block corner as a float vector."""
        return vector(self.x, self.y, self.z)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)
