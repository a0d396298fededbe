"""Basic tests for the CoasterNet geometry module."""

import math

import pytest
import numpy as np

from coasternet.geometry.vector import (
    IntVector3,
    angle_difference,
    as_vector,
    look_at_pitch,
    look_at_yaw,
    normalization_factor,
    normalize,
    ortho_normalize,
    vector,
    wrap_degrees_positive,
)


class TestVectorMath:
    """Test vector helpers."""

    def test_normalization_factor(self):
        """Test normalization factor of regular and zero vectors."""
        assert abs(normalization_factor(vector(3.0, 4.0, 0.0)) - 0.2) < 1e-12
        assert math.isinf(normalization_factor(vector()))

    def test_normalize_fallback(self):
        """Test zero vectors normalize to the fallback."""
        result = normalize(vector(), fallback=vector(0.0, 0.0, 1.0))
        assert np.allclose(result, [0.0, 0.0, 1.0])
        assert np.allclose(normalize(vector(0.0, 2.0, 0.0)), [0.0, 1.0, 0.0])

    def test_as_vector_validation(self):
        """Test invalid vectors are rejected."""
        with pytest.raises(ValueError):
            as_vector((1.0, 2.0))
        with pytest.raises(ValueError):
            as_vector((1.0, float("nan"), 0.0))

    def test_angle_difference(self):
        """Test angle between directions in degrees."""
        assert abs(angle_difference(vector(1, 0, 0), vector(0, 1, 0)) - 90.0) < 1e-9
        assert abs(angle_difference(vector(1, 0, 0), vector(-2, 0, 0)) - 180.0) < 1e-9
        assert angle_difference(vector(0, 0, 1), vector(0, 0, 5)) < 1e-6

    def test_look_at_yaw(self):
        """Test yaw convention: 0 faces +Z, 90 faces -X."""
        assert abs(look_at_yaw(0.0, 1.0)) < 1e-12
        assert abs(look_at_yaw(-1.0, 0.0) - 90.0) < 1e-12
        assert abs(look_at_yaw(1.0, 0.0) + 90.0) < 1e-12

    def test_look_at_pitch(self):
        """Test looking up gives a negative pitch."""
        assert look_at_pitch(0.0, 1.0, 1.0) < 0.0
        assert abs(look_at_pitch(1.0, 0.0, 0.0)) < 1e-12

    def test_wrap_degrees(self):
        """Test wrapping into [0, 360)."""
        assert wrap_degrees_positive(-90.0) == 270.0
        assert wrap_degrees_positive(360.0) == 0.0
        assert wrap_degrees_positive(45.0) == 45.0


class TestOrthoNormalize:
    """Test up vector projection."""

    def test_orthogonal_up_unchanged(self):
        """Test an already orthogonal up vector is kept."""
        up = ortho_normalize(vector(0, 1, 0), vector(1, 0, 0))
        assert np.allclose(up, [0.0, 1.0, 0.0])

    def test_tilted_up_projected(self):
        """Test a tilted up vector is made orthogonal."""
        direction = vector(1, 0, 0)
        up = ortho_normalize(vector(1, 1, 0), direction)
        assert abs(np.dot(up, direction)) < 1e-12
        assert abs(np.linalg.norm(up) - 1.0) < 1e-12
        assert np.allclose(up, [0.0, 1.0, 0.0])

    @pytest.mark.parametrize("up", [(0, 0, 0), (2, 0, 0), (-1, 0, 0)])
    def test_degenerate_up_fallback(self, up):
        """Test zero or parallel up vectors still give an orthogonal unit vector."""
        direction = vector(1, 0, 0)
        result = ortho_normalize(vector(*up), direction)
        assert abs(np.dot(result, direction)) < 1e-12
        assert abs(np.linalg.norm(result) - 1.0) < 1e-12

    def test_diagonal_direction_fallback(self):
        """Test the fallback when the direction lies along (1, 1, 1)."""
        direction = normalize(vector(1, 1, 1))
        result = ortho_normalize(direction, direction)
        assert abs(np.dot(result, direction)) < 1e-12
        assert abs(np.linalg.norm(result) - 1.0) < 1e-12


class TestIntVector3:
    """Test block coordinates."""

    def test_from_position_floors(self):
        """Test each coordinate is floored."""
        assert IntVector3.from_position((1.5, -0.5, 2.0)) == IntVector3(1, -1, 2)

    def test_as_vector(self):
        """Test conversion to a float vector."""
        assert np.allclose(IntVector3(1, 2, 3).as_vector(), [1.0, 2.0, 3.0])
