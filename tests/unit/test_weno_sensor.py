"""
Unit tests for WENOSensor.compute_weight and the shock-sensor field.

Tests cover:
- The identity-matrix two-stencil scenario
- Scalar and multi-component paths
- Shock-sensor bookkeeping (get-or-create, overwrite, read accessor)
- Boundary checks (configuration, shapes, cell index)
"""

import pytest
from pydantic import ValidationError

import numpy as np

from weno_hybrid import FieldRegistry, WENOSensor, WENOSensorConfig
from weno_hybrid.utils.exceptions import (
    CellIndexError,
    ConfigurationError,
    DimensionMismatchError,
    EmptyStencilError,
    ShockSensorNotAvailableError,
)

# =============================================================================
# Reference scenario
# =============================================================================


class TestIdentityScenario:
    """n=3, identity B, central [1,0,0], sectorial [0,1,0], eps=1e-6, p=2, dm=1000."""

    @pytest.mark.unit
    def test_hybrid_coefficients(self, identity_mesh, scenario_config):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, scenario_config)
        out = np.empty(3)

        sensor.compute_weight(out, 0, np.zeros(1), [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

        np.testing.assert_allclose(out, [0.999001, 0.000999, 0.0], atol=1e-6)
        np.testing.assert_allclose(out, [1000.0 / 1001.0, 1.0 / 1001.0, 0.0], rtol=1e-12)

    @pytest.mark.unit
    def test_shock_sensor_value(self, identity_mesh, scenario_config):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, scenario_config)

        sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

        assert sensor.get_shock_sensor()[0] == 1.0


# =============================================================================
# Scalar path
# =============================================================================


class TestScalarComputeWeight:
    """Scalar fields on a random mesh."""

    @pytest.mark.unit
    def test_identical_stencils_reproduce_vector(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=1e-6, p=4.0, dm=1000.0))
        c = rng.standard_normal(4)
        out = np.empty(4)

        sensor.compute_weight(out, 3, None, np.tile(c, (5, 1)))

        np.testing.assert_allclose(out, c, rtol=1e-14, atol=1e-15)

    @pytest.mark.unit
    def test_shock_sensor_is_max_indicator(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=1e-6, p=2.0))
        out = np.empty(4)

        for cell in range(len(B)):
            coeffs = rng.standard_normal((1 + cell % 4, 4))
            sensor.compute_weight(out, cell, None, coeffs)
            expected = max(c @ B[cell] @ c for c in coeffs)
            np.testing.assert_allclose(sensor.get_shock_sensor()[cell], expected, rtol=1e-13)

    @pytest.mark.unit
    def test_matches_explicit_formula(self, small_mesh, rng):
        B, fields = small_mesh
        eps, p, dm = 1e-6, 2.0, 50.0
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=eps, p=p, dm=dm))
        coeffs = rng.standard_normal((3, 4))
        out = np.empty(4)

        sensor.compute_weight(out, 1, None, coeffs)

        indicators = np.array([c @ B[1] @ c for c in coeffs])
        gammas = 1.0 / (eps + indicators) ** p
        gammas[0] *= dm
        expected = (gammas[:, None] * coeffs).sum(axis=0) / gammas.sum()
        np.testing.assert_allclose(out, expected, rtol=1e-12)

    @pytest.mark.unit
    def test_idempotent(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields)
        coeffs = rng.standard_normal((4, 4))
        first, second = np.empty(4), np.empty(4)

        sensor.compute_weight(first, 2, None, coeffs)
        sensor_first = sensor.get_shock_sensor()[2]
        sensor.compute_weight(second, 2, None, coeffs)

        np.testing.assert_array_equal(first, second)
        assert sensor.get_shock_sensor()[2] == sensor_first

    @pytest.mark.unit
    def test_output_overwritten_not_accumulated(self, identity_mesh, scenario_config):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, scenario_config)
        out = np.full(3, 123.0)

        sensor.compute_weight(out, 0, None, [[1.0, 2.0, 3.0]])

        np.testing.assert_allclose(out, [1.0, 2.0, 3.0], rtol=1e-14)

    @pytest.mark.unit
    def test_sensor_slot_overwritten(self, identity_mesh, scenario_config):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, scenario_config)
        out = np.empty(3)

        sensor.compute_weight(out, 0, None, [[3.0, 0.0, 0.0]])
        sensor.compute_weight(out, 0, None, [[1.0, 0.0, 0.0]])

        assert sensor.get_shock_sensor()[0] == 1.0

    @pytest.mark.unit
    def test_zero_indicators_stay_finite(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=1e-6, p=4.0))
        out = np.empty(3)

        sensor.compute_weight(out, 0, None, np.zeros((3, 3)))

        assert np.all(np.isfinite(out))
        assert sensor.get_shock_sensor()[0] == 0.0

    @pytest.mark.unit
    def test_other_cells_untouched(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields)

        sensor.compute_weight(np.empty(4), 5, None, rng.standard_normal((2, 4)))

        values = sensor.get_shock_sensor().values
        assert values[5] > 0.0
        assert np.count_nonzero(values) == 1


# =============================================================================
# Multi-component path
# =============================================================================


class TestComponentComputeWeight:
    """Vector fields: each component is weighted independently."""

    @pytest.mark.unit
    def test_components_weighted_independently(self, small_mesh, rng):
        B, fields = small_mesh
        config = WENOSensorConfig(epsilon=1e-6, p=2.0, dm=100.0)
        vector = WENOSensor(B, fields, config, n_components=3)
        coeffs = rng.standard_normal((4, 4, 3))
        out = np.empty((4, 3))

        vector.compute_weight(out, 6, np.zeros((8, 3)), coeffs)

        scalar_fields = FieldRegistry(n_cells=8)
        scalar = WENOSensor(B, scalar_fields, config)
        for comp in range(3):
            expected = np.empty(4)
            scalar.compute_weight(expected, 6, None, coeffs[:, :, comp])
            np.testing.assert_array_equal(out[:, comp], expected)
            assert vector.get_shock_sensor()[6, comp] == scalar.get_shock_sensor()[6]

    @pytest.mark.unit
    def test_shock_sensor_per_component_max(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, n_components=2)
        coeffs = rng.standard_normal((3, 4, 2))
        coeffs[1, :, 0] *= 10.0  # oscillatory in component 0 only

        sensor.compute_weight(np.empty((4, 2)), 0, None, coeffs)

        field = sensor.get_shock_sensor()
        assert field.values.shape == (8, 2)
        for comp in range(2):
            expected = max(coeffs[s, :, comp] @ B[0] @ coeffs[s, :, comp] for s in range(3))
            np.testing.assert_allclose(field[0, comp], expected, rtol=1e-13)

    @pytest.mark.unit
    def test_smooth_component_unaffected_by_jump_in_other(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=1e-6, p=2.0, dm=1.0), n_components=2)
        coeffs = np.zeros((2, 3, 2))
        coeffs[:, :, 0] = [0.5, 0.1, 0.0]  # identical stencils
        coeffs[0, :, 1] = [0.0, 0.0, 0.0]
        coeffs[1, :, 1] = [5.0, 0.0, 0.0]
        out = np.empty((3, 2))

        sensor.compute_weight(out, 0, None, coeffs)

        np.testing.assert_allclose(out[:, 0], [0.5, 0.1, 0.0], rtol=1e-14)
        assert out[0, 1] < 1e-3


# =============================================================================
# Bit-exact reference
# =============================================================================


def loop_reference(B, coeffs, eps, p, dm):
    """
    Plain-loop weighting of one scalar stencil set.

    Indicators as row sums then ascending accumulation, gammas summed in
    stencil order, weighted coefficients accumulated and divided once at the end.
    """
    n_stencils, n = coeffs.shape
    out = [0.0] * n
    gamma_sum = 0.0
    max_indicator = -np.inf
    for s in range(n_stencils):
        c = [float(x) for x in coeffs[s]]
        indicator = 0.0
        for i in range(n):
            row_sum = 0.0
            for j in range(n):
                row_sum += float(B[i, j]) * c[j]
            indicator += c[i] * row_sum
        max_indicator = max(max_indicator, indicator)

        gamma = (dm if s == 0 else 1.0) / (eps + indicator) ** p
        gamma_sum += gamma
        for k in range(n):
            out[k] += c[k] * gamma

    for k in range(n):
        out[k] /= gamma_sum
    return np.array(out), max_indicator


class TestDeferredDivision:
    """compute_weight reproduces the plain-loop reference bit for bit."""

    @pytest.mark.unit
    @pytest.mark.mathematical
    def test_scalar_kernel_bitwise(self, small_mesh, rng):
        B, fields = small_mesh
        eps, p, dm = 1e-6, 3.0, 50.0
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=eps, p=p, dm=dm))
        out = np.empty(4)

        for trial in range(40):
            cell = trial % len(B)
            coeffs = rng.standard_normal((2 + trial % 5, 4)) * rng.uniform(0.1, 10.0)
            sensor.compute_weight(out, cell, None, coeffs)

            expected, expected_sensor = loop_reference(B[cell], coeffs, eps, p, dm)
            np.testing.assert_array_equal(out, expected)
            assert sensor.get_shock_sensor()[cell] == expected_sensor

    @pytest.mark.unit
    @pytest.mark.mathematical
    def test_component_kernel_bitwise(self, small_mesh, rng):
        B, fields = small_mesh
        eps, p, dm = 1e-6, 3.0, 50.0
        sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=eps, p=p, dm=dm), n_components=3)
        out = np.empty((4, 3))

        for trial in range(40):
            cell = trial % len(B)
            coeffs = rng.standard_normal((2 + trial % 5, 4, 3)) * rng.uniform(0.1, 10.0)
            sensor.compute_weight(out, cell, None, coeffs)

            for comp in range(3):
                expected, expected_sensor = loop_reference(B[cell], coeffs[:, :, comp], eps, p, dm)
                np.testing.assert_array_equal(out[:, comp], expected)
                assert sensor.get_shock_sensor()[cell, comp] == expected_sensor


# =============================================================================
# Shock-sensor accessor
# =============================================================================


class TestShockSensorAccess:
    """get_shock_sensor() semantics."""

    @pytest.mark.unit
    def test_unavailable_before_computation(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)

        with pytest.raises(ShockSensorNotAvailableError, match="SHOCK_SENSOR_NOT_AVAILABLE"):
            sensor.get_shock_sensor()

    @pytest.mark.unit
    def test_unavailable_after_prepare_only(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        sensor.prepare_shock_sensor()

        with pytest.raises(ShockSensorNotAvailableError):
            sensor.get_shock_sensor()

    @pytest.mark.unit
    def test_handle_tracks_registry_field(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0, 0.0]])
        handle = sensor.get_shock_sensor()

        sensor.compute_weight(np.empty(3), 0, None, [[2.0, 0.0, 0.0]])

        assert handle.name == "WENOShockSensor"
        assert np.shares_memory(handle.values, fields.get("WENOShockSensor").values)
        assert handle[0] == 4.0

    @pytest.mark.unit
    def test_handle_is_not_writeable(self, small_mesh, rng):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, n_components=2)
        sensor.compute_weight(np.empty((4, 2)), 1, None, rng.standard_normal((2, 4, 2)))
        handle = sensor.get_shock_sensor()

        with pytest.raises(ValueError):
            handle.values[1, 0] = 0.0
        assert not handle.values.flags.writeable
        assert fields.get("WENOShockSensor").values.flags.writeable

    @pytest.mark.unit
    def test_custom_field_name(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(shock_sensor_name="rhoSensor"))
        sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0, 0.0]])

        assert "rhoSensor" in fields
        assert "WENOShockSensor" not in fields

    @pytest.mark.unit
    def test_readonly_view(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0, 0.0]])

        view = sensor.get_shock_sensor().readonly()
        with pytest.raises(ValueError):
            view[0] = 5.0

    @pytest.mark.unit
    def test_troubled_cells(self, small_mesh):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, WENOSensorConfig(theta=1.0))
        out = np.empty(4)
        for cell in range(8):
            scale = 10.0 if cell in (2, 7) else 1e-4
            sensor.compute_weight(out, cell, None, scale * np.ones((2, 4)))

        np.testing.assert_array_equal(np.flatnonzero(sensor.troubled_cells()), [2, 7])
        assert not sensor.troubled_cells(theta=1e12).any()


# =============================================================================
# Boundary checks
# =============================================================================


class TestValidation:
    """Configuration and shape contract violations."""

    @pytest.mark.unit
    def test_zero_epsilon_rejected_by_config(self):
        with pytest.raises(ValidationError):
            WENOSensorConfig(epsilon=0.0)

    @pytest.mark.unit
    def test_zero_epsilon_rejected_before_computation(self, identity_mesh):
        """A config that bypassed validation is still refused at construction."""
        B, fields = identity_mesh
        config = WENOSensorConfig.model_construct(epsilon=0.0, p=2.0, dm=1.0, theta=1.0)

        with pytest.raises(ConfigurationError, match="epsilon"):
            WENOSensor(B, fields, config)
        assert "WENOShockSensor" not in fields

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("name", "value"),
        [("p", 0.0), ("p", -1.0), ("dm", 0.5)],
    )
    def test_invalid_parameters_rejected(self, identity_mesh, name, value):
        B, fields = identity_mesh
        params = {"epsilon": 1e-6, "p": 2.0, "dm": 10.0, "theta": 1.0, name: value}
        with pytest.raises(ConfigurationError, match=name):
            WENOSensor(B, fields, WENOSensorConfig.model_construct(**params))

    @pytest.mark.unit
    def test_empty_stencil_list(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(EmptyStencilError):
            sensor.compute_weight(np.empty(3), 0, None, [])

    @pytest.mark.unit
    def test_coefficient_length_mismatch(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(DimensionMismatchError, match="stencil_coefficients"):
            sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0]])

    @pytest.mark.unit
    def test_ragged_stencils(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(DimensionMismatchError):
            sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0, 0.0], [1.0, 0.0]])

    @pytest.mark.unit
    def test_output_shape_mismatch(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(DimensionMismatchError, match="out_coefficients"):
            sensor.compute_weight(np.empty(4), 0, None, [[1.0, 0.0, 0.0]])

    @pytest.mark.unit
    def test_output_dtype(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(TypeError):
            sensor.compute_weight(np.empty(3, dtype=np.float32), 0, None, [[1.0, 0.0, 0.0]])

    @pytest.mark.unit
    @pytest.mark.parametrize("cell_index", [-1, 1, 10])
    def test_cell_index_out_of_range(self, identity_mesh, cell_index):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(CellIndexError):
            sensor.compute_weight(np.empty(3), cell_index, None, [[1.0, 0.0, 0.0]])

    @pytest.mark.unit
    def test_field_sample_component_mismatch(self, small_mesh):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, n_components=3)
        with pytest.raises(DimensionMismatchError, match="field_sample"):
            sensor.compute_weight(np.empty((4, 3)), 0, np.zeros((8, 2)), np.ones((2, 4, 3)))

    @pytest.mark.unit
    def test_non_square_oscillation_matrices(self):
        with pytest.raises(DimensionMismatchError, match="oscillation_matrices"):
            WENOSensor(np.ones((2, 3, 4)), FieldRegistry(n_cells=2))

    @pytest.mark.unit
    def test_registry_mesh_mismatch(self, small_mesh):
        B, _ = small_mesh
        with pytest.raises(DimensionMismatchError, match="field registry"):
            WENOSensor(B, FieldRegistry(n_cells=3))

    @pytest.mark.unit
    def test_failed_call_leaves_sensor_unwritten(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        with pytest.raises(DimensionMismatchError):
            sensor.compute_weight(np.empty(3), 0, None, [[1.0, 0.0]])
        with pytest.raises(ShockSensorNotAvailableError):
            sensor.get_shock_sensor()

    @pytest.mark.unit
    def test_read_only_output_rejected(self, identity_mesh):
        B, fields = identity_mesh
        sensor = WENOSensor(B, fields)
        out = np.zeros(3)
        out.flags.writeable = False

        with pytest.raises(ValueError, match="read-only"):
            sensor.compute_weight(out, 0, None, [[1.0, 0.0, 0.0]])
        assert "WENOShockSensor" not in fields

    @pytest.mark.unit
    @pytest.mark.parametrize("n_components", [np.int64(3), np.int32(3), 3])
    def test_numpy_integer_component_count(self, small_mesh, rng, n_components):
        B, fields = small_mesh
        sensor = WENOSensor(B, fields, n_components=n_components)
        out = np.empty((4, 3))

        sensor.compute_weight(out, 0, np.zeros((8, 3)), rng.standard_normal((2, 4, 3)))

        assert type(sensor.n_components) is int
        assert sensor.get_shock_sensor().values.shape == (8, 3)

    @pytest.mark.unit
    @pytest.mark.parametrize("n_components", [0, -2, 2.0])
    def test_invalid_component_count(self, small_mesh, n_components):
        B, fields = small_mesh
        with pytest.raises(ConfigurationError, match="n_components"):
            WENOSensor(B, fields, n_components=n_components)
