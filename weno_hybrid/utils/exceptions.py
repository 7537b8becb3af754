"""
Exception classes for weno_hybrid with helpful error messages and user guidance.

Every failure the reconstruction core can report is a precondition failure:
either the configuration is unusable or the inputs handed over by the
stencil provider have inconsistent shapes. Both are detected at the boundary,
before any per-cell computation starts.
"""

from __future__ import annotations

import numbers
from typing import Any

import numpy as np


class WENOError(Exception):
    """
    Base exception for WENO reconstruction errors with helpful context and suggestions.

    This exception class provides structured error information including:
    - Clear error description
    - Component context information
    - Suggested actions for resolution
    - Optional diagnostic data
    """

    def __init__(
        self,
        message: str,
        solver_name: str | None = None,
        suggested_action: str | None = None,
        error_code: str | None = None,
        diagnostic_data: dict[str, Any] | None = None,
    ):
        self.message = message
        self.solver_name = solver_name or "WENOSensor"
        self.suggested_action = suggested_action
        self.error_code = error_code
        self.diagnostic_data = diagnostic_data or {}

        full_message = f"[{self.solver_name}] {message}"

        if self.suggested_action:
            full_message += f"\nSuggestion: {self.suggested_action}"

        if self.error_code:
            full_message += f"\nError Code: {self.error_code}"

        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class ConfigurationError(WENOError):
    """Exception raised when the weighting configuration is invalid."""

    def __init__(
        self,
        parameter_name: str,
        provided_value: Any,
        expected_type: type | None = None,
        valid_range: tuple | None = None,
        solver_name: str | None = None,
        exclusive_minimum: bool = False,
    ):
        diagnostic_data = {
            "parameter": parameter_name,
            "provided_value": str(provided_value),
            "provided_type": type(provided_value).__name__,
        }

        if expected_type:
            diagnostic_data["expected_type"] = expected_type.__name__

        if valid_range:
            left = "(" if exclusive_minimum else "["
            diagnostic_data["valid_range"] = f"{left}{valid_range[0]}, {valid_range[1]}]"

        suggested_action = _generate_configuration_suggestions(
            parameter_name, provided_value, expected_type, valid_range, exclusive_minimum
        )

        message = f"Invalid configuration for parameter '{parameter_name}'"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="INVALID_CONFIGURATION",
            diagnostic_data=diagnostic_data,
        )


class ShockSensorNotAvailableError(WENOError):
    """Exception raised when the shock sensor is read before any weights were computed."""

    def __init__(
        self,
        operation_attempted: str,
        solver_name: str | None = None,
        field_name: str | None = None,
    ):
        diagnostic_data = {
            "attempted_operation": operation_attempted,
            "sensor_state": "not_computed",
        }
        if field_name:
            diagnostic_data["field_name"] = field_name

        suggested_action = f"Call compute_weight() or reconstruct() before attempting '{operation_attempted}'"

        message = f"Cannot perform '{operation_attempted}' - no weights have been computed yet"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="SHOCK_SENSOR_NOT_AVAILABLE",
            diagnostic_data=diagnostic_data,
        )


class DimensionMismatchError(WENOError):
    """Exception raised when array dimensions don't match expected values."""

    def __init__(
        self,
        array_name: str,
        provided_shape: tuple,
        expected_shape: tuple,
        solver_name: str | None = None,
        context: str | None = None,
    ):
        diagnostic_data = {
            "array_name": array_name,
            "provided_shape": str(provided_shape),
            "expected_shape": str(expected_shape),
            "dimension_mismatch": _describe_dimension_mismatch(provided_shape, expected_shape),
        }

        if context:
            diagnostic_data["context"] = context

        suggested_action = _generate_dimension_suggestions(array_name, provided_shape, expected_shape)

        message = f"Dimension mismatch for {array_name}"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="DIMENSION_MISMATCH",
            diagnostic_data=diagnostic_data,
        )


class EmptyStencilError(DimensionMismatchError):
    """Exception raised when a cell is handed an empty stencil list."""

    def __init__(self, cell_index: int, solver_name: str | None = None):
        super().__init__(
            array_name="stencil_coefficients",
            provided_shape=(0,),
            expected_shape=("S>=1",),
            solver_name=solver_name,
            context=f"cell {cell_index} has no stencils; stencil 0 must be the central stencil",
        )


class CellIndexError(WENOError, IndexError):
    """Exception raised when a cell index lies outside the mesh."""

    def __init__(self, cell_index: int, n_cells: int, solver_name: str | None = None):
        super().__init__(
            message=f"Cell index {cell_index} out of range",
            solver_name=solver_name,
            suggested_action=f"Use a cell index in [0, {n_cells})",
            error_code="CELL_INDEX_OUT_OF_RANGE",
            diagnostic_data={"cell_index": cell_index, "n_cells": n_cells},
        )


class FieldNotFoundError(WENOError, KeyError):
    """Exception raised when a named field is requested from a registry that does not hold it."""

    def __init__(self, field_name: str, available: list[str] | None = None):
        super().__init__(
            message=f"Field '{field_name}' is not registered",
            solver_name="FieldRegistry",
            suggested_action="Create the field with get_or_create() first",
            error_code="FIELD_NOT_FOUND",
            diagnostic_data={"field_name": field_name, "available_fields": available or []},
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return Exception.__str__(self)


# Helper functions for generating specific suggestions


def _generate_configuration_suggestions(
    parameter_name: str,
    provided_value: Any,
    expected_type: type | None,
    valid_range: tuple | None,
    exclusive_minimum: bool = False,
) -> str:
    """Generate specific suggestions for configuration errors."""

    suggestions = []

    if expected_type and not isinstance(provided_value, expected_type):
        suggestions.append(f"Convert {parameter_name} to {expected_type.__name__}")

    if valid_range and isinstance(provided_value, numbers.Real):
        if exclusive_minimum and provided_value <= valid_range[0]:
            suggestions.append(f"Increase {parameter_name} above {valid_range[0]}")
        elif provided_value < valid_range[0]:
            suggestions.append(f"Increase {parameter_name} to at least {valid_range[0]}")
        elif provided_value > valid_range[1]:
            suggestions.append(f"Decrease {parameter_name} to at most {valid_range[1]}")

    if parameter_name == "epsilon" and isinstance(provided_value, (int, float)) and provided_value <= 0:
        suggestions.append("A positive epsilon keeps the gamma sum away from zero (typical values 1e-40 to 1e-6)")

    return " | ".join(suggestions) if suggestions else f"Check {parameter_name} value and try again"


def _describe_dimension_mismatch(provided_shape: tuple, expected_shape: tuple) -> str:
    """Describe the specific nature of dimension mismatch."""

    if len(provided_shape) != len(expected_shape):
        return f"Wrong number of dimensions: got {len(provided_shape)}, expected {len(expected_shape)}"

    mismatches = []
    for i, (provided, expected) in enumerate(zip(provided_shape, expected_shape, strict=False)):
        if provided != expected:
            mismatches.append(f"axis {i}: got {provided}, expected {expected}")

    return " | ".join(mismatches)


def _generate_dimension_suggestions(array_name: str, provided_shape: tuple, expected_shape: tuple) -> str:
    """Generate specific suggestions for dimension errors."""

    if "stencil" in array_name.lower():
        return "Check the stencil provider: every stencil of a cell needs as many coefficients as B has rows"

    if len(provided_shape) < len(expected_shape):
        return f"Add missing dimensions to {array_name}: reshape or expand to {expected_shape}"
    elif len(provided_shape) > len(expected_shape):
        return f"Remove extra dimensions from {array_name}: reshape to {expected_shape}"
    else:
        return f"Reshape {array_name} to {expected_shape}"


# Convenience functions for common error scenarios


def validate_array_dimensions(
    array: np.ndarray, expected_shape: tuple, array_name: str, solver_name: str | None = None
):
    """Validate that array has expected dimensions."""
    if array.shape != expected_shape:
        raise DimensionMismatchError(
            array_name=array_name,
            provided_shape=array.shape,
            expected_shape=expected_shape,
            solver_name=solver_name,
        )


def validate_parameter_value(
    value: Any,
    parameter_name: str,
    expected_type: type | None = None,
    valid_range: tuple | None = None,
    solver_name: str | None = None,
    exclusive_minimum: bool = False,
):
    """Validate parameter value and type."""
    if expected_type and not isinstance(value, expected_type):
        raise ConfigurationError(
            parameter_name=parameter_name,
            provided_value=value,
            expected_type=expected_type,
            solver_name=solver_name,
        )

    if valid_range and isinstance(value, numbers.Real):
        low, high = valid_range
        below = value <= low if exclusive_minimum else value < low
        if below or value > high or np.isnan(value):
            raise ConfigurationError(
                parameter_name=parameter_name,
                provided_value=value,
                valid_range=valid_range,
                solver_name=solver_name,
                exclusive_minimum=exclusive_minimum,
            )
