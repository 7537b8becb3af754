"""
Utilities for weno_hybrid: exceptions and logging.
"""

from .exceptions import (
    CellIndexError,
    ConfigurationError,
    DimensionMismatchError,
    EmptyStencilError,
    FieldNotFoundError,
    ShockSensorNotAvailableError,
    WENOError,
    validate_array_dimensions,
    validate_parameter_value,
)
from .weno_logging import configure_logging, get_logger

__all__ = [
    "CellIndexError",
    "ConfigurationError",
    "DimensionMismatchError",
    "EmptyStencilError",
    "FieldNotFoundError",
    "ShockSensorNotAvailableError",
    "WENOError",
    "configure_logging",
    "get_logger",
    "validate_array_dimensions",
    "validate_parameter_value",
]
