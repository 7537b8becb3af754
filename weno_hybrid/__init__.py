from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("weno_hybrid")  # Matches the name in pyproject.toml
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0-dev"

from .config import WENOSensorConfig, load_weno_config, save_weno_config
from .fields import CellField, FieldRegistry
from .reconstruction import (
    ReconstructionResult,
    WENOSensor,
    blend_coefficients,
    component_smoothness_indicators,
    nonlinear_gammas,
    normalized_weights,
    smoothness_indicator,
)
from .utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmptyStencilError,
    ShockSensorNotAvailableError,
    WENOError,
)
from .utils.weno_logging import configure_logging, get_logger

__all__ = [
    "CellField",
    "ConfigurationError",
    "DimensionMismatchError",
    "EmptyStencilError",
    "FieldRegistry",
    "ReconstructionResult",
    "ShockSensorNotAvailableError",
    "WENOError",
    "WENOSensor",
    "WENOSensorConfig",
    "blend_coefficients",
    "component_smoothness_indicators",
    "configure_logging",
    "get_logger",
    "load_weno_config",
    "nonlinear_gammas",
    "normalized_weights",
    "save_weno_config",
    "smoothness_indicator",
]
