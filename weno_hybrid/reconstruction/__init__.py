"""
WENO stencil weighting for unstructured finite-volume reconstruction.

Pipeline per cell:
    smoothness  - indicator IS_s = c_s^T B c_s of every stencil
    weights     - gammas favouring the central stencil and smooth stencils
    blending    - hybrid = (sum_s gamma_s c_s) / sum_s gamma_s
    sensor      - WENOSensor: fused per-cell pass plus the shock-sensor field

Usage:
    >>> from weno_hybrid.reconstruction import WENOSensor
    >>> sensor = WENOSensor(oscillation_matrices, fields, config)
    >>> result = sensor.reconstruct(stencil_coefficients)
"""

from weno_hybrid.reconstruction.blending import blend_coefficients
from weno_hybrid.reconstruction.sensor import ReconstructionResult, WENOSensor
from weno_hybrid.reconstruction.smoothness import component_smoothness_indicators, smoothness_indicator
from weno_hybrid.reconstruction.weights import nonlinear_gammas, normalized_weights

__all__ = [
    "ReconstructionResult",
    "WENOSensor",
    "blend_coefficients",
    "component_smoothness_indicators",
    "nonlinear_gammas",
    "normalized_weights",
    "smoothness_indicator",
]
