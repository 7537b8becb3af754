"""
Nonlinear WENO weights.

Each stencil ``s`` with smoothness indicator ``IS_s`` receives the
unnormalized weight

    gamma_0 = dm / (epsilon + IS_0)^p      (central stencil)
    gamma_s =  1 / (epsilon + IS_s)^p      (sectorial stencils, s >= 1)

and the normalized weight is ``gamma_s / sum_s gamma_s``. The blend never
forms the normalized weights: it divides the accumulated sum once by the
gamma sum (see ``blending``). ``normalized_weights`` exists for diagnostics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numba import njit

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@njit(cache=True, nogil=True)
def stencil_gamma(indicator, stencil_index, epsilon, p, dm):
    """JIT kernel: unnormalized weight of one stencil."""
    if stencil_index == 0:
        return dm / (epsilon + indicator) ** p
    return 1.0 / (epsilon + indicator) ** p


@njit(cache=True, nogil=True)
def _gammas_kernel(indicators, epsilon, p, dm, gammas):
    gamma_sum = 0.0
    for s in range(indicators.shape[0]):
        gamma = stencil_gamma(indicators[s], s, epsilon, p, dm)
        gammas[s] = gamma
        gamma_sum += gamma
    return gamma_sum


def nonlinear_gammas(
    indicators: ArrayLike,
    epsilon: float,
    p: float,
    dm: float,
) -> tuple[NDArray[np.float64], float]:
    """
    Unnormalized weights of a cell's stencils and their sum.

    Args:
        indicators: Smoothness indicators in stencil order; index 0 is the central stencil
        epsilon: Regularization (> 0)
        p: Sensitivity exponent (> 0)
        dm: Central-stencil amplification (>= 1)

    Returns:
        (gammas, gamma_sum), the sum accumulated in ascending stencil order
    """
    indicators = np.ascontiguousarray(indicators, dtype=np.float64)
    if indicators.ndim != 1 or indicators.shape[0] == 0:
        raise ValueError(f"Expected a non-empty 1D array of indicators, got shape {indicators.shape}")
    gammas = np.empty_like(indicators)
    gamma_sum = _gammas_kernel(indicators, float(epsilon), float(p), float(dm), gammas)
    return gammas, float(gamma_sum)


def normalized_weights(indicators: ArrayLike, epsilon: float, p: float, dm: float) -> NDArray[np.float64]:
    """Normalized weights ``gamma_s / sum(gamma)``; they sum to one."""
    gammas, gamma_sum = nonlinear_gammas(indicators, epsilon, p, dm)
    return gammas / gamma_sum
