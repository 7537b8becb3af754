"""
Fused per-cell WENO weighting kernels.

One pass over the stencils of a cell computes each indicator, turns it into a
gamma, accumulates the weighted coefficients and tracks the largest indicator.
The single division by the gamma sum follows the loop. The scalar and
multi-component layouts have separate kernels; the caller picks one when it is
set up so the per-cell loop never branches on the field type.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from weno_hybrid.reconstruction.blending import accumulate_stencil, accumulate_stencil_component
from weno_hybrid.reconstruction.smoothness import quadratic_form, quadratic_form_component
from weno_hybrid.reconstruction.weights import stencil_gamma


@njit(cache=True, nogil=True)
def weigh_scalar_cell(out, B, coeffs, epsilon, p, dm):
    """
    Hybrid coefficients of a scalar cell.

    Args:
        out: Output, shape (n,), overwritten
        B: Oscillation matrix, shape (n, n)
        coeffs: Stencil coefficients, shape (S, n); stencil 0 is central
        epsilon, p, dm: Weighting parameters

    Returns:
        Largest smoothness indicator over the stencils
    """
    n = out.shape[0]
    for k in range(n):
        out[k] = 0.0

    gamma_sum = 0.0
    max_indicator = -np.inf
    for s in range(coeffs.shape[0]):
        indicator = quadratic_form(B, coeffs[s])
        if indicator > max_indicator:
            max_indicator = indicator

        gamma = stencil_gamma(indicator, s, epsilon, p, dm)
        gamma_sum += gamma
        accumulate_stencil(out, coeffs[s], gamma)

    for k in range(n):
        out[k] /= gamma_sum

    return max_indicator


@njit(cache=True, nogil=True)
def weigh_component_cell(out, B, coeffs, epsilon, p, dm, sensor_row):
    """
    Hybrid coefficients of a multi-component cell.

    Every component gets its own indicators, gammas and blend; a field can be
    smooth in one component and discontinuous in another.

    Args:
        out: Output, shape (n, n_components), overwritten
        B: Oscillation matrix, shape (n, n)
        coeffs: Stencil coefficients, shape (S, n, n_components)
        epsilon, p, dm: Weighting parameters
        sensor_row: Shock-sensor slot of the cell, shape (n_components,);
            receives the largest indicator per component
    """
    n = out.shape[0]
    for comp in range(out.shape[1]):
        for k in range(n):
            out[k, comp] = 0.0

        gamma_sum = 0.0
        max_indicator = -np.inf
        for s in range(coeffs.shape[0]):
            indicator = quadratic_form_component(B, coeffs[s], comp)
            if indicator > max_indicator:
                max_indicator = indicator

            gamma = stencil_gamma(indicator, s, epsilon, p, dm)
            gamma_sum += gamma
            accumulate_stencil_component(out, coeffs[s], gamma, comp)

        for k in range(n):
            out[k, comp] /= gamma_sum

        sensor_row[comp] = max_indicator
