"""
Blending of stencil coefficients into hybrid coefficients.

    hybrid[k] = (sum_s gamma_s * coeffs_s[k]) / gamma_sum

The weighted sum is accumulated in ascending stencil index, then ascending
coefficient index, and each entry is divided exactly once at the end. Dividing
every term by ``gamma_sum`` instead is not bit-identical.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numba import njit

from weno_hybrid.utils.exceptions import DimensionMismatchError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@njit(cache=True, nogil=True)
def accumulate_stencil(out, coeffs_s, gamma):
    """JIT kernel: ``out[k] += coeffs_s[k] * gamma`` for a scalar stencil."""
    for k in range(coeffs_s.shape[0]):
        out[k] += coeffs_s[k] * gamma


@njit(cache=True, nogil=True)
def accumulate_stencil_component(out, coeffs_s, gamma, comp):
    """JIT kernel: component ``comp`` of ``out[k] += coeffs_s[k] * gamma``."""
    for k in range(coeffs_s.shape[0]):
        out[k, comp] += coeffs_s[k, comp] * gamma


@njit(cache=True, nogil=True)
def _blend_scalar(coeffs, gammas, gamma_sum, out):
    for k in range(out.shape[0]):
        out[k] = 0.0
    for s in range(coeffs.shape[0]):
        accumulate_stencil(out, coeffs[s], gammas[s])
    for k in range(out.shape[0]):
        out[k] /= gamma_sum


@njit(cache=True, nogil=True)
def _blend_components(coeffs, gammas, gamma_sum, out):
    for comp in range(out.shape[1]):
        for k in range(out.shape[0]):
            out[k, comp] = 0.0
        for s in range(coeffs.shape[0]):
            accumulate_stencil_component(out, coeffs[s], gammas[s, comp], comp)
        for k in range(out.shape[0]):
            out[k, comp] /= gamma_sum[comp]


def blend_coefficients(
    coeffs: ArrayLike,
    gammas: ArrayLike,
    gamma_sum: float | ArrayLike,
    out: NDArray[np.float64] | None = None,
) -> NDArray[np.float64]:
    """
    Weighted combination of stencil coefficient vectors.

    Args:
        coeffs: Stencil coefficients, shape (S, n) or (S, n, n_components)
        gammas: Unnormalized weights, shape (S,) or (S, n_components)
        gamma_sum: Sum of gammas, a float or shape (n_components,)
        out: Optional output buffer of shape coeffs.shape[1:], overwritten

    Returns:
        Hybrid coefficients, shape (n,) or (n, n_components)
    """
    coeffs = np.asarray(coeffs, dtype=np.float64)
    gammas = np.asarray(gammas, dtype=np.float64)

    if coeffs.ndim not in (2, 3):
        raise DimensionMismatchError(
            array_name="stencil coefficients",
            provided_shape=coeffs.shape,
            expected_shape=("S", "n"),
        )
    if gammas.shape != coeffs.shape[:1] + coeffs.shape[2:]:
        raise DimensionMismatchError(
            array_name="gammas",
            provided_shape=gammas.shape,
            expected_shape=coeffs.shape[:1] + coeffs.shape[2:],
        )

    if out is None:
        out = np.empty(coeffs.shape[1:], dtype=np.float64)
    elif out.shape != coeffs.shape[1:]:
        raise DimensionMismatchError(
            array_name="out",
            provided_shape=out.shape,
            expected_shape=coeffs.shape[1:],
        )

    if coeffs.ndim == 2:
        _blend_scalar(coeffs, gammas, float(gamma_sum), out)
    else:
        gamma_sum = np.asarray(gamma_sum, dtype=np.float64).reshape(coeffs.shape[2])
        _blend_components(coeffs, gammas, gamma_sum, out)
    return out
