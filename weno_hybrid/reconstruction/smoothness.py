"""
Smoothness indicators of WENO stencils.

The smoothness indicator of a stencil with polynomial coefficients ``c`` is
the quadratic form

    IS = c^T B c = sum_p c[p] * (sum_q B[p, q] * c[q])

where ``B`` is the cell's oscillation matrix. ``B`` depends only on the mesh,
so the same matrix serves every field reconstructed on it.

The row sums ``sum_q B[p, q] c[q]`` are formed first and accumulated in
ascending ``p``. Both the scalar path and the per-component path use this
order, so a one-component field gives bit-identical indicators on either.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numba import njit

from weno_hybrid.utils.exceptions import DimensionMismatchError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@njit(cache=True, nogil=True)
def quadratic_form(B, c):
    """JIT kernel: ``c^T (B c)`` for a scalar coefficient vector."""
    n = c.shape[0]
    result = 0.0
    for p in range(n):
        row_sum = 0.0
        for q in range(n):
            row_sum += B[p, q] * c[q]
        result += c[p] * row_sum
    return result


@njit(cache=True, nogil=True)
def quadratic_form_component(B, coeffs, comp):
    """JIT kernel: quadratic form of one component slice of ``coeffs`` (shape ``(n, n_components)``)."""
    n = coeffs.shape[0]
    result = 0.0
    for p in range(n):
        row_sum = 0.0
        for q in range(n):
            row_sum += B[p, q] * coeffs[q, comp]
        result += coeffs[p, comp] * row_sum
    return result


def _check_square(B: NDArray, n: int, name: str = "stencil coefficients") -> None:
    if B.ndim != 2 or B.shape[0] != B.shape[1]:
        raise DimensionMismatchError(
            array_name="oscillation_matrix",
            provided_shape=B.shape,
            expected_shape=(n, n),
            context="the oscillation matrix must be square",
        )
    if B.shape[0] != n:
        raise DimensionMismatchError(
            array_name=name,
            provided_shape=(n,),
            expected_shape=(B.shape[0],),
            context="coefficient vector length must equal the oscillation matrix dimension",
        )


def smoothness_indicator(B: ArrayLike, c: ArrayLike) -> float:
    """
    Smoothness indicator of one scalar stencil.

    Args:
        B: Oscillation matrix, shape (n, n)
        c: Stencil coefficient vector, shape (n,)

    Returns:
        The quadratic form ``c^T B c``. Values at or near zero are legal for
        (nearly) constant data.
    """
    B = np.asarray(B, dtype=np.float64)
    c = np.asarray(c, dtype=np.float64)
    if c.ndim != 1:
        raise DimensionMismatchError(
            array_name="stencil coefficients",
            provided_shape=c.shape,
            expected_shape=(B.shape[0],),
            context="scalar indicators take a flat coefficient vector",
        )
    _check_square(B, c.shape[0])
    return float(quadratic_form(B, c))


def component_smoothness_indicators(B: ArrayLike, coeffs: ArrayLike) -> NDArray[np.float64]:
    """
    Smoothness indicators of one multi-component stencil, one per component.

    Args:
        B: Oscillation matrix, shape (n, n)
        coeffs: Coefficients, shape (n, n_components)

    Returns:
        Array of shape (n_components,)
    """
    B = np.asarray(B, dtype=np.float64)
    coeffs = np.asarray(coeffs, dtype=np.float64)
    if coeffs.ndim != 2:
        raise DimensionMismatchError(
            array_name="stencil coefficients",
            provided_shape=coeffs.shape,
            expected_shape=(B.shape[0], "n_components"),
        )
    _check_square(B, coeffs.shape[0])
    return np.array([quadratic_form_component(B, coeffs, comp) for comp in range(coeffs.shape[1])])
