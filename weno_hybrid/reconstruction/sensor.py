"""
WENO weighting with a shock sensor.

``WENOSensor`` turns the candidate stencil reconstructions of a cell into one
hybrid set of polynomial coefficients and records, per cell, the largest
smoothness indicator among its stencils. That maximum is the shock sensor: it
stays small where the data is smooth and grows by orders of magnitude across
discontinuities.

Mathematical Framework:
    IS_s    = c_s^T B c_s
    gamma_0 = dm / (epsilon + IS_0)^p,  gamma_s = 1 / (epsilon + IS_s)^p
    hybrid  = (sum_s gamma_s c_s) / (sum_s gamma_s)
    sensor  = max_s IS_s

Usage:
    >>> fields = FieldRegistry(n_cells=len(B))
    >>> sensor = WENOSensor(B, fields, WENOSensorConfig(epsilon=1e-6, p=2.0))
    >>> out = np.empty(B.shape[1])
    >>> sensor.compute_weight(out, 0, u, stencil_coefficients[0])
    >>> sensor.get_shock_sensor()[0]
"""

from __future__ import annotations

import numbers
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from weno_hybrid.config import WENOSensorConfig
from weno_hybrid.reconstruction.kernels import weigh_component_cell, weigh_scalar_cell
from weno_hybrid.utils.exceptions import (
    CellIndexError,
    DimensionMismatchError,
    EmptyStencilError,
    ShockSensorNotAvailableError,
    WENOError,
    validate_array_dimensions,
    validate_parameter_value,
)
from weno_hybrid.utils.weno_logging import (
    get_logger,
    log_performance_metric,
    log_reconstruction_completion,
    log_reconstruction_start,
    log_validation_error,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike, NDArray

    from weno_hybrid.fields import CellField, FieldRegistry

logger = get_logger(__name__)


@dataclass
class ReconstructionResult:
    """
    Outcome of a full reconstruction pass.

    Attributes:
        hybrid_coefficients: Shape (n_cells, n) or (n_cells, n, n_components)
        shock_sensor: Read-only handle on the registry's shock-sensor field
        n_cells: Number of cells processed
        max_indicator: Largest shock-sensor value over the mesh
        troubled_cells: Number of cells whose sensor exceeds theta
        execution_time: Wall time in seconds
    """

    hybrid_coefficients: NDArray[np.float64]
    shock_sensor: CellField
    n_cells: int
    max_indicator: float
    troubled_cells: int
    execution_time: float


class WENOSensor:
    """
    Nonlinear WENO weighting for one field type on one mesh.

    The component count is fixed at construction and selects the scalar or the
    multi-component kernel once. The shock-sensor field lives in the
    ``FieldRegistry`` passed in; this class only writes the slot of the cell
    it is working on.

    Thread Safety:
        ``compute_weight`` may run concurrently for different cells once
        ``prepare_shock_sensor()`` has been called from a single thread.
        ``reconstruct`` does this itself.
    """

    scheme_name = "WENOSensor"

    def __init__(
        self,
        oscillation_matrices: ArrayLike | Sequence[ArrayLike],
        fields: FieldRegistry,
        config: WENOSensorConfig | None = None,
        n_components: int = 1,
    ):
        """
        Args:
            oscillation_matrices: Per-cell oscillation matrices, shape (n_cells, n, n)
            fields: Field registry of the mesh (n_cells must match)
            config: Weighting parameters (defaults: epsilon=1e-40, p=4, dm=1000)
            n_components: Components of the reconstructed field (1 for scalars)
        """
        self.config = config if config is not None else WENOSensorConfig()
        self.epsilon = float(self.config.epsilon)
        self.p = float(self.config.p)
        self.dm = float(self.config.dm)
        self.theta = float(self.config.theta)
        self.n_components = n_components

        self._validate_parameters()
        self.n_components = int(n_components)

        self.B = np.ascontiguousarray(oscillation_matrices, dtype=np.float64)
        if self.B.ndim != 3 or self.B.shape[1] != self.B.shape[2]:
            raise DimensionMismatchError(
                array_name="oscillation_matrices",
                provided_shape=self.B.shape,
                expected_shape=("n_cells", "n", "n"),
                solver_name=self.scheme_name,
            )
        self.n_cells = self.B.shape[0]
        self.n_coeffs = self.B.shape[1]

        if fields.n_cells != self.n_cells:
            raise DimensionMismatchError(
                array_name="field registry",
                provided_shape=(fields.n_cells,),
                expected_shape=(self.n_cells,),
                solver_name=self.scheme_name,
                context="the registry and the oscillation matrices must describe the same mesh",
            )
        self.fields = fields

        self._scalar = self.n_components == 1
        self._coeff_shape = (self.n_coeffs,) if self._scalar else (self.n_coeffs, self.n_components)
        self._shock_sensor: CellField | None = None
        self._computed = False

        logger.debug(
            f"{self.scheme_name}: {self.n_cells} cells, {self.n_coeffs} coefficients, "
            f"{self.n_components} component(s), config {self.config.as_dict()}"
        )

    def _validate_parameters(self) -> None:
        """Reject configurations that could drive the gamma sum to zero."""
        validate_parameter_value(
            self.epsilon, "epsilon", valid_range=(0.0, np.inf), solver_name=self.scheme_name, exclusive_minimum=True
        )
        validate_parameter_value(
            self.p, "p", valid_range=(0.0, np.inf), solver_name=self.scheme_name, exclusive_minimum=True
        )
        validate_parameter_value(self.dm, "dm", valid_range=(1.0, np.inf), solver_name=self.scheme_name)
        validate_parameter_value(self.theta, "theta", valid_range=(0.0, np.inf), solver_name=self.scheme_name)
        validate_parameter_value(
            self.n_components,
            "n_components",
            expected_type=numbers.Integral,
            valid_range=(1, np.inf),
            solver_name=self.scheme_name,
        )

    # ------------------------------------------------------------------
    # Shock sensor
    # ------------------------------------------------------------------

    def prepare_shock_sensor(self) -> CellField:
        """
        Get or create the shock-sensor field.

        Not reentrant; call from one thread before any parallel dispatch.
        """
        if self._shock_sensor is None:
            self._shock_sensor = self.fields.get_or_create(self.config.shock_sensor_name, self.n_components)
        return self._shock_sensor

    def get_shock_sensor(self) -> CellField:
        """
        The shock-sensor field as last written.

        Returns a read-only handle on the registry's field: its ``values``
        share memory with the registry entry and follow later passes, but
        cannot be written through.

        Raises:
            ShockSensorNotAvailableError: If no weights have been computed yet
        """
        if not self._computed:
            raise ShockSensorNotAvailableError(
                "get_shock_sensor",
                solver_name=self.scheme_name,
                field_name=self.config.shock_sensor_name,
            )
        return self.fields.get(self.config.shock_sensor_name).as_readonly()

    def troubled_cells(self, theta: float | None = None) -> NDArray[np.bool_]:
        """
        Cells whose shock sensor exceeds ``theta`` in any component.

        Args:
            theta: Threshold (default: ``config.theta``)

        Returns:
            Boolean mask of shape (n_cells,)
        """
        theta = self.theta if theta is None else theta
        values = self.get_shock_sensor().values
        flagged = values > theta
        if flagged.ndim == 2:
            flagged = flagged.any(axis=1)
        return flagged

    # ------------------------------------------------------------------
    # Weighting
    # ------------------------------------------------------------------

    def compute_weight(
        self,
        out_coefficients: NDArray[np.float64],
        cell_index: int,
        field_sample: ArrayLike | None,
        stencil_coefficients: ArrayLike,
    ) -> None:
        """
        Write the hybrid coefficients of one cell and update its shock-sensor slot.

        Args:
            out_coefficients: Output buffer, shape (n,) or (n, n_components), overwritten
            cell_index: Cell index in [0, n_cells)
            field_sample: The field being reconstructed, used to check the
                component count (trailing axis); may be None
            stencil_coefficients: Coefficients per stencil, shape (S, n) or
                (S, n, n_components); stencil 0 is the central stencil

        Raises:
            CellIndexError, EmptyStencilError, DimensionMismatchError:
                If the inputs violate the shape contract
        """
        self._check_field_sample(field_sample)
        self._check_output(out_coefficients, self._coeff_shape, "out_coefficients")
        coeffs = self._check_cell(cell_index, stencil_coefficients)

        self.prepare_shock_sensor()
        self._weigh_cell(out_coefficients, cell_index, coeffs)
        self._computed = True

    def _weigh_cell(self, out: NDArray[np.float64], cell_index: int, coeffs: NDArray[np.float64]) -> None:
        # Inputs are validated; this is the per-cell hot path
        sensor = self._shock_sensor.values
        if self._scalar:
            sensor[cell_index] = weigh_scalar_cell(out, self.B[cell_index], coeffs, self.epsilon, self.p, self.dm)
        else:
            weigh_component_cell(out, self.B[cell_index], coeffs, self.epsilon, self.p, self.dm, sensor[cell_index])

    def reconstruct(
        self,
        stencil_coefficients: Sequence[ArrayLike],
        out: NDArray[np.float64] | None = None,
        max_workers: int | None = 1,
        chunk_size: int | None = None,
    ) -> ReconstructionResult:
        """
        Run one reconstruction pass over every cell of the mesh.

        All inputs are validated before any cell is computed. Cells are then
        split into contiguous chunks processed by a thread pool; each worker
        writes only the output rows and sensor slots of its own cells, so
        results do not depend on ``max_workers``.

        Args:
            stencil_coefficients: One coefficient array per cell (stencil counts may differ)
            out: Output buffer of shape (n_cells, n[, n_components]); allocated if None
            max_workers: Worker threads (1 runs in the calling thread, None lets the pool decide)
            chunk_size: Cells per task (default: spread evenly over the workers)

        Returns:
            ReconstructionResult with the hybrid coefficients and sensor summary
        """
        try:
            out = self._check_pass(stencil_coefficients, out, max_workers, chunk_size)
            cells = [self._check_cell(i, coeffs) for i, coeffs in enumerate(stencil_coefficients)]
        except WENOError as e:
            log_validation_error(logger, self.scheme_name, e.message, e.suggested_action)
            raise

        log_reconstruction_start(logger, self.scheme_name, self._log_config())
        start_time = time.perf_counter()

        self.prepare_shock_sensor()

        def run_chunk(start: int, stop: int) -> None:
            for cell_index in range(start, stop):
                self._weigh_cell(out[cell_index], cell_index, cells[cell_index])

        if max_workers == 1 or self.n_cells == 0:
            workers, n_chunks = 1, 1
            run_chunk(0, self.n_cells)
        else:
            workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
            if chunk_size is None:
                chunk_size = max(1, -(-self.n_cells // workers))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(run_chunk, start, min(start + chunk_size, self.n_cells))
                    for start in range(0, self.n_cells, chunk_size)
                ]
                for future in futures:
                    future.result()
            n_chunks = len(futures)

        self._computed = True
        execution_time = time.perf_counter() - start_time

        sensor = self.get_shock_sensor()
        max_indicator = float(sensor.values.max()) if self.n_cells else 0.0
        n_troubled = int(self.troubled_cells().sum())

        log_reconstruction_completion(
            logger, self.scheme_name, self.n_cells, max_indicator, n_troubled, execution_time
        )
        log_performance_metric(
            logger,
            f"{self.scheme_name}.reconstruct",
            execution_time,
            {"workers": workers, "chunks": n_chunks, "cells": self.n_cells},
        )

        return ReconstructionResult(
            hybrid_coefficients=out,
            shock_sensor=sensor,
            n_cells=self.n_cells,
            max_indicator=max_indicator,
            troubled_cells=n_troubled,
            execution_time=execution_time,
        )

    # ------------------------------------------------------------------
    # Boundary checks
    # ------------------------------------------------------------------

    def _check_pass(
        self,
        stencil_coefficients: Sequence[ArrayLike],
        out: NDArray[np.float64] | None,
        max_workers: int | None,
        chunk_size: int | None,
    ) -> NDArray[np.float64]:
        """Check the pass-level arguments of ``reconstruct``; returns the output buffer."""
        if max_workers is not None:
            validate_parameter_value(
                max_workers,
                "max_workers",
                expected_type=numbers.Integral,
                valid_range=(1, np.inf),
                solver_name=self.scheme_name,
            )
        if chunk_size is not None:
            validate_parameter_value(
                chunk_size,
                "chunk_size",
                expected_type=numbers.Integral,
                valid_range=(1, np.inf),
                solver_name=self.scheme_name,
            )

        if len(stencil_coefficients) != self.n_cells:
            raise DimensionMismatchError(
                array_name="stencil_coefficients",
                provided_shape=(len(stencil_coefficients),),
                expected_shape=(self.n_cells,),
                solver_name=self.scheme_name,
                context="one entry per cell is required",
            )

        if out is None:
            return np.empty((self.n_cells, *self._coeff_shape), dtype=np.float64)
        self._check_output(out, (self.n_cells, *self._coeff_shape), "out")
        return out

    def _check_cell(self, cell_index: int, stencil_coefficients: ArrayLike) -> NDArray[np.float64]:
        if not 0 <= cell_index < self.n_cells:
            raise CellIndexError(cell_index, self.n_cells, solver_name=self.scheme_name)

        try:
            coeffs = np.asarray(stencil_coefficients, dtype=np.float64)
        except ValueError as e:
            # Ragged input: stencils of one cell with different lengths
            raise DimensionMismatchError(
                array_name="stencil_coefficients",
                provided_shape=(len(stencil_coefficients),),
                expected_shape=("S", *self._coeff_shape),
                solver_name=self.scheme_name,
                context=f"cell {cell_index}: {e}",
            ) from e

        if coeffs.ndim >= 1 and coeffs.shape[0] == 0:
            raise EmptyStencilError(cell_index, solver_name=self.scheme_name)

        expected = (coeffs.shape[0] if coeffs.ndim else "S", *self._coeff_shape)
        if coeffs.shape != expected:
            raise DimensionMismatchError(
                array_name="stencil_coefficients",
                provided_shape=coeffs.shape,
                expected_shape=expected,
                solver_name=self.scheme_name,
                context=f"cell {cell_index}",
            )
        return coeffs

    def _check_output(self, out: NDArray[np.float64], expected_shape: tuple, name: str) -> None:
        if not isinstance(out, np.ndarray) or out.dtype != np.float64:
            raise TypeError(f"{name} must be a float64 numpy array, got {type(out).__name__}")
        if not out.flags.writeable:
            raise ValueError(f"{name} is read-only; pass a writeable float64 array")
        validate_array_dimensions(out, expected_shape, name, solver_name=self.scheme_name)

    def _check_field_sample(self, field_sample: ArrayLike | None) -> None:
        if field_sample is None:
            return
        shape = np.shape(field_sample)
        components = shape[-1] if len(shape) >= 2 else 1
        if components != self.n_components:
            raise DimensionMismatchError(
                array_name="field_sample",
                provided_shape=shape,
                expected_shape=("n_cells", self.n_components) if not self._scalar else ("n_cells",),
                solver_name=self.scheme_name,
                context="the field's component count must match the sensor's",
            )

    def _log_config(self) -> dict[str, Any]:
        return {
            **self.config.as_dict(),
            "n_cells": self.n_cells,
            "n_coeffs": self.n_coeffs,
            "n_components": self.n_components,
        }
