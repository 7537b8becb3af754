"""
Named per-cell fields owned by a reconstruction pass.

The registry replaces a process-wide object cache: whoever drives the
reconstruction creates a ``FieldRegistry`` for the mesh and hands it to the
components that need to publish diagnostic fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from weno_hybrid.utils.exceptions import DimensionMismatchError, FieldNotFoundError
from weno_hybrid.utils.weno_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from numpy.typing import NDArray

logger = get_logger(__name__)


@dataclass(eq=False)
class CellField:
    """
    One value per cell (or per cell and component).

    Attributes:
        name: Registry key
        values: ``(n_cells,)`` for scalar fields, ``(n_cells, n_components)`` otherwise
    """

    name: str
    values: NDArray[np.float64]

    @property
    def n_cells(self) -> int:
        return self.values.shape[0]

    @property
    def n_components(self) -> int:
        return 1 if self.values.ndim == 1 else self.values.shape[1]

    def __getitem__(self, index):
        return self.values[index]

    def __len__(self) -> int:
        return self.n_cells

    def readonly(self) -> NDArray[np.float64]:
        """View of the values that cannot be written through."""
        view = self.values.view()
        view.flags.writeable = False
        return view

    def as_readonly(self) -> CellField:
        """Handle on the same field whose values cannot be written through."""
        return CellField(self.name, self.readonly())


class FieldRegistry:
    """
    Field-by-name map for one mesh.

    ``get_or_create`` is not reentrant: call it from a single thread before
    dispatching parallel work that writes into the returned field.
    """

    def __init__(self, n_cells: int):
        if n_cells < 0:
            raise ValueError(f"n_cells must be non-negative, got {n_cells}")
        self.n_cells = int(n_cells)
        self._fields: dict[str, CellField] = {}

    def get_or_create(self, name: str, n_components: int = 1) -> CellField:
        """
        Return the field called ``name``, creating it zero-filled on first access.

        Args:
            name: Field name
            n_components: Values per cell; 1 gives a flat ``(n_cells,)`` field

        Returns:
            The cached CellField (same instance on every call)
        """
        field = self._fields.get(name)
        if field is None:
            shape = (self.n_cells,) if n_components == 1 else (self.n_cells, n_components)
            field = CellField(name=name, values=np.zeros(shape, dtype=np.float64))
            self._fields[name] = field
            logger.debug(f"Created field '{name}' with shape {shape}")
        elif field.n_components != n_components:
            raise DimensionMismatchError(
                array_name=name,
                provided_shape=(self.n_cells, n_components),
                expected_shape=field.values.shape,
                solver_name="FieldRegistry",
                context="field already registered with a different component count",
            )
        return field

    def get(self, name: str) -> CellField:
        """Return an existing field; raises FieldNotFoundError if absent."""
        try:
            return self._fields[name]
        except KeyError:
            raise FieldNotFoundError(name, available=sorted(self._fields)) from None

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)
