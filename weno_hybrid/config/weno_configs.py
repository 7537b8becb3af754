"""
Nonlinear weighting configuration for the WENO sensor.

The scalars are immutable for the lifetime of a reconstruction pass, so the
model is frozen.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class WENOSensorConfig(BaseModel):
    """
    Parameters of the nonlinear stencil weights.

    Attributes
    ----------
    epsilon : float
        Regularization added to every smoothness indicator before the power
        is taken (default: 1e-40). Must be strictly positive, otherwise the
        gamma sum can vanish for perfectly smooth data.
    p : float
        Sensitivity exponent (default: 4.0)
    dm : float
        Amplification of the central stencil's gamma (default: 1000.0)
    theta : float
        Shock-sensor threshold above which a cell counts as troubled
        (default: 1.0)
    shock_sensor_name : str
        Name of the diagnostic field in the field registry
        (default: "WENOShockSensor")

    Examples
    --------
    >>> config = WENOSensorConfig(epsilon=1e-6, p=2.0, dm=1000.0)
    >>> config.as_dict()["p"]
    2.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    epsilon: float = Field(default=1e-40, gt=0, allow_inf_nan=False)
    p: float = Field(default=4.0, gt=0, allow_inf_nan=False)
    dm: float = Field(default=1000.0, ge=1, allow_inf_nan=False)
    theta: float = Field(default=1.0, ge=0, allow_inf_nan=False)
    shock_sensor_name: str = Field(default="WENOShockSensor", min_length=1)

    def as_dict(self) -> dict[str, float | str]:
        """Plain dictionary view, used for logging and YAML output."""
        return self.model_dump()
