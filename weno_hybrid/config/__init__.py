"""
Configuration for weno_hybrid.

    >>> from weno_hybrid.config import WENOSensorConfig, load_weno_config
    >>> config = WENOSensorConfig(epsilon=1e-6, p=2.0)
"""

from .io import load_weno_config, save_weno_config
from .weno_configs import WENOSensorConfig

__all__ = [
    "WENOSensorConfig",
    "load_weno_config",
    "save_weno_config",
]
