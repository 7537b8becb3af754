"""
YAML I/O for WENO sensor configurations.

Keys absent from the file take their defaults, so a file holding only
``theta: 0.5`` is a complete configuration.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from .weno_configs import WENOSensorConfig


def load_weno_config(path: str | Path) -> WENOSensorConfig:
    """
    Load a WENO sensor configuration from a YAML file.

    Parameters
    ----------
    path : str | Path
        Path to YAML configuration file

    Returns
    -------
    WENOSensorConfig
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If configuration file doesn't exist
    pydantic.ValidationError
        If a value is out of range (e.g. ``epsilon <= 0``)
    yaml.YAMLError
        If YAML syntax is invalid

    YAML Format
    -----------
    weno:
      epsilon: 1.0e-40
      p: 4.0
      dm: 1000.0
      theta: 1.0
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {path}\nPlease create a YAML configuration file or use programmatic config."
        )

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML syntax in {path}: {e}") from e

    if data is None:
        data = {}

    # Accept both a bare mapping and one nested under "weno"
    if "weno" in data:
        data = data["weno"] or {}

    return WENOSensorConfig(**data)


def save_weno_config(config: WENOSensorConfig, path: str | Path) -> None:
    """
    Save a WENO sensor configuration to a YAML file.

    Parameters
    ----------
    config : WENOSensorConfig
        Configuration to save
    path : str | Path
        Output path; parent directories are created as needed
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump({"weno": config.as_dict()}, f, default_flow_style=False, sort_keys=False)
