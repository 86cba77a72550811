"""
Configuration loader for the stabilization engine.

Loads JSON config files, validates fields, fills defaults, and builds a
seeded numpy random Generator.
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any

from numpy.random import Generator, default_rng

from .engine import M
from .errors import InvalidFaultCount, InvalidSize
from .topology import TOPOLOGY_TYPES


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

ConfigDict = dict[str, Any]


# ---------------------------------------------------------------------------
# Schema constants
# ---------------------------------------------------------------------------

REQUIRED_FIELDS = {"size", "faults", "seed"}

DEFAULTS: ConfigDict = {
    "max_steps": None,
    "m": M,
    "topology": {"type": "line"},
    "monte_carlo_trials": 0,
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> ConfigDict:
    """Load and validate a JSON configuration file.

    Parameters
    ----------
    path : str or Path
        Path to the JSON configuration file.

    Returns
    -------
    ConfigDict
        Validated configuration dictionary with defaults filled in.

    Raises
    ------
    ValueError
        If required fields are missing or values are invalid.
    FileNotFoundError
        If the config file does not exist.
    """
    return validate_config(read_config(path))


def read_config(path: str | Path) -> ConfigDict:
    """Read a JSON configuration file without validating it.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If the file does not hold a JSON object.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        cfg: ConfigDict = json.load(fh)

    if not isinstance(cfg, dict):
        raise ValueError(f"Config must be a JSON object; got {type(cfg).__name__}.")
    return cfg


def validate_config(cfg: ConfigDict) -> ConfigDict:
    """Validate a raw config dict and return a copy with defaults applied.

    Raises
    ------
    ValueError
        On any schema violation.
    InvalidSize
        If ``size < 1``.
    InvalidFaultCount
        If ``faults < 0``.
    """
    if not isinstance(cfg, dict):
        raise ValueError(f"Config must be a JSON object; got {type(cfg).__name__}.")

    missing = REQUIRED_FIELDS - cfg.keys()
    if missing:
        raise ValueError(f"Config missing required fields: {missing}")

    out: ConfigDict = {**DEFAULTS, **cfg}

    for key in ("size", "faults", "seed", "m", "monte_carlo_trials"):
        if out[key] is not None and not _is_int(out[key]):
            raise ValueError(f"{key} must be an integer; got {out[key]!r}")
    if out["seed"] is None:
        raise ValueError("seed must be an integer; got None")

    if out["size"] < 1:
        raise InvalidSize(f"size must be >= 1; got {out['size']}")
    if out["faults"] < 0:
        raise InvalidFaultCount(f"faults must be >= 0; got {out['faults']}")
    if out["m"] is None or out["m"] <= 0:
        raise ValueError(f"m must be a positive integer; got {out['m']!r}")
    if out["monte_carlo_trials"] is None or out["monte_carlo_trials"] < 0:
        raise ValueError(
            f"monte_carlo_trials must be >= 0; got {out['monte_carlo_trials']!r}"
        )
    if out["monte_carlo_trials"] == 1:
        raise ValueError("monte_carlo_trials must be 0 (disabled) or >= 2")

    max_steps = out["max_steps"]
    if max_steps is not None:
        if not _is_int(max_steps) or max_steps < 0:
            raise ValueError(f"max_steps must be a non-negative integer or null; got {max_steps!r}")
        if max_steps == 0 and out["faults"] > 0:
            warnings.warn(
                "validate_config: max_steps == 0 with faults > 0; no stabilization "
                "step will run and the result will almost certainly be "
                "bound_exceeded.",
                UserWarning,
                stacklevel=2,
            )

    topo = out["topology"]
    if isinstance(topo, str):
        topo = {"type": topo}
    if not isinstance(topo, dict) or "type" not in topo:
        raise ValueError("topology.type is required")
    if topo["type"] not in TOPOLOGY_TYPES:
        raise ValueError(
            f"topology.type must be one of {TOPOLOGY_TYPES}, got {topo['type']!r}"
        )
    if topo["type"] == "ring" and out["size"] < 3:
        raise ValueError(f"topology 'ring' needs size >= 3; got {out['size']}")
    out["topology"] = dict(topo)

    return out


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def build_rng(cfg: ConfigDict) -> Generator:
    """Build a seeded numpy Generator from a config dict.

    Parameters
    ----------
    cfg : ConfigDict
        Configuration dictionary containing ``seed`` (int).

    Returns
    -------
    Generator
        A seeded numpy random Generator.
    """
    return default_rng(int(cfg["seed"]))
