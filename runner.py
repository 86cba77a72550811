"""Repository-level CLI entrypoint for the stabilization engine.

This wrapper preserves the documented invocation style:

    python runner.py [config.json] [--size N] [--faults F] ...

It delegates execution to :mod:`stabilization_engine.runner`.
"""

from __future__ import annotations

import sys
from pathlib import Path

from stabilization_engine.runner import main


def _rewrite_config_path_arg(argv: list[str]) -> list[str]:
    """Rewrite config argument to ``stabilization_engine/<name>`` when needed.

    Example configs live under ``stabilization_engine/`` but are usually
    referenced by bare name from the repository root.  Flags are left alone.
    """
    if len(argv) < 2 or argv[1].startswith("-"):
        return argv

    candidate = Path(argv[1])
    if candidate.exists():
        return argv

    alt = Path("stabilization_engine") / candidate
    if alt.exists():
        out = list(argv)
        out[1] = str(alt)
        return out

    return argv


if __name__ == "__main__":
    sys.argv = _rewrite_config_path_arg(sys.argv)
    main()
