"""
Runner script for the stabilization engine.

Builds a system, injects transient faults, prints the system status after
each fault, stabilizes, and reports the final configuration together with
the wall-clock stabilization time.  With ``monte_carlo_trials >= 2`` it runs
the Monte Carlo experiment instead.

Usage
-----
    python runner.py [config.json] [--size N] [--faults F] [--seed S]
                     [--max-steps K] [--m M] [--topology line|ring]
                     [--trials T] [--pause] [--output-dir results/]

Command-line flags override config values.  Size and fault count are read
interactively when neither a config file nor a flag provides them; an
interactive run also pauses after fault injection, as ``--pause`` does.  When
``--output-dir`` is given, a summary and a config snapshot with SHA-256
hash are written there.
"""

from __future__ import annotations

import argparse
import csv
import hashlib
import json
import math
import sys
import time
from pathlib import Path
from typing import Sequence

from numpy.random import SeedSequence

from .config import ConfigDict, build_rng, read_config, validate_config
from .convergence import run_until_legal
from .monte_carlo import MonteCarloResult, run_monte_carlo
from .scheduler import Scheduler
from .simulation import build_system


SEPARATOR = "_" * 64


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probabilistic fault-containing self-stabilization simulator."
    )
    parser.add_argument("config", nargs="?", help="Optional JSON configuration file.")
    parser.add_argument("--size", type=int, help="Number of nodes in the system.")
    parser.add_argument("--faults", type=int, help="Number of transient faults to inject.")
    parser.add_argument("--seed", type=int, help="Random seed (default: fresh entropy).")
    parser.add_argument(
        "--max-steps",
        type=int,
        help="Step cap for the convergence loop (default: unbounded).",
    )
    parser.add_argument("--m", type=int, help="Leader increment constant M (default: 20).")
    parser.add_argument("--topology", choices=["line", "ring"], help="Node topology.")
    parser.add_argument(
        "--trials",
        type=int,
        help="Run a Monte Carlo experiment with this many trials.",
    )
    parser.add_argument(
        "--pause",
        action="store_true",
        help="Wait for Enter between fault injection and stabilization.",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for summary output files (default: none written).",
    )
    return parser.parse_args(argv)


def _prompt_int(prompt: str) -> int:
    raw = input(prompt)
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"Expected an integer; got {raw!r}.") from None


def _resolve_config(args: argparse.Namespace) -> ConfigDict:
    """Merge config file, command-line flags and interactive input.

    The merged dict is validated once.  Prompting for size or fault count
    turns on ``args.pause``.
    """
    raw: ConfigDict = {}
    if args.config:
        raw = dict(read_config(args.config))

    overrides = {
        "size": args.size,
        "faults": args.faults,
        "seed": args.seed,
        "max_steps": args.max_steps,
        "m": args.m,
        "monte_carlo_trials": args.trials,
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    if args.topology is not None:
        raw["topology"] = {"type": args.topology}

    if "size" not in raw:
        raw["size"] = _prompt_int("\nEnter system size: ")
        args.pause = True
    if "faults" not in raw:
        raw["faults"] = _prompt_int("\nEnter number of simulated faults: ")
        args.pause = True
    if "seed" not in raw:
        raw["seed"] = int(SeedSequence().entropy)

    return validate_config(raw)


# ---------------------------------------------------------------------------
# Formatting / filesystem helpers
# ---------------------------------------------------------------------------


def format_primaries(snapshot: Sequence[int]) -> str:
    """Render a primary sequence as space-separated tokens plus newline."""
    return " ".join(str(int(v)) for v in snapshot) + "\n"


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write_csv(path: Path, fieldnames: list[str], rows: list[dict]) -> None:
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def _config_hash(cfg: dict) -> str:
    """Compute a SHA-256 hash of the JSON-serialised config for reproducibility."""
    serialised = json.dumps(cfg, sort_keys=True).encode("utf-8")
    return hashlib.sha256(serialised).hexdigest()


def _nan_to_none(v):
    """Replace float NaN with None for valid JSON serialisation."""
    return None if isinstance(v, float) and math.isnan(v) else v


def _save_config_snapshot(output_dir: Path, cfg: dict) -> None:
    snapshot = {
        "config": cfg,
        "sha256": _config_hash(cfg),
    }
    (output_dir / "config_snapshot.json").write_text(json.dumps(snapshot, indent=2))


# ---------------------------------------------------------------------------
# Single run
# ---------------------------------------------------------------------------


def _run_single(cfg: ConfigDict, pause: bool, output_dir: Path | None) -> dict:
    """Inject faults, stabilize, print the report; return the summary dict."""
    rng = build_rng(cfg)
    store, snapshots = build_system(cfg["size"], cfg["faults"], rng, cfg["topology"])

    print("\nSYSTEM STATUS")
    for snap in snapshots:
        print(format_primaries(snap), end="")
    print(SEPARATOR)

    if pause:
        input("Press Enter to stabilize...")

    t0 = time.perf_counter()
    result = run_until_legal(
        store,
        Scheduler(store.size, rng),
        max_steps=cfg["max_steps"],
        m=cfg["m"],
    )
    elapsed_us = int(round((time.perf_counter() - t0) * 1_000_000))

    print("\nSYSTEM LEGAL" if result.converged else "\nSTEP BOUND EXCEEDED")
    print(format_primaries(result.final_state), end="")
    print(f"\nStabilization performance: {elapsed_us} microseconds.\n")

    summary = {
        "mode": "single",
        "size": cfg["size"],
        "faults": cfg["faults"],
        "seed": cfg["seed"],
        "m": cfg["m"],
        "fault_snapshots": [list(s) for s in snapshots],
        "elapsed_microseconds": elapsed_us,
        **result.summary_dict(),
    }
    _print_single_summary(summary)

    if output_dir is not None:
        (output_dir / "summary.json").write_text(json.dumps(summary, indent=2))
    return summary


def _print_single_summary(summary: dict) -> None:
    sep = "-" * 58
    print(sep)
    print("  Stabilization Engine — Single Run")
    print(sep)
    print(f"  Nodes            : {summary['size']}")
    print(f"  Faults injected  : {summary['faults']}")
    print(f"  Seed             : {summary['seed']}")
    print(f"  Status           : {summary['status']}")
    print(f"  Steps            : {summary['steps']}")
    print()
    print("  Rules applied")
    for name, count in summary["rule_counts"].items():
        print(f"    {name:<12}: {count}")
    print(sep)


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------


def _run_monte_carlo(cfg: ConfigDict, output_dir: Path | None) -> dict:
    trials = int(cfg["monte_carlo_trials"])
    print(
        f"[Monte Carlo] n={cfg['size']} | faults={cfg['faults']} | "
        f"trials={trials} | m={cfg['m']}"
    )

    t0 = time.perf_counter()
    mc: MonteCarloResult = run_monte_carlo(
        cfg["size"], cfg["faults"], trials, cfg["seed"],
        max_steps=cfg["max_steps"],
        m=cfg["m"],
        topology=cfg["topology"],
    )
    elapsed = time.perf_counter() - t0

    summary = {"mode": "monte_carlo", "elapsed_seconds": round(elapsed, 4)}
    summary.update({k: _nan_to_none(v) for k, v in mc.summary_dict().items()})
    _print_mc_summary(summary)

    if output_dir is not None:
        _write_csv(
            output_dir / "monte_carlo_steps.csv",
            ["trial", "steps", "converged"],
            [
                {"trial": t, "steps": int(s), "converged": bool(c)}
                for t, (s, c) in enumerate(zip(mc.steps.tolist(), mc.converged.tolist()))
            ],
        )
        (output_dir / "summary.json").write_text(json.dumps(summary, indent=2))
    return summary


def _fmt(v, spec: str) -> str:
    return "n/a" if v is None else format(v, spec)


def _print_mc_summary(summary: dict) -> None:
    sep = "-" * 58
    print(sep)
    print("  Stabilization Engine — Monte Carlo")
    print(sep)
    print(f"  Nodes              : {summary['size']}")
    print(f"  Faults / trial     : {summary['faults']}")
    print(f"  Trials             : {summary['trials']}")
    print(f"  M                  : {summary['m']}")
    print(f"  Elapsed            : {summary['elapsed_seconds']:.2f}s")
    print()
    print("  Steps to legal configuration")
    print(f"    Converged : {summary['convergence_rate']:.2%}")
    print(f"    Mean      : {_fmt(summary['mean_steps'], '.2f')}")
    print(f"    95% CI    : [{_fmt(summary['ci_95_low'], '.2f')}, {_fmt(summary['ci_95_high'], '.2f')}]")
    print(f"    Median    : {_fmt(summary['median_steps'], '.1f')}")
    print(f"    Min / Max : {_fmt(summary['min_steps'], 'd')} / {_fmt(summary['max_steps'], 'd')}")
    print(sep)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)

    try:
        cfg = _resolve_config(args)
    except (ValueError, FileNotFoundError) as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)

    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir is not None:
        _ensure_dir(output_dir)
        _save_config_snapshot(output_dir, cfg)

    if cfg["monte_carlo_trials"] >= 2:
        _run_monte_carlo(cfg, output_dir)
    else:
        _run_single(cfg, args.pause, output_dir)

    if output_dir is not None:
        print(f"  Results saved to : {output_dir.resolve()}")


if __name__ == "__main__":
    main()
