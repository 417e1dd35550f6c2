from __future__ import annotations

import argparse
import time
from datetime import datetime, timezone
from pathlib import Path
import platform
import subprocess

import jax.numpy as jnp
import numpy as np

from specfunjax import msbessel, sbessel


def _git_commit(repo_root: Path) -> str:
    try:
        return subprocess.check_output(["git", "rev-parse", "HEAD"], cwd=repo_root, text=True).strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


def _log_run(tool: str, command: str, notes: str = "") -> None:
    repo_root = Path(__file__).resolve().parents[1]
    results_dir = repo_root / "results"
    results_dir.mkdir(parents=True, exist_ok=True)
    log_path = results_dir / "runs.csv"
    if not log_path.exists():
        log_path.write_text("run_id,timestamp_utc,tool,command,commit,platform,notes\n", encoding="ascii")
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    run_id = f"{tool}-{timestamp}"
    commit = _git_commit(repo_root)
    plat = platform.platform()
    line = f"{run_id},{timestamp},{tool},\"{command}\",{commit},\"{plat}\",\"{notes}\"\n"
    with log_path.open("a", encoding="ascii") as f:
        f.write(line)


def _time_ms(fn, x) -> float:
    fn(x).block_until_ready()
    t0 = time.perf_counter()
    out = fn(x)
    out.block_until_ready()
    t1 = time.perf_counter()
    return (t1 - t0) * 1000.0


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark spherical Bessel JAX kernels.")
    parser.add_argument("--order", type=int, default=10)
    parser.add_argument("--samples", type=int, default=100000)
    parser.add_argument("--x-max", type=float, default=100.0)
    args = parser.parse_args()

    x = jnp.asarray(np.random.default_rng(2251).uniform(0.0, args.x_max, size=args.samples))
    plain = sbessel.instance_of(args.order)
    modified = msbessel.instance_of(args.order)
    fns = {
        "j": plain.sbessel_j,
        "y": plain.sbessel_y,
        "i": modified.sbessel_i,
        "k": modified.sbessel_k,
        "ic": modified.sbessel_ic,
        "kc": modified.sbessel_kc,
    }

    timings = []
    for name, fn in fns.items():
        ms = _time_ms(fn, x)
        timings.append(f"{name}={ms:.2f}")
        print(f"{name:2s} | order={args.order} | samples={args.samples} | time_ms={ms:.2f}")

    _log_run(
        "benchmark_sbessel",
        f"benchmark_sbessel.py --order {args.order} --samples {args.samples} --x-max {args.x_max}",
        " ".join(timings),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
