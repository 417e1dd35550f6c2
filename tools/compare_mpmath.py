from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
import platform
import subprocess

import jax.numpy as jnp
import numpy as np

import mpmath as mp

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


def _mp_half(fn, n: int, x: float, factor) -> float:
    m = mp.mpf(x)
    return float(factor(m) * fn(n + mp.mpf(0.5), m))


def _plain_factor(m):
    return mp.sqrt(mp.pi / (2 * m))


def _k_factor(m):
    return mp.sqrt(2 / (mp.pi * m))


MP_MAP = {
    "j": lambda n, x: _mp_half(mp.besselj, n, x, _plain_factor),
    "y": lambda n, x: _mp_half(mp.bessely, n, x, _plain_factor),
    "i": lambda n, x: _mp_half(mp.besseli, n, x, _plain_factor),
    "k": lambda n, x: _mp_half(mp.besselk, n, x, _k_factor),
    "ic": lambda n, x: float(_plain_factor(mp.mpf(x)) * mp.besseli(n + mp.mpf(0.5), x) * mp.exp(-mp.mpf(x))),
    "kc": lambda n, x: float(_k_factor(mp.mpf(x)) * mp.besselk(n + mp.mpf(0.5), x) * mp.exp(mp.mpf(x))),
}


def _jax_eval(kind: str, order: int, xs: np.ndarray) -> np.ndarray:
    x = jnp.asarray(xs, dtype=jnp.float64)
    if kind in ("j", "y"):
        return np.asarray(sbessel.sbessel_eval(x, order, kind))
    return np.asarray(msbessel.msbessel_eval(x, order, kind))


def _max_rel_err(got: np.ndarray, ref: np.ndarray) -> float:
    mask = np.isfinite(ref) & (ref != 0.0)
    if not np.any(mask):
        return 0.0
    return float(np.max(np.abs(got[mask] - ref[mask]) / np.abs(ref[mask])))


def main() -> int:
    parser = argparse.ArgumentParser(description="Compare spherical Bessel JAX kernels with mpmath.")
    parser.add_argument("--orders", type=str, default="0,1,2,5,10,20,50,100")
    parser.add_argument("--points", type=int, default=200)
    parser.add_argument("--dps", type=int, default=50)
    parser.add_argument("--x-max", type=float, default=200.0)
    args = parser.parse_args()

    mp.mp.dps = args.dps
    orders = [int(s) for s in args.orders.split(",") if s.strip()]
    xs = np.geomspace(1e-3, args.x_max, args.points)

    worst = 0.0
    for order in orders:
        for kind, mp_fn in MP_MAP.items():
            got = _jax_eval(kind, order, xs)
            ref = np.array([mp_fn(order, float(x)) for x in xs], dtype=np.float64)
            err = _max_rel_err(got, ref)
            worst = max(worst, err)
            print(f"n={order:3d} {kind:2s} max_rel_err={err:.3e}")

    print(f"worst max_rel_err={worst:.3e}")
    _log_run(
        "compare_mpmath",
        f"compare_mpmath.py --orders {args.orders} --points {args.points} --dps {args.dps} --x-max {args.x_max}",
        f"worst={worst:.3e}",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
