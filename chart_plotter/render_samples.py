# chart_plotter/render_samples.py
"""
render_samples.py — Tiny local renderer for chart source files.

What it does:
- Loads every *.tex / *.chart file in sample_charts/
- Parses + renders it with dynamic_chart_plotter()
- Saves a PNG per file into render_out/
- Prints a pass/fail summary (and exits non-zero if any fail)

Run:
  python -m chart_plotter.render_samples

Optional:
  python -m chart_plotter.render_samples --in sample_charts --out render_out --width 480 --height 360
"""

from __future__ import annotations

import argparse
import os
import sys
import traceback
from pathlib import Path
from typing import List, Optional, Tuple

# Force headless backend before importing anything that touches matplotlib
os.environ.setdefault("MPLBACKEND", "Agg")

import matplotlib  # noqa: E402

matplotlib.use("Agg")

from .backend import save  # noqa: E402
from .plotter import dynamic_chart_plotter  # noqa: E402

PATTERNS = ("*.tex", "*.chart")


def _safe_slug(name: str) -> str:
    keep = []
    for ch in name:
        if ch.isalnum() or ch in ("-", "_", "."):
            keep.append(ch)
        else:
            keep.append("_")
    return "".join(keep)


def _render_one(in_path: Path, out_dir: Path, width: Optional[float], height: Optional[float], dpi: int) -> Tuple[bool, str]:
    """
    Returns (ok, message).
    """
    try:
        source = in_path.read_text(encoding="utf-8")
        result = dynamic_chart_plotter(source, width, height)

        out_path = out_dir / (_safe_slug(in_path.stem) + ".png")
        save(result.tree, result.width, result.height, str(out_path), dpi=dpi)

        note = f" ({len(result.warnings)} warning(s))" if result.warnings else ""
        return True, f"OK  -> {out_path.name}{note}"

    except Exception as e:
        tb = traceback.format_exc()
        return False, f"FAIL -> {in_path.name}: {e}\n{tb}"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render sample chart sources to PNGs.")
    parser.add_argument(
        "--in",
        dest="in_dir",
        default=str(Path(__file__).parent / "sample_charts"),
        help="Folder containing *.tex / *.chart sources (default: sample_charts next to this file).",
    )
    parser.add_argument(
        "--out",
        dest="out_dir",
        default=str(Path(__file__).parent / "render_out"),
        help="Output folder for PNGs (default: render_out next to this file).",
    )
    parser.add_argument("--width", type=float, default=None, help="Canvas width in px (default: from source/settings).")
    parser.add_argument("--height", type=float, default=None, help="Canvas height in px (default: from source/settings).")
    parser.add_argument("--dpi", dest="dpi", type=int, default=100, help="PNG dpi (default: 100).")
    args = parser.parse_args(argv)

    in_dir = Path(args.in_dir).expanduser().resolve()
    out_dir = Path(args.out_dir).expanduser().resolve()

    if not in_dir.exists() or not in_dir.is_dir():
        print(f"Input folder not found: {in_dir}")
        return 2

    out_dir.mkdir(parents=True, exist_ok=True)

    files = sorted(p for pattern in PATTERNS for p in in_dir.glob(pattern))
    if not files:
        print(f"No chart sources found in: {in_dir}")
        return 0

    print(f"Rendering {len(files)} file(s)")
    print(f"  in : {in_dir}")
    print(f"  out: {out_dir}")
    print("")

    ok_count = 0
    failed: List[str] = []

    for p in files:
        ok, msg = _render_one(p, out_dir, args.width, args.height, args.dpi)
        print(msg)
        if ok:
            ok_count += 1
        else:
            failed.append(p.name)

    print("")
    print("Summary")
    print("-------")
    print(f"Passed: {ok_count}")
    print(f"Failed: {len(failed)}")
    if failed:
        print("Failed files:")
        for f in failed:
            print(f"  - {f}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
