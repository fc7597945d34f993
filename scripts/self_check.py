from __future__ import annotations

import os
import sys
import tempfile

from medheat.core.pipeline import run_overlay, validate_options
from medheat.utils.viz import save_png


SAMPLE_IMAGE = os.path.join("samples", "sample.dcm")
SAMPLE_HEATMAP = os.path.join("samples", "heatmap.csv")


def _run_demo(out_dir: str) -> bool:
    options, _ = validate_options("hot", "minmax", 0.5)
    result = run_overlay(None, options, demo=True)
    out = save_png(result.composite, os.path.join(out_dir, "demo.png"))
    if (result.composite.width, result.composite.height) != (512, 512):
        print(f"FAIL: demo overlay is {result.composite.width}x{result.composite.height}.")
        return False
    print(f"OK: demo overlay written to {out}.")
    return True


def _run_sample(out_dir: str) -> bool:
    if not os.path.exists(SAMPLE_IMAGE) or not os.path.exists(SAMPLE_HEATMAP):
        print(f"SKIP: {SAMPLE_IMAGE} or {SAMPLE_HEATMAP} not found.")
        return True
    options, fmt = validate_options("jet", "percentile", 0.6, SAMPLE_HEATMAP)
    result = run_overlay(SAMPLE_IMAGE, options, SAMPLE_HEATMAP, fmt)
    if result.used_demo_base or result.used_gradient_heatmap:
        print("FAIL: sample inputs were not used.")
        return False
    out = save_png(result.composite, os.path.join(out_dir, "sample.png"))
    print(f"OK: sample overlay written to {out}.")
    return True


def main():
    with tempfile.TemporaryDirectory() as out_dir:
        ok = True
        ok = _run_demo(out_dir) and ok
        ok = _run_sample(out_dir) and ok
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
