from __future__ import annotations

import argparse
import sys
import uuid
from typing import List, Optional

from .core.config import DEFAULT_COLORMAP, DEFAULT_NORMALIZATION, DEFAULT_OPACITY, get_orchestrate_config
from .core.pipeline import load_base_or_demo, run_overlay, validate_options
from .core.types import ColorMapKind, NormalizationKind
from .utils.errors import MedHeatError, friendly_error
from .utils.logging import get_logger, set_request_id, setup_logging
from .utils.viz import save_png

LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medheat",
        description="Overlay a heat-intensity map on a medical image and write a PNG.",
    )
    parser.add_argument("input", help="Base image (.dcm, .png, .jpg, .tif)")
    parser.add_argument("output", help="Output PNG path")
    parser.add_argument("--heatmap", default=None, help="Heatmap data (.json, .csv, .bin)")
    parser.add_argument(
        "--colormap",
        default=DEFAULT_COLORMAP,
        help=f"One of: {', '.join(ColorMapKind.names())} (default: %(default)s)",
    )
    parser.add_argument(
        "--normalization",
        default=DEFAULT_NORMALIZATION,
        help=f"One of: {', '.join(NormalizationKind.names())} (default: %(default)s)",
    )
    parser.add_argument("--opacity", default=DEFAULT_OPACITY, help="Heat layer opacity in [0, 1] (default: %(default)s)")
    parser.add_argument("--demo", action="store_true", help="Ignore INPUT and use the synthetic demo image")
    parser.add_argument("--base-only", action="store_true", help="Write the decoded grayscale base image only")
    parser.add_argument("--log-level", default=None, help="Logging level (default: MEDHEAT_LOG_LEVEL or DEBUG)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)
    set_request_id(uuid.uuid4().hex[:6])
    LOGGER.info("---- Finish setting up logger ----")
    LOGGER.debug("Registered services: %s", ", ".join(get_orchestrate_config().config_services))

    try:
        options, heatmap_format = validate_options(args.colormap, args.normalization, args.opacity, args.heatmap)
        if args.base_only:
            raster, _ = load_base_or_demo(args.input, demo=args.demo)
            out = save_png(raster, args.output)
            LOGGER.info("Wrote base image %s (%dx%d)", out, raster.width, raster.height)
            return 0

        result = run_overlay(args.input, options, args.heatmap, heatmap_format, demo=args.demo)
        out = save_png(result.composite, args.output)
        LOGGER.info(
            "Wrote %s (%dx%d, colormap=%s, normalization=%s, opacity=%.2f, demo_base=%s, gradient=%s)",
            out, result.composite.width, result.composite.height, options.colormap.value,
            options.normalization.value, options.opacity, result.used_demo_base, result.used_gradient_heatmap,
        )
        return 0
    except MedHeatError as exc:
        LOGGER.error("Run failed: %s", exc)
        print(friendly_error(str(exc)), file=sys.stderr)
        return 1
    finally:
        set_request_id(None)


if __name__ == "__main__":
    sys.exit(main())
