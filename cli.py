"""
Command line front end.

    rasterfilter gauss|median|edge_detection|grayscale INPUT [PARAM] [-o OUTPUT]

PARAM is sigma for gauss and the window radius for median (default 5).
Without -o the result goes to output.png / output.jpg, matching the input format.
"""
import argparse
import sys
from typing import List, Optional

from config import Config
from raster.errors import ImageProcError, Status
from raster.pipeline import FilterParams, Tool, run_filter
from utils.imaging import image_format, load_image, save_image
from utils.logging import get_logger, set_level

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rasterfilter", description="Apply a spatial filter to a PNG/JPEG image.")
    ap.add_argument("tool", choices=[t.value for t in Tool])
    ap.add_argument("input_path")
    ap.add_argument("parameter", nargs="?", type=float, default=Config.DEFAULT_PARAMETER,
                    help="sigma (gauss) or radius (median)")
    ap.add_argument("-o", "--output", dest="output_path", default=None)
    ap.add_argument("--threshold", type=float, default=None,
                    help="binarise the edge map at this value (edge_detection)")
    ap.add_argument("--workers", type=int, default=Config.MEDIAN_WORKERS,
                    help="channel workers for the median filter")
    ap.add_argument("--log-level", default=Config.LOG_LEVEL)
    return ap


def _default_output(input_fmt: str) -> str:
    return "output.jpg" if input_fmt == "JPEG" else "output.png"


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    set_level(args.log_level)

    input_fmt = image_format(args.input_path)
    if input_fmt is None:
        logger.error("Compatible input file not found: %s", args.input_path)
        return 1
    output_path = args.output_path or _default_output(input_fmt)
    if image_format(output_path) is None:
        logger.error("Unsupported output file: %s", output_path)
        return 1
    logger.info("Input path: %s", args.input_path)
    logger.info("Output path: %s", output_path)

    if args.parameter < 0:
        logger.error("Parameter must be >= 0, got %s", args.parameter)
        return 1
    if args.threshold is not None and not 0.0 <= args.threshold <= 255.0:
        logger.error("Threshold must be within 0..255, got %s", args.threshold)
        return 1
    params = FilterParams(tool=Tool(args.tool),
                          sigma=args.parameter,
                          radius=int(args.parameter),
                          threshold=args.threshold,
                          workers=max(1, args.workers))

    try:
        buffer = load_image(args.input_path)
    except ImageProcError as exc:
        logger.error("Load failed: %s (%s)", exc.status.name, exc)
        return 1

    status = run_filter(buffer, params)
    logger.info("Filter status = %s", status.name)
    if status is not Status.SUCCESS:
        return 1

    try:
        save_image(buffer, output_path)
    except ImageProcError as exc:
        logger.error("Save failed: %s (%s)", exc.status.name, exc)
        return 1
    logger.info("Save image status = %s", Status.SUCCESS.name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
