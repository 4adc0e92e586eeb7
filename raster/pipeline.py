# raster/pipeline.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from raster.buffer import PixelBuffer
from raster.conv import gaussian_blur
from raster.edges import sobel_edges
from raster.errors import InvalidArgument, Status, status_of
from raster.grayscale import grayscale
from raster.median import median_filter
from utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PARAMETER = 5.0
MAX_SIGMA = 50.0
MAX_MEDIAN_RADIUS = 50


class Tool(str, Enum):
    GAUSS = "gauss"
    MEDIAN = "median"
    EDGE_DETECTION = "edge_detection"
    GRAYSCALE = "grayscale"

    @classmethod
    def parse(cls, name: str) -> "Tool":
        key = (name or "").strip().lower()
        aliases = {"blur": cls.GAUSS, "gaussian": cls.GAUSS, "edges": cls.EDGE_DETECTION,
                   "sobel": cls.EDGE_DETECTION, "gray": cls.GRAYSCALE}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise InvalidArgument(f"unknown tool: {name!r}") from None


@dataclass
class FilterParams:
    """
    One filter invocation.
      - sigma: gaussian std-dev (gauss)
      - radius: median window half-size (median)
      - threshold: optional binarisation of the edge map (edge_detection)
      - workers: channel workers for the median filter
    """
    tool: Tool
    sigma: float = DEFAULT_PARAMETER
    radius: int = int(DEFAULT_PARAMETER)
    threshold: Optional[float] = None
    workers: int = 1

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any],
                     max_sigma: float = MAX_SIGMA,
                     max_radius: int = MAX_MEDIAN_RADIUS,
                     workers: int = 1) -> "FilterParams":
        """
        Build params from loosely typed request data.
        Optional keys: tool, sigma, radius, threshold, workers
        sigma and radius are capped at the configured maximum; negative
        values are kept so the filter rejects them.
        """
        tool = Tool.parse(params.get("tool") or params.get("op") or "")
        try:
            sigma = float(params.get("sigma", DEFAULT_PARAMETER))
            radius = int(float(params.get("radius", DEFAULT_PARAMETER)))
            th = params.get("threshold", None)
            threshold = None if th is None else max(0.0, min(255.0, float(th)))
            workers = int(params.get("workers", workers))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidArgument(f"bad filter parameter: {exc}") from None
        if math.isnan(sigma):
            raise InvalidArgument("sigma must be a number, got nan")
        return cls(tool=tool,
                   sigma=min(float(max_sigma), sigma),
                   radius=min(int(max_radius), radius),
                   threshold=threshold,
                   workers=max(1, workers))

    def describe(self) -> str:
        if self.tool is Tool.GAUSS:
            return f"gauss_s{self.sigma:.1f}"
        if self.tool is Tool.MEDIAN:
            return f"median_r{self.radius}"
        if self.tool is Tool.EDGE_DETECTION and self.threshold is not None:
            return f"edges_t{int(self.threshold)}"
        return self.tool.value


def apply_filter(buffer: PixelBuffer, params: FilterParams) -> PixelBuffer:
    """Run one filter on ``buffer``; raises ImageProcError subclasses on failure."""
    tool = params.tool
    if tool is Tool.GAUSS:
        return gaussian_blur(buffer, params.sigma)
    if tool is Tool.MEDIAN:
        return median_filter(buffer, params.radius, workers=params.workers)
    if tool is Tool.EDGE_DETECTION:
        return sobel_edges(buffer, threshold=params.threshold)
    if tool is Tool.GRAYSCALE:
        return grayscale(buffer)
    raise InvalidArgument(f"unknown tool: {tool!r}")


def run_filter(buffer: PixelBuffer, params: FilterParams) -> Status:
    """Exception-free boundary: apply one filter and report a Status."""
    try:
        apply_filter(buffer, params)
    except Exception as exc:
        status = status_of(exc)
        if status is Status.INTERNAL:
            logger.exception("%s failed unexpectedly", params.describe())
        else:
            logger.warning("%s failed: %s (%s)", params.describe(), status.name, exc)
        return status
    logger.info("%s applied to %dx%d image -> %d channel(s)",
                params.describe(), buffer.width, buffer.height, int(buffer.channels))
    return Status.SUCCESS


def apply_pipeline(buffer: PixelBuffer, steps: Iterable[FilterParams]) -> Status:
    """
    Run filters in order, stopping at the first failure.
    Later steps see the channel count left by earlier ones
    (grayscale / edge detection leave a single channel).
    """
    status = Status.SUCCESS
    for step in steps:
        status = run_filter(buffer, step)
        if status is not Status.SUCCESS:
            break
    return status


def parse_steps(raw: Iterable[Dict[str, Any]], **limits) -> List[FilterParams]:
    return [FilterParams.from_mapping(step, **limits) for step in raw]
