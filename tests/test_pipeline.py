import numpy as np
import pytest

from raster.buffer import ChannelLayout, PixelBuffer
from raster.errors import InvalidArgument, OutOfMemory, Status
from raster.pipeline import FilterParams, Tool, apply_filter, apply_pipeline, parse_steps, run_filter


@pytest.mark.parametrize("name, tool", [
    ("gauss", Tool.GAUSS), ("blur", Tool.GAUSS), ("MEDIAN", Tool.MEDIAN),
    ("edge_detection", Tool.EDGE_DETECTION), ("edges", Tool.EDGE_DETECTION),
    (" grayscale ", Tool.GRAYSCALE),
])
def test_tool_parse(name, tool):
    assert Tool.parse(name) is tool


def test_tool_parse_unknown():
    with pytest.raises(InvalidArgument):
        Tool.parse("sharpen")


def test_from_mapping_caps_at_limits():
    p = FilterParams.from_mapping({"tool": "gauss", "sigma": "99"}, max_sigma=5.0)
    assert p.sigma == 5.0
    p = FilterParams.from_mapping({"op": "median", "radius": 3.7, "workers": 0}, max_radius=2)
    assert p.tool is Tool.MEDIAN and p.radius == 2 and p.workers == 1


@pytest.mark.parametrize("request_params", [
    {"tool": "gauss", "sigma": -3},
    {"tool": "median", "radius": -4},
])
def test_negative_request_values_are_rejected(noisy_rgb, request_params):
    params = FilterParams.from_mapping(request_params)
    before = noisy_rgb.data.copy()
    assert run_filter(noisy_rgb, params) is Status.INVALID_ARGUMENT
    assert np.array_equal(noisy_rgb.data, before)


@pytest.mark.parametrize("sigma", ["nan", "inf"])
def test_from_mapping_rejects_non_numeric_sizes(sigma):
    with pytest.raises(InvalidArgument):
        FilterParams.from_mapping({"tool": "gauss", "sigma": sigma, "radius": sigma})


def test_from_mapping_rejects_garbage():
    with pytest.raises(InvalidArgument):
        FilterParams.from_mapping({"tool": "gauss", "sigma": "lots"})


def test_describe():
    assert FilterParams(Tool.GAUSS, sigma=1.25).describe() == "gauss_s1.2"
    assert FilterParams(Tool.MEDIAN, radius=3).describe() == "median_r3"
    assert FilterParams(Tool.EDGE_DETECTION, threshold=40).describe() == "edges_t40"
    assert FilterParams(Tool.GRAYSCALE).describe() == "grayscale"


def test_run_filter_reports_success_and_channels(noisy_rgb):
    assert run_filter(noisy_rgb, FilterParams(Tool.EDGE_DETECTION)) is Status.SUCCESS
    assert noisy_rgb.channels is ChannelLayout.MONO


def test_run_filter_reports_invalid_argument(noisy_rgb):
    before = noisy_rgb.data.copy()
    assert run_filter(noisy_rgb, FilterParams(Tool.GAUSS, sigma=-1.0)) is Status.INVALID_ARGUMENT
    assert np.array_equal(noisy_rgb.data, before)


def test_run_filter_reports_out_of_memory(noisy_rgb, monkeypatch):
    def boom(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr("raster.median.np.pad", boom)
    before = noisy_rgb.data.copy()
    assert run_filter(noisy_rgb, FilterParams(Tool.MEDIAN, radius=1)) is Status.OUT_OF_MEMORY
    assert np.array_equal(noisy_rgb.data, before)


def _no_memory(*args, **kwargs):
    raise OutOfMemory("simulated allocation failure")


@pytest.mark.parametrize("target, params", [
    ("raster.kernel.allocate", FilterParams(Tool.GAUSS, sigma=1.0)),
    ("raster.conv.allocate", FilterParams(Tool.GAUSS, sigma=1.0)),
    ("raster.grayscale.allocate", FilterParams(Tool.GRAYSCALE)),
    ("raster.grayscale.allocate", FilterParams(Tool.EDGE_DETECTION)),
    ("raster.edges.allocate", FilterParams(Tool.EDGE_DETECTION)),
])
def test_allocation_failure_leaves_buffer_untouched(noisy_rgb, monkeypatch, target, params):
    monkeypatch.setattr(target, _no_memory)
    before = noisy_rgb.data.copy()
    assert run_filter(noisy_rgb, params) is Status.OUT_OF_MEMORY
    assert noisy_rgb.channels is ChannelLayout.RGB
    assert np.array_equal(noisy_rgb.data, before)


def test_failed_edge_threshold_leaves_buffer_untouched(noisy_rgb):
    before = noisy_rgb.data.copy()
    status = run_filter(noisy_rgb, FilterParams(Tool.EDGE_DETECTION, threshold=300))
    assert status is Status.INVALID_ARGUMENT
    assert noisy_rgb.channels is ChannelLayout.RGB
    assert np.array_equal(noisy_rgb.data, before)


def test_run_filter_reports_unsupported():
    buf = PixelBuffer.filled(2, 2, 3, 0)
    buf.channels = 2
    buf.data = np.zeros(8, dtype=np.uint8)
    assert run_filter(buf, FilterParams(Tool.GRAYSCALE)) is Status.UNSUPPORTED_FORMAT


@pytest.mark.parametrize("tool", list(Tool))
def test_outputs_stay_in_byte_range(noisy_rgba, tool):
    apply_filter(noisy_rgba, FilterParams(tool, sigma=1.3, radius=1))
    assert noisy_rgba.data.dtype == np.uint8
    assert noisy_rgba.data.size == noisy_rgba.width * noisy_rgba.height * int(noisy_rgba.channels)


def test_edge_threshold_applied(step_edge):
    apply_filter(step_edge, FilterParams(Tool.EDGE_DETECTION, threshold=128))
    assert set(np.unique(step_edge.data).tolist()) == {0, 255}


def test_pipeline_runs_in_order(noisy_rgb):
    steps = parse_steps([{"tool": "grayscale"}, {"tool": "median", "radius": 1}])
    assert apply_pipeline(noisy_rgb, steps) is Status.SUCCESS
    assert noisy_rgb.channels is ChannelLayout.MONO


def test_pipeline_stops_at_first_failure(noisy_rgb):
    steps = [FilterParams(Tool.GAUSS, sigma=-2.0), FilterParams(Tool.GRAYSCALE)]
    assert apply_pipeline(noisy_rgb, steps) is Status.INVALID_ARGUMENT
    assert noisy_rgb.channels is ChannelLayout.RGB
