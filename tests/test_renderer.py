import numpy as np
import pytest
import supervision as sv

from estimation.noise import UniformNoise
from estimation.renderer import FrameSequence, clip_segment, render_frame, to_pixel
from estimation.simulator import SimulationResult, Tick, simulate

WHITE = [255, 255, 255]
RED_BGR = [0, 0, 255]
BLUE_BGR = [255, 0, 0]
GREEN_BGR = [0, 128, 0]


def test_to_pixel_inverts_y_axis():
    point = to_pixel(2.0, 3.0, 100, 10.0)
    assert (point.x, point.y) == (20.0, 70.0)
    origin = to_pixel(0.0, 0.0, 100, 10.0)
    assert (origin.x, origin.y) == (0.0, 100.0)


def test_empty_frame_is_white():
    frame = render_frame([], 64, 1.0)
    assert frame.shape == (64, 64, 3)
    assert frame.dtype == np.uint8
    assert (frame == 255).all()


def test_measurement_marker_is_blue():
    frame = render_frame([Tick(0.0, 0.0, 5.0, 0.0)], 100, 10.0)
    # time 0 -> x 0, position 5 -> y 50
    assert frame[50, 0].tolist() == BLUE_BGR
    assert frame[50, 1].tolist() == BLUE_BGR


def test_paths_use_their_colours():
    ticks = [Tick(1.0, 1.0, 9.0, 9.0), Tick(5.0, 1.0, 9.0, 9.0)]
    frame = render_frame(ticks, 100, 10.0)
    # horizontal truth line at y = 100 - 10 = 90 from x 10 to 50
    assert frame[90, 30].tolist() == RED_BGR
    assert frame[10, 30].tolist() == GREEN_BGR  # estimate path at y 10


def test_layering_matches_draw_order():
    # truth and estimate coincide on y = 90, measurements sit on the same line
    ticks = [Tick(1.0, 1.0, 1.0, 1.0), Tick(5.0, 1.0, 1.0, 1.0)]
    frame = render_frame(ticks, 100, 10.0)
    assert frame[90, 30].tolist() == GREEN_BGR
    assert frame[90, 10].tolist() == BLUE_BGR
    assert frame[90, 50].tolist() == BLUE_BGR


def test_fast_object_is_clipped_to_canvas():
    result = simulate(10.0, 0.1, 1e8, 2.0, 4.0, 0.01, noise=UniformNoise(0))
    frames = FrameSequence(result, 50, 5.0)
    first = next(iter(frames))
    assert first.shape == (50, 50, 3)
    last = list(frames)[-1]
    assert last.shape == (50, 50, 3)
    # every point lies far above the canvas
    assert (last == WHITE).all()


def test_partly_visible_segment_keeps_its_slope():
    ticks = [Tick(0.0, 0.0, -1.0, -1.0), Tick(10.0, 1e12, -1.0, -1.0)]
    frame = render_frame(ticks, 100, 10.0)
    expected = render_frame([Tick(0.0, 0.0, -1.0, -1.0)], 100, 10.0)
    # a near-vertical line from the bottom-left corner upwards
    assert frame[50, 0].tolist() == RED_BGR
    np.testing.assert_array_equal(frame[:, 5:], expected[:, 5:])


def test_clip_segment():
    inside = clip_segment(sv.Point(1, 1), sv.Point(5, 5), 0, 10)
    assert [(p.x, p.y) for p in inside] == [(1, 1), (5, 5)]
    clipped = clip_segment(sv.Point(-10, 5), sv.Point(20, 5), 0, 10)
    assert [(p.x, p.y) for p in clipped] == [pytest.approx((0, 5)), pytest.approx((10, 5))]
    assert clip_segment(sv.Point(-10, -10), sv.Point(-5, 20), 0, 10) is None


def test_frame_sequence_yields_one_frame_per_prefix():
    result = simulate(2.0, 0.1, 1.0, 1.0, 1.0, 0.01, noise=UniformNoise(0))
    frames = FrameSequence(result, size=80, scale=40.0)
    rendered = list(frames)
    assert len(frames) == len(result) == len(rendered) == 20
    for i, frame in enumerate(rendered):
        np.testing.assert_array_equal(frame, render_frame(result.ticks[:i + 1], 80, 40.0))


def test_frame_sequence_is_restartable():
    result = SimulationResult([Tick(0.0, 1.0, 1.0, 1.0), Tick(1.0, 2.0, 2.0, 2.0)])
    frames = FrameSequence(result, size=32, scale=8.0)
    first = list(frames)
    second = list(frames)
    assert len(first) == len(second) == 2
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)


def test_frame_sequence_does_not_mutate_result():
    result = SimulationResult([Tick(0.0, 1.0, 1.0, 1.0)])
    before = list(result.ticks)
    list(FrameSequence(result, size=16, scale=1.0))
    assert result.ticks == before
