# renderer.py

import logging

import cv2
import numpy as np
import supervision as sv

logger = logging.getLogger(__name__)

TRUE_COLOR = sv.Color(255, 0, 0)
ESTIMATED_COLOR = sv.Color(0, 128, 0)
MEASURED_COLOR = sv.Color(0, 0, 255)
BACKGROUND = (255, 255, 255)
LINE_THICKNESS = 2
MARKER_RADIUS = 2
CLIP_MARGIN = 2 * LINE_THICKNESS


def to_pixel(time, position, size, scale):
    """Map (time, position) to canvas pixels; position grows upwards."""
    return sv.Point(x=time * scale, y=size - position * scale)


def clip_segment(start, end, low, high):
    """
    Clip a segment to the square [low, high] x [low, high] (Liang-Barsky).
    Returns the clipped (start, end) or None when nothing is visible.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, start.x - low), (dx, high - start.x),
                 (-dy, start.y - low), (dy, high - start.y)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            t0 = max(t0, t)
        else:
            t1 = min(t1, t)
        if t0 > t1:
            return None
    if t0 > 0.0:
        start = sv.Point(x=start.x + t0 * dx, y=start.y + t0 * dy)
    if t1 < 1.0:
        end = sv.Point(x=end.x - (1.0 - t1) * dx, y=end.y - (1.0 - t1) * dy)
    return start, end


def draw_path(frame, points, color):
    size = frame.shape[0]
    # OpenCV needs int32 coordinates; keep a margin so line caps stay intact
    low, high = -CLIP_MARGIN, size + CLIP_MARGIN
    for start, end in zip(points, points[1:]):
        clipped = clip_segment(start, end, low, high)
        if clipped is None:
            continue
        sv.draw_line(scene=frame, start=clipped[0], end=clipped[1], color=color, thickness=LINE_THICKNESS)


def render_frame(ticks, size, scale):
    """Draw truth, estimate and measurements for the given ticks on a white BGR canvas."""
    frame = np.full((size, size, 3), BACKGROUND, dtype=np.uint8)

    true_points = [to_pixel(t.time, t.true_position, size, scale) for t in ticks]
    estimated_points = [to_pixel(t.time, t.estimated_position, size, scale) for t in ticks]

    draw_path(frame, true_points, TRUE_COLOR)
    draw_path(frame, estimated_points, ESTIMATED_COLOR)

    for t in ticks:
        center = to_pixel(t.time, t.measured_position, size, scale)
        if not (-MARKER_RADIUS <= center.x <= size + MARKER_RADIUS
                and -MARKER_RADIUS <= center.y <= size + MARKER_RADIUS):
            continue
        cv2.circle(frame, center.as_xy_int_tuple(), MARKER_RADIUS, MEASURED_COLOR.as_bgr(), thickness=-1)

    return frame


class FrameSequence:
    """
    Lazily renders one frame per prefix of a simulation result.
    Each iteration starts over from the first tick.
    """

    def __init__(self, result, size, scale):
        self.result = result
        self.size = size
        self.scale = scale

    def __len__(self):
        return len(self.result)

    def __iter__(self):
        ticks = list(self.result)
        total = len(ticks)
        for i in range(total):
            if i % 10 == 9:
                logger.info("%d/%d frames", i + 1, total)
            yield render_frame(ticks[:i + 1], self.size, self.scale)
