# encoder.py

import logging
import os
import queue
import threading

from vidgear.gears import WriteGear

logger = logging.getLogger(__name__)

QUEUE_MAXSIZE = 32


def gif_output_params(fps):
    return {
        "-input_framerate": fps,
        "-vcodec": "gif",
        "-pix_fmt": "rgb8",
        "-loop": 0,
    }


def frame_producer(frames, frame_queue, stop_event, errors):
    """Render frames into frame_queue until exhausted or stopped."""
    try:
        for frame in frames:
            while not stop_event.is_set():
                try:
                    frame_queue.put(frame, timeout=1)
                    break
                except queue.Full:
                    logger.debug("Frame queue is full; waiting for writer")
            if stop_event.is_set():
                return
    except Exception as e:
        errors.append(e)
    finally:
        # Signal the end of frames
        frame_queue.put(None)


def encode_animation(frames, output_path, fps=10):
    """
    Write frames, in order, to an animated image at output_path.
    Returns the number of frames written.
    """
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    frame_queue = queue.Queue(maxsize=QUEUE_MAXSIZE)
    stop_event = threading.Event()
    errors = []

    t_producer = threading.Thread(target=frame_producer, args=(frames, frame_queue, stop_event, errors))
    t_producer.start()

    written = 0
    writer = None
    try:
        writer = WriteGear(output=output_path, compression_mode=True, logging=False,
                           **gif_output_params(fps))
        while True:
            frame = frame_queue.get()
            if frame is None:
                break
            writer.write(frame)
            written += 1
    except Exception as e:
        raise RuntimeError(f"Failed to encode animation to {output_path}") from e
    finally:
        stop_event.set()
        # Drain so a blocked producer can finish
        while t_producer.is_alive():
            try:
                frame_queue.get(timeout=0.1)
            except queue.Empty:
                pass
        t_producer.join()
        if writer is not None:
            writer.close()

    if errors:
        raise RuntimeError("Frame rendering failed") from errors[0]

    logger.info("Wrote %d frames to %s", written, output_path)
    return written
