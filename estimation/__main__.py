# __main__.py

import argparse
import logging
import sys

from estimation.config import SimulationConfig
from estimation.encoder import encode_animation
from estimation.renderer import FrameSequence
from estimation.simulator import simulate_config


def parse_args(argv=None):
    defaults = SimulationConfig()
    ap = argparse.ArgumentParser(
        prog="python -m estimation",
        description="Simulate 1-D Kalman tracking and render it as an animated GIF.",
    )
    ap.add_argument("--total-time", type=float, default=defaults.total_time)
    ap.add_argument("--dt", type=float, default=defaults.dt)
    ap.add_argument("--velocity", type=float, default=defaults.velocity)
    ap.add_argument("--noise", type=float, default=defaults.sensor_noise_stddev,
                    help="half-width of the uniform measurement noise")
    ap.add_argument("--r", type=float, default=None,
                    help="assumed measurement noise variance (default: noise**2)")
    ap.add_argument("--q", type=float, default=defaults.process_variance,
                    help="assumed process noise variance")
    ap.add_argument("--size", type=int, default=defaults.size)
    ap.add_argument("--scale", type=float, default=None,
                    help="pixels per unit (default: size / total-time)")
    ap.add_argument("--fps", type=float, default=defaults.fps)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--output", default=defaults.output_path)
    return ap.parse_args(argv)


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    config = SimulationConfig(
        total_time=args.total_time,
        dt=args.dt,
        velocity=args.velocity,
        sensor_noise_stddev=args.noise,
        measurement_variance=args.r,
        process_variance=args.q,
        size=args.size,
        scale=args.scale,
        fps=args.fps,
        output_path=args.output,
        seed=args.seed,
    )

    logging.info("Simulating...")
    try:
        result = simulate_config(config)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logging.info("Rendering frames...")
    frames = FrameSequence(result, config.size, config.pixel_scale)

    logging.info("Encoding GIF...")
    encode_animation(frames, config.output_path, fps=config.fps)

    print(f"Output saved to {config.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
