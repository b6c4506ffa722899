# simulator.py

import logging
import math
from dataclasses import dataclass

import numpy as np

from estimation.errors import InvalidNoiseModel, InvalidTimeStep
from estimation.kalman_filter import KalmanFilter1D
from estimation.noise import UniformNoise

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tick:
    time: float
    true_position: float
    measured_position: float
    estimated_position: float


class SimulationResult:
    def __init__(self, ticks=None):
        self.ticks = list(ticks or [])

    def __len__(self):
        return len(self.ticks)

    def __iter__(self):
        return iter(self.ticks)

    def __getitem__(self, index):
        return self.ticks[index]

    def as_array(self):
        """Return an (n, 4) array of time, true, measured, estimated."""
        if not self.ticks:
            return np.empty((0, 4), dtype=np.float64)
        return np.array(
            [(t.time, t.true_position, t.measured_position, t.estimated_position) for t in self.ticks],
            dtype=np.float64,
        )

    def rmse_measured(self):
        data = self.as_array()
        if len(data) == 0:
            return 0.0
        return float(np.sqrt(np.mean((data[:, 2] - data[:, 1]) ** 2)))

    def rmse_estimated(self):
        data = self.as_array()
        if len(data) == 0:
            return 0.0
        return float(np.sqrt(np.mean((data[:, 3] - data[:, 1]) ** 2)))

    def max_estimation_error(self):
        data = self.as_array()
        if len(data) == 0:
            return 0.0
        return float(np.max(np.abs(data[:, 3] - data[:, 1])))


def validate_parameters(total_time, dt, sensor_noise_stddev, R, Q):
    # "not x > 0" also rejects NaN
    if not dt > 0:
        raise InvalidTimeStep(f"dt must be positive, got {dt}")
    if not total_time > 0:
        raise InvalidTimeStep(f"total_time must be positive, got {total_time}")
    if not R > 0:
        raise InvalidNoiseModel(f"measurement noise variance R must be positive, got {R}")
    if not Q >= 0:
        raise InvalidNoiseModel(f"process noise variance Q must be non-negative, got {Q}")
    if not sensor_noise_stddev >= 0:
        raise InvalidNoiseModel(f"sensor noise must be non-negative, got {sensor_noise_stddev}")


def simulate(total_time, dt, velocity, sensor_noise_stddev, R, Q, noise=None):
    """
    Run the constant-velocity tracking simulation.

    Ground truth starts at 0 and is advanced before each record, so the first
    tick already holds one step of motion. Measurements are truth plus a
    uniform offset in (-sensor_noise_stddev, sensor_noise_stddev).
    """
    validate_parameters(total_time, dt, sensor_noise_stddev, R, Q)
    if noise is None:
        noise = UniformNoise()

    steps = int(total_time / dt)
    if not math.isclose(steps * dt, total_time):
        logger.warning("total_time=%s is not a multiple of dt=%s; dropping the final partial step",
                       total_time, dt)
    logger.debug("Simulating %d steps", steps)

    true_position = 0.0
    kalman = KalmanFilter1D(0.0, velocity, R, Q)
    result = SimulationResult()

    for step in range(steps):
        time = step * dt
        true_position += velocity * dt

        offset = noise.sample(-sensor_noise_stddev, sensor_noise_stddev)
        measured_position = true_position + offset

        kalman.predict(dt)
        kalman.update(measured_position)

        result.ticks.append(Tick(time, true_position, measured_position, kalman.position))

    return result


def simulate_config(config, noise=None):
    """Validate a SimulationConfig, canvas settings included, and run it."""
    validate_parameters(config.total_time, config.dt, config.sensor_noise_stddev,
                        config.R, config.process_variance)
    config.validate_presentation()
    if noise is None:
        noise = UniformNoise(config.seed)
    return simulate(
        config.total_time,
        config.dt,
        config.velocity,
        config.sensor_noise_stddev,
        config.R,
        config.process_variance,
        noise=noise,
    )
