# kalman_filter.py

from dataclasses import dataclass


@dataclass
class FilterState:
    position: float
    velocity: float


class KalmanFilter1D:
    """
    Scalar Kalman filter tracking position under a constant-velocity motion model.
    Velocity is carried in the state but never corrected by update().
    """

    def __init__(self, initial_position=0.0, initial_velocity=0.0,
                 measurement_variance=1.0, process_variance=1e-4):
        self.state = FilterState(initial_position, initial_velocity)
        self.P = 1.0
        self.R = measurement_variance
        self.Q = process_variance
        self.K = 0.0

    @property
    def position(self):
        return self.state.position

    def predict(self, dt):
        self.state.position += self.state.velocity * dt
        self.P += self.Q

    def update(self, measured_position):
        self.K = self.P / (self.P + self.R)
        self.state.position += self.K * (measured_position - self.state.position)
        self.P = (1 - self.K) * self.P
        return self.state.position
