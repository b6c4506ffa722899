# noise.py

import numpy as np


class UniformNoise:
    """Draws measurement offsets uniformly from [low, high)."""

    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)

    def sample(self, low, high):
        return float(self.rng.uniform(low, high))


class ZeroNoise:
    def sample(self, low, high):
        return 0.0


class ReplayNoise:
    """Replays a fixed list of offsets, ignoring the requested range."""

    def __init__(self, values):
        self.values = list(values)
        self.index = 0

    def sample(self, low, high):
        if self.index >= len(self.values):
            raise IndexError(f"ReplayNoise exhausted after {len(self.values)} samples")
        value = self.values[self.index]
        self.index += 1
        return float(value)
