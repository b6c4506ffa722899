# config.py

from dataclasses import dataclass


@dataclass
class SimulationConfig:
    total_time: float = 10.0
    dt: float = 0.1
    velocity: float = 1.0
    sensor_noise_stddev: float = 2.0
    measurement_variance: float = None  # defaults to sensor_noise_stddev ** 2
    process_variance: float = 0.01
    size: int = 500
    scale: float = None  # defaults to size / total_time
    fps: float = 10.0
    output_path: str = "output.gif"
    seed: int = None

    @property
    def R(self):
        if self.measurement_variance is None:
            return self.sensor_noise_stddev ** 2
        return self.measurement_variance

    @property
    def pixel_scale(self):
        if self.scale is None:
            return self.size / self.total_time
        return self.scale

    def validate_presentation(self):
        """Reject canvas settings that cannot produce frames."""
        if not self.size > 0:
            raise ValueError(f"size must be a positive pixel count, got {self.size}")
        if self.scale is not None and not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not self.fps > 0:
            raise ValueError(f"fps must be positive, got {self.fps}")

    @classmethod
    def from_mapping(cls, mapping):
        """Build a config from form/JSON values; empty strings keep the default."""
        types = {
            "total_time": float,
            "dt": float,
            "velocity": float,
            "sensor_noise_stddev": float,
            "measurement_variance": float,
            "process_variance": float,
            "size": int,
            "scale": float,
            "fps": float,
            "output_path": str,
            "seed": int,
        }
        kwargs = {}
        for key, value in mapping.items():
            if key not in types:
                raise ValueError(f"Unknown parameter: {key}")
            if value is None or value == "":
                continue
            try:
                kwargs[key] = types[key](value)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid value for {key}: {value!r}")
        return cls(**kwargs)
