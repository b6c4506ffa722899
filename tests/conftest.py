import os
import tempfile

import pytest

# app.py reads these at import time
_tmp = tempfile.mkdtemp(prefix="kalman-tests-")
os.environ.setdefault("KALMAN_DATABASE_URL", "sqlite:///" + os.path.join(_tmp, "test.db"))
os.environ.setdefault("KALMAN_ANIMATION_DIR", os.path.join(_tmp, "animations"))


class FakeWriteGear:
    """Stand-in for vidgear's WriteGear that keeps frames in memory."""

    instances = []

    def __init__(self, output, compression_mode=True, logging=False, **output_params):
        self.output = output
        self.output_params = output_params
        self.frames = []
        self.closed = False
        FakeWriteGear.instances.append(self)

    def write(self, frame, rgb_mode=False):
        self.frames.append(frame.copy())

    def close(self):
        self.closed = True
        with open(self.output, "wb") as f:
            f.write(b"GIF89a")


@pytest.fixture
def fake_writer(monkeypatch):
    import estimation.encoder

    FakeWriteGear.instances = []
    monkeypatch.setattr(estimation.encoder, "WriteGear", FakeWriteGear)
    return FakeWriteGear
