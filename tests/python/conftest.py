import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


class SequenceSource:
    """Uniform source that replays fixed values, for pinning down draw order."""

    def __init__(self, values):
        self._values = list(values)
        self.calls = 0

    def next_float(self) -> float:
        value = self._values[self.calls]
        self.calls += 1
        return value

    def next_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.next_float()


@pytest.fixture
def sequence_source():
    return SequenceSource
