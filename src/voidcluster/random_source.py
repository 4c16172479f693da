from typing import Iterable, Optional

import numpy as np

from .errors import RandomSourceExhausted


class NumpyRandomSource:
    """Uniform unsigned 32-bit draws from a numpy Generator."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def next_u32(self) -> int:
        return int(self._rng.integers(0, 2**32, dtype=np.uint64))


class SequenceRandomSource:
    """
    Replays a fixed list of draws. Used to reproduce a run exactly
    (and in tests to pin the seed cells).
    """

    def __init__(self, values: Iterable[int]):
        self.values = [int(v) for v in values]
        self.position = 0

    def next_u32(self) -> int:
        if self.position >= len(self.values):
            raise RandomSourceExhausted(
                f"Random sequence exhausted after {len(self.values)} draws")
        value = self.values[self.position]
        self.position += 1
        return value
