import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .encoder import NoiseEncoder
from .energy import Size
from .errors import InvariantViolation
from .pattern import Pattern

logger = logging.getLogger(__name__)

# One seed draw per this many cells
SEED_FRACTION_DIVISOR = 10


@dataclass
class BlueNoiseResult:
    size: Size
    ranks: np.ndarray
    noise: np.ndarray
    snapshots: List[np.ndarray] = field(default_factory=list)


class VoidClusterDriver:
    """
    Void-and-cluster ranking over a toroidal grid (Ulichney 1993).

    The driver owns its Pattern for the whole run:
    seed -> stabilize -> rebuild(True) -> phase 1 -> phase 2
    -> rebuild(False) -> phase 3.
    `rng` is any object with a next_u32() method.
    """

    def __init__(self, size: Size, rng, record_snapshots: bool = False):
        # Raises InvalidDimensionError before any draw is made
        self.pattern = Pattern(size, record_snapshots=record_snapshots)
        self.size = self.pattern.size
        self.rng = rng
        self.ranks = np.full(len(self.pattern), -1, dtype=np.int64)
        # (phase, index, rank) in assignment order
        self.assignments: List[Tuple[int, int, int]] = []
        self.stabilize_iterations = 0

    @property
    def snapshots(self) -> List[np.ndarray]:
        return self.pattern.snapshots

    def run(self) -> np.ndarray:
        n = len(self.pattern)

        seeded = self._seed()
        logger.debug(f"[seed] {seeded} cells on ({n} cells total)")

        self._stabilize()
        logger.debug(f"[stabilize] converged after {self.stabilize_iterations} swaps")

        self.pattern.rebuild(True)
        ones = self.pattern.count_ones()

        self._phase_1(self.pattern.copy())
        logger.debug(f"[phase 1] ranked {ones} seed cells")

        ones = self._phase_2(ones)
        logger.debug(f"[phase 2] filled to {ones} cells")

        self.pattern.rebuild(False)
        self._phase_3(ones)
        logger.debug(f"[phase 3] filled remaining {n - ones} cells")

        self._check_ranks()
        logger.info(f"Ranked {self.size[0]}x{self.size[1]} void-and-cluster pattern")
        return self.ranks

    def _seed(self) -> int:
        n = len(self.pattern)
        draws = max(1, n // SEED_FRACTION_DIVISOR)
        seeded = 0
        for _ in range(draws):
            index = self.rng.next_u32() % n
            # A repeated draw is consumed but not applied: toggling an on cell
            # on again would count its energy twice.
            if self.pattern.bits[index]:
                continue
            self.pattern.toggle(index, True)
            seeded += 1
        return seeded

    def _stabilize(self):
        """
        Moves the tightest cluster into the largest void until the same cell
        is picked twice.

        float32 drift can split an exact tie between two cells so that they
        swap places forever. A membership configuration that repeats ends the
        loop as well; the pattern is then stable up to that drift.
        """
        seen = {np.packbits(self.pattern.bits).tobytes()}
        while True:
            cluster = self._require(self.pattern.tightest_cluster(), "stabilize cluster")
            self.pattern.toggle(cluster, False)

            void = self._require(self.pattern.largest_void(), "stabilize void")
            self.pattern.toggle(void, True)

            if void == cluster:
                break
            self.stabilize_iterations += 1

            key = np.packbits(self.pattern.bits).tobytes()
            if key in seen:
                logger.debug(f"[stabilize] configuration repeated after {self.stabilize_iterations} swaps")
                break
            seen.add(key)

    def _phase_1(self, working: Pattern):
        # Runs on a copy so the stabilized seed is still there for phase 2
        ones = working.count_ones()
        while ones > 0:
            index = self._require(working.tightest_cluster(), "phase 1 cluster")
            working.toggle(index, False)
            ones -= 1
            self._assign(1, index, ones)

    def _phase_2(self, ones: int) -> int:
        half = len(self.pattern) // 2
        while ones <= half:
            index = self._require(self.pattern.largest_void(), "phase 2 void")
            self.pattern.toggle(index, True)
            self._assign(2, index, ones)
            ones += 1
        return ones

    def _phase_3(self, ones: int) -> int:
        while True:
            index = self.pattern.largest_void()
            if index is None:
                break
            self.pattern.toggle(index, True)
            self._assign(3, index, ones)
            ones += 1
        return ones

    def _assign(self, phase: int, index: int, rank: int):
        self.ranks[index] = rank
        self.assignments.append((phase, index, rank))

    def _require(self, index: Optional[int], step: str) -> int:
        if index is None:
            raise InvariantViolation(
                f"No candidate cell during {step} "
                f"({self.pattern.count_ones()}/{len(self.pattern)} cells on)")
        return index

    def _check_ranks(self):
        n = len(self.pattern)
        if not np.array_equal(np.sort(self.ranks), np.arange(n)):
            raise InvariantViolation("Rank table is not a permutation of 0..N-1")


def create_blue_noise(size: Size, rng, record_snapshots: bool = False) -> BlueNoiseResult:
    """
    Generates a blue noise threshold map of the given (width, height).
    Returns ranks and the 8-bit row-major noise buffer.
    """
    driver = VoidClusterDriver(size, rng, record_snapshots=record_snapshots)
    ranks = driver.run()
    noise = NoiseEncoder.encode_ranks(ranks)
    return BlueNoiseResult(size=driver.size, ranks=ranks, noise=noise,
                           snapshots=driver.snapshots)
