from typing import List, Optional

import numpy as np

from .energy import Size, energy_row, energy_stamp
from .errors import InvalidDimensionError


class Pattern:
    """
    Binary membership grid plus the energy LUT felt by every cell.

    lut[j] is the sum of energy(i, j) over the toggle history of every cell i,
    with +1 for a toggle on and -1 for a toggle off. rebuild() recomputes it
    from scratch to discard float32 drift.
    """

    def __init__(self, size: Size, record_snapshots: bool = False,
                 snapshots: Optional[List[np.ndarray]] = None):
        w, h = size
        if w <= 0 or h <= 0:
            raise InvalidDimensionError(f"Grid must have at least one cell, got {w}x{h}")

        self.size = (w, h)
        self.stamp = energy_stamp(self.size)
        self.bits = np.zeros(w * h, dtype=bool)
        self.lut = np.zeros(w * h, dtype=np.float32)

        self.record_snapshots = record_snapshots
        self.snapshots = snapshots if snapshots is not None else []

    def __len__(self) -> int:
        return self.bits.size

    def copy(self) -> "Pattern":
        """
        Independent copy of membership and LUT. Snapshots keep going into the
        same list so a recorded run stays in step order.
        """
        other = Pattern.__new__(Pattern)
        other.size = self.size
        other.stamp = self.stamp
        other.bits = self.bits.copy()
        other.lut = self.lut.copy()
        other.record_snapshots = self.record_snapshots
        other.snapshots = self.snapshots
        return other

    def count_ones(self) -> int:
        return int(np.count_nonzero(self.bits))

    def toggle(self, index: int, value: bool):
        """
        Set bits[index] and push its energy into every cell, positive when
        switching on and negative when switching off.

        Setting a bit to its current value still applies the delta.
        """
        self.bits[index] = value
        row = energy_row(self.stamp, index)
        if value:
            self.lut += row
        else:
            self.lut -= row

        if self.record_snapshots:
            self.snapshots.append(self.bits.copy())

    def rebuild(self, target_bit: bool):
        """
        Recompute the LUT from the cells whose bit equals target_bit only,
        signed +1 for True and -1 for False. Membership is left alone.
        """
        self.lut.fill(0.0)
        for index in np.flatnonzero(self.bits == target_bit):
            row = energy_row(self.stamp, int(index))
            if target_bit:
                self.lut += row
            else:
                self.lut -= row

    def find_extremum(self, want_on: bool) -> Optional[int]:
        """
        Highest-energy on cell (want_on=True) or lowest-energy off cell
        (want_on=False). Ties go to the first index in row-major order.
        Returns None when no cell has the wanted bit.
        """
        mask = self.bits == want_on
        if not mask.any():
            return None

        # argmax/argmin return the first occurrence of the extreme value
        if want_on:
            candidates = np.where(mask, self.lut, -np.inf)
            return int(np.argmax(candidates))
        candidates = np.where(mask, self.lut, np.inf)
        return int(np.argmin(candidates))

    def tightest_cluster(self) -> Optional[int]:
        return self.find_extremum(True)

    def largest_void(self) -> Optional[int]:
        return self.find_extremum(False)
