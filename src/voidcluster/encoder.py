import numpy as np

from .energy import Size


class NoiseEncoder:
    @staticmethod
    def encode_ranks(ranks: np.ndarray) -> np.ndarray:
        """
        Maps ranks 0..N-1 to 8-bit intensities: rank * 256 // N.
        ranks: (N,) ints, row-major
        Returns: (N,) uint8
        """
        ranks = np.asarray(ranks, dtype=np.int64)
        n = ranks.size
        return (ranks * 256 // n).astype(np.uint8)

    @staticmethod
    def encode_snapshot(bits: np.ndarray) -> np.ndarray:
        """On cells -> 255, off cells -> 0."""
        return np.where(np.asarray(bits, dtype=bool), 255, 0).astype(np.uint8)

    @staticmethod
    def to_image_array(buffer: np.ndarray, size: Size) -> np.ndarray:
        """Flat row-major buffer -> (height, width) array."""
        w, h = size
        return np.asarray(buffer).reshape(h, w)
