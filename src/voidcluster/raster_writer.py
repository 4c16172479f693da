import os
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from .encoder import NoiseEncoder


class RasterWriter:
    @staticmethod
    def write_noise_png(noise: np.ndarray, size: Tuple[int, int], path: str) -> str:
        """
        Writes a row-major 8-bit grayscale buffer as a PNG.
        noise: (N,) uint8
        size: (width, height)
        """
        pixels = NoiseEncoder.to_image_array(np.asarray(noise, dtype=np.uint8), size)
        return RasterWriter._save(pixels, path)

    @staticmethod
    def write_snapshot_pngs(snapshots: Sequence[np.ndarray], size: Tuple[int, int], prefix: str) -> List[str]:
        """
        Writes each membership snapshot as a black/white PNG named
        {prefix}{i}.png. Returns the written paths in order.
        """
        paths = []
        for i, bits in enumerate(snapshots):
            pixels = NoiseEncoder.to_image_array(NoiseEncoder.encode_snapshot(bits), size)
            paths.append(RasterWriter._save(pixels, f"{prefix}{i}.png"))
        return paths

    @staticmethod
    def load_grayscale(path: str) -> np.ndarray:
        """
        Loads any image Pillow can read as a (height, width) uint8 array.
        """
        try:
            img = Image.open(path)
            img.load() # Force load
        except Exception as e:
            raise ValueError(f"Failed to load image from file: {e}")

        if img.mode != 'L':
            img = img.convert('L')
        return np.array(img, dtype=np.uint8)

    @staticmethod
    def _save(pixels: np.ndarray, path: str) -> str:
        out_dir = os.path.dirname(path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        try:
            Image.fromarray(pixels.astype(np.uint8)).save(path)
        except Exception as e:
            raise ValueError(f"Failed to write image {path}: {e}")
        return path
