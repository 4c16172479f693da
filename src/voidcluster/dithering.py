import numpy as np

class Ditherer:
    # 8x8 Bayer Matrix, scaled to 0..255 thresholds
    BAYER_8 = (np.array([
        [ 0, 32,  8, 40,  2, 34, 10, 42],
        [48, 16, 56, 24, 50, 18, 58, 26],
        [12, 44,  4, 36, 14, 46,  6, 38],
        [60, 28, 52, 20, 62, 30, 54, 22],
        [ 3, 35, 11, 43,  1, 33,  9, 41],
        [51, 19, 59, 27, 49, 17, 57, 25],
        [15, 47,  7, 39, 13, 45,  5, 37],
        [63, 31, 55, 23, 61, 29, 53, 21]
    ], dtype=np.int32) * 4).astype(np.uint8)

    @staticmethod
    def tile_threshold_map(threshold_map: np.ndarray, shape) -> np.ndarray:
        """
        Repeats a (h, w) threshold map to cover `shape` = (height, width).
        """
        h, w = shape
        map_h, map_w = threshold_map.shape
        tiles_y = (h + map_h - 1) // map_h
        tiles_x = (w + map_w - 1) // map_w
        return np.tile(threshold_map, (tiles_y, tiles_x))[:h, :w]

    @staticmethod
    def apply_threshold_dither(image: np.ndarray, threshold_map: np.ndarray = None) -> np.ndarray:
        """
        Ordered dithering of a grayscale image to black/white.
        image: (H, W) uint8
        threshold_map: (h, w) uint8, tiled over the image. Defaults to BAYER_8.
        Returns: (H, W) uint8 with values 0 or 255
        """
        if threshold_map is None:
            threshold_map = Ditherer.BAYER_8

        tiled = Ditherer.tile_threshold_map(np.asarray(threshold_map), image.shape)
        return (image > tiled).astype(np.uint8) * 255
