import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from .dithering import Ditherer
from .encoder import NoiseEncoder
from .random_source import NumpyRandomSource
from .raster_writer import RasterWriter
from .void_cluster import create_blue_noise

DEFAULT_OUTPUT = os.path.join("out", "blue_noise.png")
SNAPSHOT_PREFIX = "blue_noise_iter_"


def dithered_output_path(output_path: str) -> str:
    stem, ext = os.path.splitext(output_path)
    return f"{stem}_dithered{ext or '.png'}"


def generate(width: int, height: int, seed: Optional[int], output_path: str,
             snapshot_dir: Optional[str] = None, dither_path: Optional[str] = None,
             dither_map: str = "noise") -> bool:
    """
    Generate one blue noise texture and write it (plus optional snapshots
    and dithered image). Returns False if an image could not be read or written.
    """
    rng = NumpyRandomSource(seed)

    start = time.time()
    result = create_blue_noise((width, height), rng, record_snapshots=snapshot_dir is not None)
    print(f"Generated {width}x{height} blue noise in {time.time() - start:.2f}s.")

    try:
        RasterWriter.write_noise_png(result.noise, result.size, output_path)
        print(f"Saved noise to {output_path}.")

        if snapshot_dir is not None:
            prefix = os.path.join(snapshot_dir, SNAPSHOT_PREFIX)
            paths = RasterWriter.write_snapshot_pngs(result.snapshots, result.size, prefix)
            print(f"Saved {len(paths)} snapshots to {snapshot_dir}.")

        if dither_path is not None:
            image = RasterWriter.load_grayscale(dither_path)
            if dither_map == "bayer":
                threshold_map = Ditherer.BAYER_8
            else:
                threshold_map = NoiseEncoder.to_image_array(result.noise, result.size)
            dithered = Ditherer.apply_threshold_dither(image, threshold_map)

            target = dithered_output_path(output_path)
            RasterWriter.write_noise_png(dithered.ravel(), (image.shape[1], image.shape[0]), target)
            print(f"Saved dithered {os.path.basename(dither_path)} ({dither_map}) to {target}.")
    except ValueError as e:
        print(f"Error: {e}")
        return False

    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate void-and-cluster blue noise textures.")
    parser.add_argument("-W", "--width", type=int, default=64, help="Texture width in pixels")
    parser.add_argument("-H", "--height", type=int, default=None, help="Texture height in pixels (defaults to width)")
    parser.add_argument("-s", "--seed", type=int, default=None, help="Random seed for the initial pattern")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Output PNG path")
    parser.add_argument("--snapshots", metavar="DIR", help="Write the binary pattern after every step to DIR")
    parser.add_argument("--dither", metavar="IMAGE", help="Dither IMAGE with the generated noise")
    parser.add_argument("--dither-map", default="noise", choices=["noise", "bayer"],
                        help="Threshold map for --dither (bayer for comparison)")
    parser.add_argument("--trace", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.trace:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s")

    height = args.height if args.height is not None else args.width
    if args.width <= 0 or height <= 0:
        parser.error(f"width and height must be positive, got {args.width}x{height}")

    success = generate(args.width, height, args.seed, args.output,
                       snapshot_dir=args.snapshots, dither_path=args.dither,
                       dither_map=args.dither_map)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
