import argparse
import logging
import sys

import cv2 as cv

from dm_reader import DataMatrixPipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Locate and sample the module grid of a matrix barcode")
    parser.add_argument("image", help="Path to the input image")
    parser.add_argument("--threshold", type=int, default=120,
                        help="Gray level below which a pixel is dark (default: 120)")
    parser.add_argument("--adaptive", action="store_true", help="Use adaptive thresholding")
    parser.add_argument("--passes", type=int, default=3,
                        help="Refinement passes after the first grid fit (default: 3)")
    parser.add_argument("--uniform", action="store_true",
                        help="Sample a uniform grid instead of fitting every module")
    parser.add_argument("--overlay", help="Write fitted module centers drawn over the image to this path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    frame = cv.imread(args.image)
    if frame is None:
        print(f"Error: cannot read image {args.image}", file=sys.stderr)
        return 1

    pipeline = DataMatrixPipeline(
        threshold=args.threshold,
        adaptive=args.adaptive,
        fit_modules=not args.uniform,
        extra_passes=args.passes
    )
    result = pipeline.process_frame(frame)

    if not result.is_valid:
        print(f"Error: {result.failure}", file=sys.stderr)
        return 1

    for row in result.bits:
        print(" ".join(str(int(bit)) for bit in row))

    if args.overlay:
        output = pipeline.draw_boundary(frame, result.module_size, result.boundary)
        if result.grid is not None:
            output = pipeline.draw_positions(output, result.grid)
        cv.imwrite(args.overlay, output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
