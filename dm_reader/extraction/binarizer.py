import logging

import cv2 as cv
import numpy as np

from .pixel_buffer import PixelBuffer, DARK_VAL, LIGHT_VAL

logger = logging.getLogger(__name__)


class Binarizer:

    def __init__(self,
                 threshold: int = 120,
                 adaptive: bool = False,
                 block_size: int = 51,
                 c: int = 4):

        if block_size % 2 == 0 or block_size < 3:
            raise ValueError(f"block_size must be an odd number >= 3, got {block_size}")

        self.threshold = threshold
        self.adaptive = adaptive
        self.block_size = block_size
        self.c = c

    @staticmethod
    def to_gray(frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 2:
            return frame.astype(np.uint8, copy=False)
        if frame.shape[2] == 4:
            return cv.cvtColor(frame, cv.COLOR_BGRA2GRAY)
        return cv.cvtColor(frame, cv.COLOR_BGR2GRAY)

    def binarize(self, frame: np.ndarray) -> PixelBuffer:
        gray = self.to_gray(frame)

        if self.adaptive:
            binary = cv.adaptiveThreshold(
                gray, LIGHT_VAL, cv.ADAPTIVE_THRESH_GAUSSIAN_C,
                cv.THRESH_BINARY, self.block_size, self.c
            )
        else:
            # Pixels strictly darker than the threshold become DARK
            _, binary = cv.threshold(gray, self.threshold - 1, LIGHT_VAL, cv.THRESH_BINARY)

        logger.debug("Binarized %dx%d frame, %d dark pixels",
                     binary.shape[1], binary.shape[0], int(np.count_nonzero(binary == DARK_VAL)))

        return PixelBuffer(binary)
