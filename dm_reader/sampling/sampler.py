import logging
import numpy as np

from ..errors import DimensionMismatch
from ..extraction.pixel_buffer import PixelBuffer, Polarity
from ..geometry.grid_fitter import Grid
from ..location.boundary_locator import BoundaryRange
from ..location.module_size import ModuleSize

logger = logging.getLogger(__name__)


class ModuleSampler:

    @staticmethod
    def _bit(buffer: PixelBuffer, x_start: int, y_start: int, x_end: int, y_end: int) -> int:
        count = buffer.count(x_start, y_start, x_end, y_end)
        return Polarity.DARK.bit if count.majority is Polarity.DARK else Polarity.LIGHT.bit

    @staticmethod
    def _check(matrix: np.ndarray, rows: int, cols: int) -> np.ndarray:
        if matrix.shape != (rows, cols):
            raise DimensionMismatch(f"Decoded matrix {matrix.shape} does not match grid {(rows, cols)}")
        return matrix

    def sample(self, buffer: PixelBuffer, grid: Grid) -> np.ndarray:
        """Majority polarity around every fitted module center, 1 for DARK."""
        rows, cols = grid.shape
        matrix = np.zeros((rows, cols), dtype=np.uint8)

        for r, row in enumerate(grid.rows):
            for c, module in enumerate(row):
                rx = module.width / 2
                ry = module.height / 2
                matrix[r, c] = self._bit(
                    buffer,
                    int(round(module.x - rx)), int(round(module.y - ry)),
                    int(round(module.x + rx)), int(round(module.y + ry))
                )

        return self._check(matrix, rows, cols)

    def sample_uniform(self, buffer: PixelBuffer, boundary: BoundaryRange, size: ModuleSize) -> np.ndarray:
        """Sample a regular grid spanned by the boundary, without any local search."""
        width = size.width
        height = size.height
        cols = int(round((boundary.x_last - boundary.x_first) / width + 1))
        rows = int(round((boundary.y_last - boundary.y_first) / height + 1))
        logger.debug("Uniform grid %dx%d", rows, cols)

        matrix = np.zeros((max(rows, 0), max(cols, 0)), dtype=np.uint8)
        for r in range(rows):
            y_start = int(round(boundary.y_first + (r - 0.5) * height))
            y_end = y_start + int(round(height))
            for c in range(cols):
                x_start = int(round(boundary.x_first + (c - 0.5) * width))
                x_end = x_start + int(round(width))
                matrix[r, c] = self._bit(buffer, x_start, y_start, x_end, y_end)

        return self._check(matrix, max(rows, 0), max(cols, 0))
