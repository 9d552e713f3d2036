import logging

import cv2 as cv
import numpy as np
from typing import Optional
from dataclasses import dataclass

from dm_reader.config import FitterConfig, GridConfig
from dm_reader.errors import DecodeError
from dm_reader.extraction.binarizer import Binarizer
from dm_reader.extraction.pixel_buffer import PixelBuffer
from dm_reader.location.module_size import ModuleSizeEstimator, ModuleSize
from dm_reader.location.boundary_locator import BoundaryLocator, BoundaryRange
from dm_reader.geometry.module_fitter import ModuleFitter
from dm_reader.geometry.grid_fitter import GridFitter, Grid
from dm_reader.sampling.sampler import ModuleSampler

logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    module_size: Optional[ModuleSize]
    boundary: Optional[BoundaryRange]
    grid: Optional[Grid]
    matrix: Optional[np.ndarray]
    uniform_matrix: Optional[np.ndarray]
    is_valid: bool
    failure: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "DecodeResult":
        return cls(None, None, None, None, None, is_valid=False, failure=reason)

    @property
    def bits(self) -> Optional[np.ndarray]:
        return self.matrix if self.matrix is not None else self.uniform_matrix


class DataMatrixPipeline:

    def __init__(self,
                 threshold: int = 120,
                 adaptive: bool = False,
                 fit_modules: bool = True,
                 extra_passes: int = 3,
                 value_ratio: float = 0.7,
                 count_ratio: float = 0.87,
                 perpendicular_ratio: float = 1.0,
                 move_limit_ratio: float = 0.5,
                 bound_ratio: float = 0.5,
                 correct_runs: bool = True,
                 tolerance: Optional[float] = None):

        self.binarizer = Binarizer(threshold=threshold, adaptive=adaptive)
        self.fit_modules = fit_modules

        self.fitter_config = FitterConfig(
            value_ratio=value_ratio,
            count_ratio=count_ratio,
            perpendicular_ratio=perpendicular_ratio,
            move_limit_ratio=move_limit_ratio,
            bound_ratio=bound_ratio
        )
        self.grid_config = GridConfig(
            extra_passes=extra_passes,
            correct_runs=correct_runs,
            tolerance=tolerance
        )

        self.estimator = ModuleSizeEstimator()
        self.locator = BoundaryLocator()
        self.grid_fitter = GridFitter(
            fitter=ModuleFitter(self.fitter_config),
            estimator=self.estimator,
            config=self.grid_config
        )
        self.sampler = ModuleSampler()

    def decode(self, buffer: PixelBuffer) -> DecodeResult:
        """Decode a binarized buffer. Raises DecodeError subclasses on fatal failures."""
        size = self.estimator.estimate(buffer)
        boundary = self.locator.locate(buffer, size)
        uniform = self.sampler.sample_uniform(buffer, boundary, size)

        grid = None
        matrix = None
        if self.fit_modules:
            grid = self.grid_fitter.fit(buffer, size, boundary)
            matrix = self.sampler.sample(buffer, grid)
            logger.debug("Fitted %s grid with %d bad modules", grid.shape, grid.bad_count)

        return DecodeResult(
            module_size=size,
            boundary=boundary,
            grid=grid,
            matrix=matrix,
            uniform_matrix=uniform,
            is_valid=True
        )

    def process_frame(self, frame: np.ndarray) -> DecodeResult:
        buffer = self.binarizer.binarize(frame)

        try:
            return self.decode(buffer)
        except DecodeError as e:
            logger.warning("Decoding failed: %s", e)
            return DecodeResult.failed(str(e))

    @staticmethod
    def draw_positions(frame: np.ndarray, grid: Grid, radius: int = 5) -> np.ndarray:
        output = frame.copy()
        if output.ndim == 2:
            output = cv.cvtColor(output, cv.COLOR_GRAY2BGR)

        for module in grid:
            color = (0, 0, 255) if module.bad else (0, 255, 0)
            cv.circle(output, (int(round(module.x)), int(round(module.y))), radius, color, 1)

        return output

    @staticmethod
    def draw_boundary(frame: np.ndarray, size: ModuleSize, boundary: BoundaryRange,
                      color: tuple = (0, 255, 0)) -> np.ndarray:
        output = frame.copy()
        if output.ndim == 2:
            output = cv.cvtColor(output, cv.COLOR_GRAY2BGR)
        h, w = output.shape[:2]

        # Lines sit on module edges, half a module before each center
        y_limit = boundary.y_last + size.height / 2
        y = boundary.y_first - size.height / 2
        while y <= y_limit:
            cv.line(output, (0, int(round(y))), (w, int(round(y))), color, 1)
            y += size.height

        x_limit = boundary.x_last + size.width / 2
        x = boundary.x_first - size.width / 2
        while x <= x_limit:
            cv.line(output, (int(round(x)), 0), (int(round(x)), h), color, 1)
            x += size.width

        return output

    @staticmethod
    def render_matrix(matrix: np.ndarray, module_px: int = 10) -> np.ndarray:
        """Render a bit matrix as a grayscale image, dark modules black."""
        image = np.where(matrix.astype(bool), 0, 255).astype(np.uint8)
        return np.kron(image, np.ones((module_px, module_px), dtype=np.uint8))
