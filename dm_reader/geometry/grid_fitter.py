import logging
import numpy as np
from typing import Iterator, List, Optional, Sequence, Tuple
from dataclasses import dataclass

from ..config import GridConfig
from ..errors import DimensionMismatch, InsufficientSignal
from ..extraction.pixel_buffer import PixelBuffer, Polarity
from ..location.boundary_locator import BoundaryRange
from ..location.module_size import ModuleSize, ModuleSizeEstimator
from .module_fitter import ModuleFitter, ModulePosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Grid:
    rows: Tuple[Tuple[ModulePosition, ...], ...]

    def __post_init__(self):
        for i, row in enumerate(self.rows):
            if len(row) != len(self.rows[0]):
                raise DimensionMismatch(
                    f"Grid row {i} has {len(row)} modules, expected {len(self.rows[0])}"
                )

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[ModulePosition]]) -> "Grid":
        return cls(tuple(tuple(row) for row in rows))

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.rows), len(self.rows[0]) if self.rows else 0

    def get(self, row: int, col: int) -> Optional[ModulePosition]:
        if 0 <= row < len(self.rows) and 0 <= col < len(self.rows[row]):
            return self.rows[row][col]
        return None

    def __iter__(self) -> Iterator[ModulePosition]:
        for row in self.rows:
            yield from row

    @property
    def bad_count(self) -> int:
        return sum(1 for position in self if position.bad)

    def max_displacement(self, other: "Grid") -> Optional[float]:
        """Largest center shift between two grids of equal shape, None otherwise."""
        if self.shape != other.shape:
            return None
        if not self.rows:
            return 0.0
        return max(float(np.hypot(a.x - b.x, a.y - b.y)) for a, b in zip(self, other))


class _PassState:
    """Modules fitted so far in the pass being assembled."""

    def __init__(self):
        self.rows: List[List[ModulePosition]] = []
        self.row: List[ModulePosition] = []

    def get(self, row: int, col: int) -> Optional[ModulePosition]:
        if row < 0 or col < 0:
            return None
        if row < len(self.rows):
            cells = self.rows[row]
        elif row == len(self.rows):
            cells = self.row
        else:
            return None
        return cells[col] if col < len(cells) else None


class GridFitter:

    def __init__(self,
                 fitter: Optional[ModuleFitter] = None,
                 estimator: Optional[ModuleSizeEstimator] = None,
                 config: Optional[GridConfig] = None):

        self.fitter = fitter or ModuleFitter()
        self.estimator = estimator or ModuleSizeEstimator()
        self.config = config or GridConfig()

    def seed_size(self, buffer: PixelBuffer, size: ModuleSize, boundary: BoundaryRange) -> ModuleSize:
        """Module size around the first module, falling back to the global size."""
        half = self.config.seed_region_modules / 2
        region = (
            int(round(boundary.x_first - half * size.width)),
            int(round(boundary.y_first - half * size.height)),
            int(round(self.config.seed_region_modules * size.width)),
            int(round(self.config.seed_region_modules * size.height))
        )

        try:
            return self.estimator.estimate(buffer, region=region, prior=size)
        except InsufficientSignal as e:
            logger.debug("Seed region estimate failed (%s), using global module size", e)
            return size

    def local_size(self, lookup, row: int, col: int, fallback: Tuple[float, float]) -> Tuple[float, float]:
        """
        Mean center spacing of bound neighbor pairs around ``(row, col)``.

        Only pairs whose shared side was found as an edge by both modules count.
        """
        r = self.config.radius
        widths = []
        heights = []

        for i in range(row - r, row + r + 1):
            for j in range(col - r, col + r + 1):
                module = lookup(i, j)
                if module is None or module.bad:
                    continue

                if j + 1 <= col + r:
                    right = lookup(i, j + 1)
                    if (right is not None and not right.bad
                            and module.bound.right and right.bound.left
                            and right.x > module.x):
                        widths.append(right.x - module.x)

                if i + 1 <= row + r:
                    below = lookup(i + 1, j)
                    if (below is not None and not below.bad
                            and module.bound.bottom and below.bound.top
                            and below.y > module.y):
                        heights.append(below.y - module.y)

        width = float(np.mean(widths)) if widths else fallback[0]
        height = float(np.mean(heights)) if heights else fallback[1]

        return width, height

    @staticmethod
    def predict(left: Optional[ModulePosition],
                above: Optional[ModulePosition],
                width: float,
                height: float) -> Tuple[float, float]:
        if left is None:
            return above.x, above.y + height

        if above is not None and not above.bad:
            # Two independent predictions averaged to damp drift
            return (left.x + width + above.x) / 2, (left.y + above.y + height) / 2

        return left.x + width, left.y

    def correct_run(self, row: List[ModulePosition], width: float):
        """
        Re-space a run of modules once the edge closing it is found.

        Modules inside a run of one polarity see no edge on their right, so
        their positions were only extrapolated. When the module just appended
        finds its right edge and the run's first module had found its left
        edge, the whole run is spread evenly between the two. Runs holding a
        bad module or more than one polarity are left as fitted.
        """
        k = len(row) - 1
        current = row[k]
        if not current.bound.right:
            return

        start = k
        while start > 0 and not row[start - 1].bound.right:
            start -= 1

        count = k - start + 1
        first = row[start]
        if count < 2 or not first.bound.left:
            return

        run = row[start:k + 1]
        if any(module.bad or module.polarity is not first.polarity for module in run):
            return

        left_edge = first.x - first.width / 2
        right_edge = current.x + current.width / 2
        spacing = (right_edge - left_edge) / count
        if not 0.5 * width <= spacing <= 1.5 * width:
            return

        for i in range(start, k + 1):
            row[i] = row[i].moved(left_edge + (i - start + 0.5) * spacing, row[i].y)

    def fit_pass(self,
                 buffer: PixelBuffer,
                 size: ModuleSize,
                 boundary: BoundaryRange,
                 base: Optional[Grid] = None) -> Grid:
        state = _PassState()
        lookup = base.get if base is not None else state.get
        columns: Optional[int] = None

        while len(state.rows) < buffer.height:
            r = len(state.rows)
            state.row = []
            c = 0

            while c < buffer.width:
                left = state.row[c - 1] if c > 0 else None
                above = state.get(r - 1, c)

                if left is not None:
                    fallback = (left.width, left.height)
                elif above is not None:
                    fallback = (above.width, above.height)
                elif base is not None and base.get(r, c) is not None:
                    fallback = (base.get(r, c).width, base.get(r, c).height)
                else:
                    first = self.seed_size(buffer, size, boundary)
                    fallback = (first.width, first.height)

                width, height = self.local_size(lookup, r, c, fallback)

                polarity = None
                if left is None and above is None:
                    x, y = boundary.x_first, boundary.y_first
                    polarity = Polarity.DARK
                else:
                    x, y = self.predict(left, above, width, height)

                if columns is None:
                    if c > 0 and x > min(boundary.x_last + width / 2, buffer.width - width / 2):
                        break
                elif c >= columns:
                    break

                if c == 0 and r > 0 and y > min(boundary.y_last + height / 2, buffer.height - height / 2):
                    break

                position = self.fitter.fit(buffer, size.scaled(width, height), x, y, polarity)
                state.row.append(position)

                if self.config.correct_runs:
                    self.correct_run(state.row, width)

                c += 1

            if not state.row:
                break

            if columns is None:
                columns = len(state.row)
            state.rows.append(state.row)

        state.row = []
        return Grid.from_rows(state.rows)

    def fit(self, buffer: PixelBuffer, size: ModuleSize, boundary: BoundaryRange) -> Grid:
        """
        Initial pass plus ``extra_passes`` refinement passes.

        Each pass reads the previous grid as ``base`` for local size estimates.
        The pass count is fixed unless ``tolerance`` is configured, in which case
        refinement stops once no module moved further than the tolerance.
        """
        grid = self.fit_pass(buffer, size, boundary)
        logger.debug("Pass 0: grid %s, %d bad modules", grid.shape, grid.bad_count)

        for i in range(1, self.config.extra_passes + 1):
            refined = self.fit_pass(buffer, size, boundary, base=grid)
            displacement = refined.max_displacement(grid)
            logger.debug("Pass %d: grid %s, %d bad modules, max displacement %s",
                         i, refined.shape, refined.bad_count, displacement)
            grid = refined

            if (self.config.tolerance is not None and displacement is not None
                    and displacement <= self.config.tolerance):
                logger.debug("Grid converged after pass %d", i)
                break

        return grid
