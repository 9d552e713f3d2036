import logging
import numpy as np
from dataclasses import dataclass

from ..errors import BoundaryNotFound
from ..extraction.pixel_buffer import PixelBuffer, Axis, Polarity, DARK_VAL
from .module_size import ModuleSize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundaryRange:
    # Module centers, not edges
    x_first: float
    y_first: float
    x_last: float
    y_last: float

    def first(self, axis: Axis) -> float:
        return self.x_first if axis is Axis.HORIZONTAL else self.y_first

    def last(self, axis: Axis) -> float:
        return self.x_last if axis is Axis.HORIZONTAL else self.y_last


class BoundaryLocator:

    def first_coord(self, buffer: PixelBuffer, size: ModuleSize, axis: Axis, reversed_: bool = False) -> float:
        """
        Center coordinate of the first module row/column met scanning along ``axis``.

        ``axis`` is the axis of the returned coordinate: HORIZONTAL scans columns
        for an x coordinate, VERTICAL scans rows for a y coordinate.
        """
        radius = size.length(axis, Polarity.DARK) / 2

        # One dark count per column (x) or per row (y)
        dark_counts = np.count_nonzero(buffer.oriented(axis) == DARK_VAL, axis=0)
        if reversed_:
            dark_counts = dark_counts[::-1]

        hits = np.flatnonzero(dark_counts > radius)
        if len(hits) == 0:
            direction = "reversed" if reversed_ else "forward"
            raise BoundaryNotFound(
                f"No {axis.value} boundary found scanning {direction} "
                f"(needed more than {radius:.1f} dark pixels in a line)"
            )

        i = int(hits[0])
        if reversed_:
            return buffer.extent(axis) - i - radius
        return i + radius

    def locate(self, buffer: PixelBuffer, size: ModuleSize) -> BoundaryRange:
        boundary = BoundaryRange(
            x_first=self.first_coord(buffer, size, Axis.HORIZONTAL),
            y_first=self.first_coord(buffer, size, Axis.VERTICAL),
            x_last=self.first_coord(buffer, size, Axis.HORIZONTAL, reversed_=True),
            y_last=self.first_coord(buffer, size, Axis.VERTICAL, reversed_=True)
        )
        logger.debug("Located boundary %s", boundary)

        return boundary
