import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass, replace

from ..config import FitterConfig
from ..extraction.pixel_buffer import PixelBuffer, PixelCount, Axis, Polarity
from ..location.module_size import ModuleSize


@dataclass(frozen=True)
class Bound:
    left: bool = False
    right: bool = False
    top: bool = False
    bottom: bool = False

    def low(self, axis: Axis) -> bool:
        return self.left if axis is Axis.HORIZONTAL else self.top

    def high(self, axis: Axis) -> bool:
        return self.right if axis is Axis.HORIZONTAL else self.bottom


@dataclass(frozen=True)
class ModulePosition:
    x: float
    y: float
    width: float
    height: float
    polarity: Polarity
    forced: bool = False
    bound: Bound = Bound()
    bad: bool = False
    small_move_x: bool = True
    small_move_y: bool = True

    @property
    def center(self) -> Tuple[float, float]:
        return self.x, self.y

    def coord(self, axis: Axis) -> float:
        return self.x if axis is Axis.HORIZONTAL else self.y

    def length(self, axis: Axis) -> float:
        return self.width if axis is Axis.HORIZONTAL else self.height

    def moved(self, x: float, y: float) -> "ModulePosition":
        return replace(self, x=x, y=y)


@dataclass(frozen=True)
class AxisMove:
    move: int
    bound_low: bool
    bound_high: bool
    bad: bool
    small: bool


class ModuleFitter:
    """
    Local search for the true center of a single module.

    Counting windows are smaller than a module so the window sits inside it.
    For each side of the window the pixels just outside (still matching the
    module's polarity) and just inside (already mismatching) place that side's
    edge; the edges found imply a center and the window moves toward it.
    """

    def __init__(self, config: Optional[FitterConfig] = None):
        self.config = config or FitterConfig()

    @staticmethod
    def _count(buffer: PixelBuffer, axis: Axis,
               along_start: int, along_end: int,
               across_start: int, across_end: int) -> PixelCount:
        if axis is Axis.HORIZONTAL:
            return buffer.count(along_start, across_start, along_end, across_end)
        return buffer.count(across_start, along_start, across_end, along_end)

    def classify(self, buffer: PixelBuffer, size: ModuleSize, x: float, y: float) -> Polarity:
        rx = self.config.value_ratio * size.shortest(Axis.HORIZONTAL) / 2
        ry = self.config.value_ratio * size.shortest(Axis.VERTICAL) / 2
        return buffer.count_around(x, y, max(rx, 0.5), max(ry, 0.5)).majority

    def move_limit(self, size: ModuleSize, axis: Axis, polarity: Polarity) -> float:
        return self.config.move_limit_ratio * size.length(axis, polarity)

    def axis_move(self, buffer: PixelBuffer, size: ModuleSize,
                  x: float, y: float, polarity: Polarity, axis: Axis) -> AxisMove:
        cfg = self.config
        length = size.length(axis, polarity)
        radius = cfg.count_ratio * length / 2
        across_radius = cfg.perpendicular_ratio * cfg.count_ratio * size.length(axis.other, polarity) / 2
        limit = self.move_limit(size, axis, polarity)
        band = max(1, int(round(limit)))

        c, p = (x, y) if axis is Axis.HORIZONTAL else (y, x)
        low = int(round(c - radius))
        high = int(round(c + radius))
        across_start = int(round(p - across_radius))
        across_end = max(across_start + 1, int(round(p + across_radius)))
        extent = across_end - across_start

        opposite = polarity.opposite
        out_low = self._count(buffer, axis, low - band, low, across_start, across_end).of(polarity)
        in_low = self._count(buffer, axis, low, low + band, across_start, across_end).of(opposite)
        out_high = self._count(buffer, axis, high, high + band, across_start, across_end).of(polarity)
        in_high = self._count(buffer, axis, high - band, high, across_start, across_end).of(opposite)

        # A side is bound once most of its outside band has left the module's
        # polarity; a few stray pixels in an otherwise matching band are noise
        threshold = cfg.bound_ratio * band * extent
        bound_low = out_low < threshold
        bound_high = out_high < threshold

        shifts: List[float] = []
        if bound_low:
            edge = low - (out_low - in_low) / extent
            shifts.append(edge + length / 2 - c)
        if bound_high:
            edge = high + (out_high - in_high) / extent
            shifts.append(edge - length / 2 - c)

        move = int(round(float(np.mean(shifts)))) if shifts else 0

        return AxisMove(
            move=move,
            bound_low=bound_low,
            bound_high=bound_high,
            bad=abs(move) > limit,
            small=abs(move) <= limit / 2
        )

    def fit_once(self, buffer: PixelBuffer, size: ModuleSize,
                 x: float, y: float, polarity: Optional[Polarity] = None) -> ModulePosition:
        forced = polarity is not None
        if polarity is None:
            polarity = self.classify(buffer, size, x, y)

        horizontal = self.axis_move(buffer, size, x, y, polarity, Axis.HORIZONTAL)
        vertical = self.axis_move(buffer, size, x, y, polarity, Axis.VERTICAL)
        bad = horizontal.bad or vertical.bad

        position = ModulePosition(
            x=x,
            y=y,
            width=size.width,
            height=size.height,
            polarity=polarity,
            forced=forced,
            bound=Bound(
                left=horizontal.bound_low,
                right=horizontal.bound_high,
                top=vertical.bound_low,
                bottom=vertical.bound_high
            ),
            bad=bad,
            small_move_x=horizontal.small,
            small_move_y=vertical.small
        )

        if bad and not forced:
            return position

        return position.moved(x + horizontal.move, y + vertical.move)

    def fit(self, buffer: PixelBuffer, size: ModuleSize,
            x: float, y: float, polarity: Optional[Polarity] = None) -> ModulePosition:
        """
        Fit one module around the seed ``(x, y)``.

        A forced polarity is trusted, so the search is repeated from the moved
        position to escape a poor seed. Without it a diverging search leaves the
        module at its seed with ``bad`` set.
        """
        position = self.fit_once(buffer, size, x, y, polarity)
        if polarity is not None:
            position = self.fit_once(buffer, size, position.x, position.y, polarity)

        return position
