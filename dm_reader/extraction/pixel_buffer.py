import numpy as np
from enum import Enum, IntEnum
from typing import Iterator, Tuple
from dataclasses import dataclass

LIGHT_VAL = 255
DARK_VAL = 0


class Polarity(IntEnum):
    DARK = DARK_VAL
    LIGHT = LIGHT_VAL

    @property
    def bit(self) -> int:
        return 1 if self is Polarity.DARK else 0

    @property
    def opposite(self) -> "Polarity":
        return Polarity.LIGHT if self is Polarity.DARK else Polarity.DARK


class Axis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def other(self) -> "Axis":
        return Axis.VERTICAL if self is Axis.HORIZONTAL else Axis.HORIZONTAL


@dataclass(frozen=True)
class PixelCount:
    dark: int
    light: int

    def of(self, polarity: Polarity) -> int:
        return self.dark if polarity is Polarity.DARK else self.light

    @property
    def total(self) -> int:
        return self.dark + self.light

    @property
    def majority(self) -> Polarity:
        return Polarity.DARK if self.dark >= self.light else Polarity.LIGHT


class PixelBuffer:
    """
    Read-only two-valued raster, every pixel exactly DARK (0) or LIGHT (255).

    Stored as a (height, width) uint8 array. Coordinates are continuous: pixel
    column ``c`` covers ``[c, c + 1)`` so a module spanning columns ``a`` to
    ``a + n - 1`` is centered on ``a + n / 2``.
    """

    def __init__(self, data: np.ndarray):
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError(f"Pixel buffer must be 2-D, got shape {data.shape}")
        if not np.isin(data, (DARK_VAL, LIGHT_VAL)).all():
            raise ValueError("Pixel buffer may only contain DARK (0) and LIGHT (255) values")

        self._data = data.astype(np.uint8, copy=True)
        self._data.flags.writeable = False

    @classmethod
    def from_bits(cls, bits: np.ndarray) -> "PixelBuffer":
        """Build from a boolean/0-1 array where truthy means DARK."""
        bits = np.asarray(bits, dtype=bool)
        return cls(np.where(bits, DARK_VAL, LIGHT_VAL).astype(np.uint8))

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    def extent(self, axis: Axis) -> int:
        return self.width if axis is Axis.HORIZONTAL else self.height

    def oriented(self, axis: Axis) -> np.ndarray:
        # Rows of the returned view are the scanlines along ``axis``
        return self._data if axis is Axis.HORIZONTAL else self._data.T

    def lines(self, axis: Axis) -> Iterator[np.ndarray]:
        yield from self.oriented(axis)

    def crop(self, region: Tuple[int, int, int, int]) -> "PixelBuffer":
        x, y, w, h = self.clip(region)
        return PixelBuffer(self._data[y:y + h, x:x + w])

    def clip(self, region: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:
        x, y, w, h = region
        x0 = min(max(0, int(x)), self.width)
        y0 = min(max(0, int(y)), self.height)
        x1 = min(max(0, int(x + w)), self.width)
        y1 = min(max(0, int(y + h)), self.height)
        return x0, y0, x1 - x0, y1 - y0

    def count(self, x_start: int, y_start: int, x_end: int, y_end: int) -> PixelCount:
        """Count DARK and LIGHT pixels in the half-open rectangle, clipped to the buffer."""
        x0, y0, w, h = self.clip((x_start, y_start, x_end - x_start, y_end - y_start))
        if w <= 0 or h <= 0:
            return PixelCount(0, 0)

        dark = int(np.count_nonzero(self._data[y0:y0 + h, x0:x0 + w] == DARK_VAL))
        return PixelCount(dark=dark, light=w * h - dark)

    def count_around(self, x: float, y: float, rx: float, ry: float) -> PixelCount:
        return self.count(int(round(x - rx)), int(round(y - ry)),
                          int(round(x + rx)), int(round(y + ry)))
