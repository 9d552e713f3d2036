import logging
import numpy as np
from collections import Counter
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from dataclasses import dataclass

from ..errors import InsufficientSignal
from ..extraction.pixel_buffer import PixelBuffer, Axis, Polarity, DARK_VAL, LIGHT_VAL

logger = logging.getLogger(__name__)

Histogram = Mapping[int, int]


@dataclass(frozen=True)
class ModuleSize:
    light_width: float
    dark_width: float
    light_height: float
    dark_height: float

    @property
    def width(self) -> float:
        return (self.dark_width + self.light_width) / 2

    @property
    def height(self) -> float:
        return (self.dark_height + self.light_height) / 2

    def mean(self, axis: Axis) -> float:
        return self.width if axis is Axis.HORIZONTAL else self.height

    def length(self, axis: Axis, polarity: Polarity) -> float:
        if axis is Axis.HORIZONTAL:
            return self.dark_width if polarity is Polarity.DARK else self.light_width
        return self.dark_height if polarity is Polarity.DARK else self.light_height

    def shortest(self, axis: Axis) -> float:
        return min(self.length(axis, Polarity.DARK), self.length(axis, Polarity.LIGHT))

    def scaled(self, width: float, height: float) -> "ModuleSize":
        """Rescale to a new mean width/height keeping the light:dark ratio."""
        sx = width / self.width
        sy = height / self.height
        return ModuleSize(
            light_width=self.light_width * sx,
            dark_width=self.dark_width * sx,
            light_height=self.light_height * sy,
            dark_height=self.dark_height * sy
        )


@dataclass(frozen=True)
class RunHistograms:
    dark: Histogram
    light: Histogram

    def of(self, polarity: Polarity) -> Histogram:
        return self.dark if polarity is Polarity.DARK else self.light


def run_histograms(buffer: PixelBuffer, axis: Axis) -> RunHistograms:
    """
    Frequency of run lengths between color transitions along ``axis``.

    The first run of each scanline is partial (its start is the buffer edge)
    and is dropped. The last run has no closing transition and is never counted.
    """
    dark: Counter = Counter()
    light: Counter = Counter()

    for line in buffer.lines(axis):
        transitions = np.flatnonzero(line[1:] != line[:-1]) + 1
        if len(transitions) < 2:
            continue

        lengths = np.diff(transitions)
        colors = line[transitions[:-1]]

        dark.update(lengths[colors == DARK_VAL].tolist())
        light.update(lengths[colors == LIGHT_VAL].tolist())

    return RunHistograms(dark=MappingProxyType(dict(dark)), light=MappingProxyType(dict(light)))


def average_peak(histogram: Histogram, prior: Optional[float] = None) -> Optional[float]:
    """
    Frequency weighted mean of the histogram around its peak.

    With a ``prior`` the window is centered on the prior instead of the peak so
    an existing estimate does not drift to a spurious new peak. Returns None
    when there is nothing to average.
    """
    if not histogram:
        return None

    if prior is None:
        # Ties resolve to the shortest length
        center = min(histogram, key=lambda length: (-histogram[length], length))
        radius = max(2, int(round(center / 5)))
    else:
        center = int(round(prior))
        radius = max(1, int(round(center / 5)))

    count = 0
    total = 0
    for length in range(center - radius, center + radius + 1):
        c = histogram.get(length, 0)
        count += c
        total += c * length

    if count == 0:
        return None

    return total / count


class ModuleSizeEstimator:

    @staticmethod
    def _crop(buffer: PixelBuffer, region: Optional[Tuple[int, int, int, int]]) -> PixelBuffer:
        return buffer if region is None else buffer.crop(region)

    def estimate_axis(self,
                      buffer: PixelBuffer,
                      axis: Axis,
                      region: Optional[Tuple[int, int, int, int]] = None,
                      prior: Optional[ModuleSize] = None) -> Tuple[float, float]:
        """Dark and light module length along one axis."""
        histograms = run_histograms(self._crop(buffer, region), axis)

        lengths = []
        for polarity in (Polarity.DARK, Polarity.LIGHT):
            peak = average_peak(
                histograms.of(polarity),
                prior.length(axis, polarity) if prior is not None else None
            )

            if peak is None:
                where = f" in region {region}" if region is not None else ""
                raise InsufficientSignal(
                    f"No {polarity.name.lower()} runs found along the {axis.value} axis{where}"
                )

            lengths.append(peak)

        return lengths[0], lengths[1]

    def estimate(self,
                 buffer: PixelBuffer,
                 region: Optional[Tuple[int, int, int, int]] = None,
                 prior: Optional[ModuleSize] = None) -> ModuleSize:

        dark_width, light_width = self.estimate_axis(buffer, Axis.HORIZONTAL, region, prior)
        dark_height, light_height = self.estimate_axis(buffer, Axis.VERTICAL, region, prior)

        size = ModuleSize(
            light_width=light_width,
            dark_width=dark_width,
            light_height=light_height,
            dark_height=dark_height
        )
        logger.debug("Estimated module size %s (region %s)", size, region)

        return size
