from .pipeline import DataMatrixPipeline, DecodeResult
from .config import FitterConfig, GridConfig
from .errors import DecodeError, InsufficientSignal, BoundaryNotFound, DimensionMismatch
from .extraction import Binarizer, PixelBuffer, Axis, Polarity
from .location import ModuleSizeEstimator, ModuleSize, BoundaryLocator, BoundaryRange
from .geometry import ModuleFitter, ModulePosition, Bound, GridFitter, Grid
from .sampling import ModuleSampler
