from .module_size import ModuleSizeEstimator, ModuleSize, run_histograms, average_peak
from .boundary_locator import BoundaryLocator, BoundaryRange
