from .module_fitter import ModuleFitter, ModulePosition, Bound
from .grid_fitter import GridFitter, Grid
