import numpy as np

from dm_reader.geometry.grid_fitter import GridFitter
from dm_reader.location.boundary_locator import BoundaryLocator
from dm_reader.location.module_size import ModuleSizeEstimator
from dm_reader.sampling.sampler import ModuleSampler

from helpers import buffer_of, checkerboard, data_matrix_like


def _prepare(bits, module_w=12, module_h=None):
    buffer = buffer_of(bits, module_w=module_w, module_h=module_h)
    size = ModuleSizeEstimator().estimate(buffer)
    boundary = BoundaryLocator().locate(buffer, size)
    return buffer, size, boundary


def test_sampling_is_deterministic():
    buffer, size, boundary = _prepare(data_matrix_like())
    grid = GridFitter().fit(buffer, size, boundary)
    sampler = ModuleSampler()

    first = sampler.sample(buffer, grid)
    second = sampler.sample(buffer, grid)
    assert first.dtype == np.uint8
    assert np.array_equal(first, second)


def test_uniform_grid_checkerboard():
    buffer, size, boundary = _prepare(checkerboard())
    matrix = ModuleSampler().sample_uniform(buffer, boundary, size)
    assert np.array_equal(matrix, checkerboard())


def test_uniform_grid_anisotropic():
    bits = data_matrix_like(6, 10, seed=11)
    buffer, size, boundary = _prepare(bits, module_w=12, module_h=9)
    matrix = ModuleSampler().sample_uniform(buffer, boundary, size)
    assert np.array_equal(matrix, bits)
