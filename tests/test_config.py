import pytest

from dm_reader import DataMatrixPipeline
from dm_reader.config import FitterConfig, GridConfig


def test_defaults():
    fitter = FitterConfig()
    assert (fitter.value_ratio, fitter.count_ratio, fitter.perpendicular_ratio, fitter.move_limit_ratio) == \
        (0.7, 0.87, 1.0, 0.5)

    grid = GridConfig()
    assert grid.extra_passes == 3
    assert grid.radius == 3
    assert grid.tolerance is None


@pytest.mark.parametrize("field", ["value_ratio", "count_ratio", "perpendicular_ratio", "move_limit_ratio", "bound_ratio"])
def test_fitter_ratios_must_be_positive(field):
    with pytest.raises(ValueError):
        FitterConfig(**{field: 0})


@pytest.mark.parametrize("kwargs", [
    {"extra_passes": -1},
    {"neighborhood": 4},
    {"seed_region_modules": 1},
    {"tolerance": -0.5},
])
def test_invalid_grid_config(kwargs):
    with pytest.raises(ValueError):
        GridConfig(**kwargs)


def test_pipeline_forwards_tunables():
    pipeline = DataMatrixPipeline(threshold=90, extra_passes=1, count_ratio=0.8, tolerance=0.5)
    assert pipeline.binarizer.threshold == 90
    assert pipeline.grid_fitter.config.extra_passes == 1
    assert pipeline.grid_fitter.config.tolerance == 0.5
    assert pipeline.grid_fitter.fitter.config.count_ratio == 0.8


def test_bound_ratio_is_a_fraction():
    assert FitterConfig().bound_ratio == 0.5
    with pytest.raises(ValueError):
        FitterConfig(bound_ratio=1.5)
    assert DataMatrixPipeline(bound_ratio=0.3).grid_fitter.fitter.config.bound_ratio == 0.3
