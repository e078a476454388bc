import pytest

from .helpers import MeanSampler, make_catalog


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def mean_sampler():
    return MeanSampler()
