import numpy as np
import pytest
from scipy import stats

import tempsmc

# most negative float, returned by the Gaussian model for a non-positive scale
MOST_NEGATIVE = -np.finfo(float).max


@pytest.fixture
def line_data():
    """50 points from y = 2x + 1 + N(0, 0.1^2), x in [0, 10]."""
    x = np.linspace(0., 10., 50)
    y = 2. * x + 1. + 0.1 * np.random.default_rng(123).standard_normal(50)
    return np.column_stack([x, y])


@pytest.fixture
def line_model():
    @tempsmc.model(('slope', 0., 4.), ('intercept', -1., 3.))
    def line(slope, intercept, x, y):
        return -0.5 * ((y - slope * x - intercept) / 0.1) ** 2
    return line


@pytest.fixture
def gauss_data():
    """200 draws from N(5, 2^2)."""
    return 5. + 2. * np.random.default_rng(321).standard_normal(200)


@pytest.fixture
def gauss_model():
    def loglik(mu, sigma, y):
        lp = stats.norm.logpdf(y, loc=mu, scale=sigma)
        return np.where(sigma > 0., lp, MOST_NEGATIVE)
    return tempsmc.Model([('mu', 0., 10.), ('sigma', 0., 4.)], loglik)


@pytest.fixture
def disc_model():
    """Uniform distribution over the unit disc (no data)."""
    @tempsmc.model(('x', -1., 1.), ('y', -1., 1.))
    def disc(x, y):
        return np.where(x ** 2 + y ** 2 <= 1., 0., -np.inf)
    return disc


@pytest.fixture
def toy_model():
    @tempsmc.model(('mu', -5., 5.))
    def toy(mu, y):
        return -0.5 * (y - mu) ** 2
    return toy


@pytest.fixture
def toy_data():
    return [(0.3,), (-0.2,), (0.5,), (0.1,)]
