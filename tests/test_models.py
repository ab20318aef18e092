"""Tests for model definition and log-likelihood evaluation."""

import numpy as np
import pytest
from numpy import testing

import tempsmc
from tempsmc.models import Model, ParamSpec


def quad(a, y):
    return -(y - a) ** 2


class TestDefinition:

    def test_params(self):
        m = Model([('a', 0., 1.), ParamSpec('b', 5, -5)], quad)
        assert m.names == ['a', 'b']
        assert m.dim == 2
        testing.assert_array_equal(m.lower, [0., 5.])
        testing.assert_array_equal(m.upper, [1., -5.])
        testing.assert_array_equal(m.widths, [1., 10.])
        assert isinstance(m.params[1].lower, float)

    def test_decorator(self):
        @tempsmc.model(('a', -1., 1.))
        def m(a, y):
            return -(y - a) ** 2
        assert isinstance(m, Model)
        assert m.names == ['a']
        assert 'a in [-1, 1]' in repr(m)

    def test_no_parameter(self):
        with pytest.raises(ValueError):
            Model([], quad)

    @pytest.mark.parametrize('bound', ['0', None, np.nan, np.inf, True])
    def test_invalid_bound(self, bound):
        with pytest.raises(ValueError):
            Model([('a', bound, 1.)], quad)
        with pytest.raises(ValueError):
            Model([('a', 0., bound)], quad)

    @pytest.mark.parametrize('name', ['1a', 'a b', 'lambda', 3])
    def test_invalid_name(self, name):
        with pytest.raises(ValueError):
            Model([(name, 0., 1.)], quad)

    def test_malformed_spec(self):
        with pytest.raises(ValueError):
            Model([('a', 0.)], quad)

    def test_duplicate_names(self):
        with pytest.raises(ValueError):
            Model([('a', 0., 1.), ('a', 0., 2.)], quad)

    def test_loglik_not_callable(self):
        with pytest.raises(TypeError):
            Model([('a', 0., 1.)], 3.)


class TestLoglik:

    def setup_method(self):
        self.model = Model([('a', -5., 5.)], quad)
        self.theta = np.array([[0., 1., 2.]])

    def test_sum_over_observations(self):
        l = self.model.loglik(self.theta, data=[(1.,), (2.,)])
        testing.assert_allclose(l, [-5., -1., -1.])

    def test_scalar_observations(self):
        l = self.model.loglik(self.theta, data=np.array([1., 2.]))
        testing.assert_allclose(l, [-5., -1., -1.])

    def test_rows_of_2d_array(self):
        m = Model([('a', 0., 4.), ('b', -1., 1.)],
                  lambda a, b, x, y: -(y - a * x - b) ** 2)
        data = np.array([[0., 1.], [1., 3.]])
        theta = np.array([[2., 1.], [1., 0.]])
        testing.assert_allclose(m.loglik(theta, data), [0., -5.])

    def test_no_data(self):
        calls = []

        def f(a):
            calls.append(a)
            return -a ** 2
        m = Model([('a', -1., 1.)], f)
        testing.assert_allclose(m.loglik(self.theta), [0., -1., -4.])
        testing.assert_allclose(m.loglik(self.theta, data=[]), [0., -1., -4.])
        assert len(calls) == 2

    def test_scalar_output_is_broadcast(self):
        m = Model([('a', -1., 1.)], lambda a, y: 0.)
        testing.assert_array_equal(m.loglik(self.theta, [(1.,)]), np.zeros(3))

    def test_overflow_is_minus_inf(self):
        m = Model([('a', -1., 1.)],
                  lambda a, y: np.full_like(a, -np.finfo(float).max))
        l = m.loglik(self.theta, [(0.,)] * 10)
        assert np.all(l == -np.inf)
        l1 = m.loglik(self.theta, [(0.,)])
        assert np.all(np.isfinite(l1))

    def test_nan_and_plus_inf_are_minus_inf(self):
        m = Model([('a', -1., 1.)],
                  lambda a, y: np.array([np.nan, np.inf, -1.]))
        testing.assert_array_equal(m.loglik(self.theta, [(0.,)]),
                                   [-np.inf, -np.inf, -1.])

    def test_population_argument(self):
        x = tempsmc.population.Population(['a'], self.theta)
        testing.assert_allclose(self.model.loglik(x, [(1.,)]), [-1., 0., -1.])
