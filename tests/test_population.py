import numpy as np
import pytest
from numpy import testing

import tempsmc
from tempsmc.population import Population


@pytest.fixture
def x():
    theta = np.array([[0., 1., 2., 3.], [10., 11., 12., 13.]])
    return Population(['a', 'b'], theta, llik=np.array([-1., -2., -3., -4.]))


def test_linspace():
    m = tempsmc.Model([('a', 0., 1.), ('b', 10., 20.), ('c', 1., -1.)],
                      lambda a, b, c: 0.)
    x0 = Population.linspace(m, 4)
    assert x0.N == 4 and x0.dim == 3 and len(x0) == 4
    testing.assert_allclose(x0['a'], [0., 0.25, 0.5, 0.75])
    testing.assert_allclose(x0['b'], [10., 12.5, 15., 17.5])
    testing.assert_allclose(x0['c'], [1., 0.5, 0., -0.5])
    assert x0.llik is None


def test_wrong_shape():
    with pytest.raises(ValueError):
        Population(['a', 'b'], np.zeros((3, 5)))


def test_getitem(x):
    testing.assert_array_equal(x['b'], [10., 11., 12., 13.])
    y = x[np.array([3, 3, 0])]
    testing.assert_array_equal(y.theta, [[3., 3., 0.], [13., 13., 10.]])
    testing.assert_array_equal(y.llik, [-4., -4., -1.])
    y.theta[0, 0] = 100.
    assert x.theta[0, 3] == 3.


def test_resample_from_reads_old_particles(x):
    x.resample_from(np.array([2, 0, 0, 1]))
    testing.assert_array_equal(x.theta, [[2., 0., 0., 1.],
                                         [12., 10., 10., 11.]])
    testing.assert_array_equal(x.llik, [-3., -1., -1., -2.])


def test_resample_from_keeps_shared(x):
    x.shared['acc_rates'] = [[0.5]]
    theta = x.theta
    x.resample_from(np.array([1, 1, 1, 1]))
    assert x.theta is theta  # in place
    assert x.shared['acc_rates'] == [[0.5]]


def test_copyto(x):
    src = Population(['a', 'b'], -x.theta, llik=np.zeros(4))
    x.copyto(src, where=np.array([True, False, False, True]))
    testing.assert_array_equal(x.theta, [[0., 1., 2., -3.],
                                         [-10., 11., 12., -13.]])
    testing.assert_array_equal(x.llik, [0., -2., -3., 0.])


def test_copy_and_as_dict(x):
    y = x.copy()
    y.theta[:] = 0.
    d = x.as_dict()
    d['a'][:] = 7.
    testing.assert_array_equal(x['a'], [0., 1., 2., 3.])
    assert sorted(d.keys()) == ['a', 'b']


def test_copyto_without_llik_invalidates_moved_particles(x):
    src = Population(['a', 'b'], -x.theta)
    x.copyto(src, where=np.array([False, True, False, True]))
    testing.assert_array_equal(x.llik, [-1., np.nan, -3., np.nan])


def test_integer_key(x):
    y = x[2]
    assert y.N == 1
    testing.assert_array_equal(y.theta, [[2.], [12.]])
    testing.assert_array_equal(y.llik, [-3.])
    testing.assert_array_equal(x[-1].theta, [[3.], [13.]])
