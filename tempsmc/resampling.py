"""
Resampling and related numerical algorithms.

Overview
========

This module implements resampling schemes, plus some basic numerical
functions related to (log-)weights. The recommended import is::

    from tempsmc import resampling as rs

Log-scale arithmetic
====================

Importance weights and likelihoods are always computed and stored on the
log-scale, to avoid numerical overflow. The following functions deal with
log-weights:

* `log_ratio`, `log_pow`: division and exponentiation on the log scale
* `log_sum_exp`, `log_mean_exp`
* `exp_and_normalise`
* `essl`
* `wmean_and_var`

A set of log-weights that are all equal to -inf is degenerate; in that case
`log_sum_exp` returns -inf, and `exp_and_normalise` returns uniform weights
(so that the particle system may still be resampled).

Resampling schemes
==================

All the resampling schemes are implemented as functions with the following
signature::

    A = rs.scheme(lw, M=None, rng=None)

where:

  * ``lw`` is a vector of N log-weights (not necessarily normalised);

  * ``M`` (int) is the number of resampled indices that must be generated;
    (optional, set to N if not provided);

  * ``rng`` is a seed or a `numpy.random.Generator`;

  * ``A`` is a ndarray containing the M resampled indices
    (i.e. ints in the range 0, ..., N-1).

Currently implemented schemes:

* `systematic` (default, and recommended)
* `stratified`
* `multinomial`

Systematic resampling generates a single uniform variate U, and takes as
ancestors the inverse CDF evaluated at points (U + k) / M, k=0, ..., M-1.
Output indices are therefore non-decreasing, and particle n gets either
floor(M W^n) or ceil(M W^n) children.

"""

import functools

import numpy as np
from numba import jit

from tempsmc.utils import as_generator


def log_ratio(a, b):
    """Division on the log scale: log(exp(a) / exp(b))."""
    return a - b


def log_pow(a, b):
    """Exponentiation on the log scale: log(exp(a) ** b).

    Note
    ----
    b is a real exponent (not a log-transformed quantity). Following IEEE
    rules, -inf * 0 is nan; callers are expected to map nan to -inf.
    """
    return a * b


def log_sum_exp(v):
    """Log of the sum of the exp of the arguments.

    Parameters
    ----------
    v: ndarray

    Returns
    -------
    l: float
        l = log(sum(exp(v)))

    Note
    ----
    use the log_sum_exp trick to avoid overflow: i.e. we remove the max of v
    before exponentiating, then we add it back. Terms equal to -inf are left
    out of the sum; if all terms are -inf, -inf is returned directly.

    See also
    --------
    log_mean_exp

    """
    v = np.asarray(v, dtype=float)
    m = v.max()
    if m == -np.inf:
        return -np.inf
    if m == np.inf:
        return np.inf
    keep = v > -np.inf
    return m + np.log(np.sum(np.exp(v[keep] - m)))


def log_mean_exp(v):
    """Log of the mean of the exp of the arguments (see `log_sum_exp`)."""
    return log_sum_exp(v) - np.log(np.size(v))


def exp_and_normalise(lw):
    """Exponentiate, then normalise (so that sum equals one).

    Arguments
    ---------
    lw: ndarray
        log weights.

    Returns
    -------
    W: ndarray of the same shape as lw
        W = exp(lw) / sum(exp(lw)); uniform weights if all lw are -inf
    """
    lw = np.asarray(lw, dtype=float)
    lse = log_sum_exp(lw)
    if not np.isfinite(lse):
        return np.full(lw.shape, 1. / lw.size)
    return np.exp(lw - lse)


def essl(lw):
    """ESS (Effective sample size) computed from log-weights.

    Parameters
    ----------
    lw: (N,) ndarray
        log-weights

    Returns
    -------
    float
        the ESS of weights w = exp(lw), i.e. the quantity
        sum(w)**2 / sum(w**2)

    Note
    ----
    The ESS is a popular criterion to determine how *uneven* are the weights.
    Its value is in the range [1, N], it equals N when weights are constant,
    and 1 if all weights but one are zero.

    """
    W = exp_and_normalise(lw)
    return 1. / np.sum(W ** 2)


class Weights:
    """ A class to store N log-weights, and automatically compute normalised
    weights and their ESS.

    Parameters
    ----------
    lw: (N,) array
        log-weights (nan values are replaced by -inf, in place)

    Attributes
    ----------
    lw: (N), array
        log-weights (un-normalised)
    W: (N,) array
        normalised weights
    ESS: scalar
        the ESS (effective sample size) of the weights
    log_mean: scalar
        log of the mean of the un-normalised weights

    """

    def __init__(self, lw):
        self.lw = lw
        self.lw[np.isnan(self.lw)] = -np.inf
        self.log_mean = log_mean_exp(self.lw)
        self.W = exp_and_normalise(self.lw)
        self.ESS = 1. / np.sum(self.W ** 2)


def wmean_and_var(W, x):
    """Component-wise weighted mean and variance.

    Parameters
    ----------
    W: (N,) ndarray
        normalised weights (must be >=0 and sum to one).
    x: ndarray (such that shape[-1]==N)
        data

    Returns
    -------
    dictionary
        {'mean':weighted_means, 'var':weighted_variances}
    """
    m = np.average(x, weights=W, axis=-1)
    m2 = np.average(x ** 2, weights=W, axis=-1)
    return {"mean": m, "var": m2 - m ** 2}


####################
# Resampling schemes
####################

rs_funcs = {}  # populated by the decorator below

# generic docstring of resampling schemes; assigned by decorator below
rs_doc = """\

    Parameters
    ----------
    lw: (N,) ndarray
     log-weights (not necessarily normalised)
    M: int, optional (set to N if missing)
     number of resampled points.
    rng: None, int or numpy.random.Generator
     source of randomness

    Returns
    -------
    (M,) ndarray
     M ancestor variables, drawn from range 0, ..., N-1
"""


def resampling_scheme(func):
    """Decorator for resampling schemes."""

    @functools.wraps(func)
    def modif_func(lw, M=None, rng=None):
        W = exp_and_normalise(lw)
        M = W.shape[0] if M is None else M
        return func(W, M, as_generator(rng))

    rs_funcs[func.__name__] = modif_func
    modif_func.__doc__ = func.__doc__ + rs_doc
    return modif_func


def resampling(scheme, lw, M=None, rng=None):
    """Resample according to the scheme called `scheme`."""
    try:
        func = rs_funcs[scheme]
    except KeyError:
        raise ValueError("%s: not a valid resampling scheme" % scheme)
    return func(lw, M=M, rng=rng)


@jit(nopython=True)
def inverse_cdf(su, W):
    """Inverse CDF algorithm for a finite distribution.

    Parameters
    ----------
    su: (M,) ndarray
        M sorted uniform variates (i.e. M ordered points in [0,1]).
    W: (N,) ndarray
        a vector of N normalized weights (>=0 and sum to one)

    Returns
    -------
    A: (M,) ndarray
        a vector of M indices in range 0, ..., N-1

    Note
    ----
    The cursor never goes beyond N-1, even if, because of round-off errors,
    the cumulative sum of W ends slightly below one.
    """
    N = W.shape[0]
    j = 0
    s = W[0]
    M = su.shape[0]
    A = np.empty(M, dtype=np.int64)
    for n in range(M):
        while su[n] > s and j < N - 1:
            j += 1
            s += W[j]
        A[n] = j
    return A


def uniform_spacings(N, rng):
    """Generate ordered uniform variates in O(N) time.

    Parameters
    ----------
    N: int (>0)
        the expected number of uniform variates
    rng: numpy.random.Generator

    Returns
    -------
    (N,) float ndarray
        the N ordered variates (ascending order)
    """
    z = np.cumsum(-np.log(1. - rng.random(N + 1)))
    return z[:-1] / z[-1]


@resampling_scheme
def systematic(W, M, rng):
    """Systematic resampling."""
    su = (rng.random() + np.arange(M)) / M
    return inverse_cdf(su, W)


@resampling_scheme
def stratified(W, M, rng):
    """Stratified resampling."""
    su = (rng.random(M) + np.arange(M)) / M
    return inverse_cdf(su, W)


@resampling_scheme
def multinomial(W, M, rng):
    """Multinomial resampling.

    Samples M times independently from the distribution that generates n
    with probability W^n. Higher variance than systematic resampling; mostly
    useful as a baseline.
    """
    return inverse_cdf(uniform_spacings(M, rng), W)
