"""
Models: parameter specifications and log-likelihood.

Overview
========

A model is an ordered list of parameters, each with a name and a range
[lower, upper], together with a log-likelihood function. The parameter
ranges play the role of a (flat) prior: the initial particles are spread
deterministically over them (see `population.Population.linspace`), and the
jitter moves are scaled by their widths.

To define a model, either instantiate `Model`::

    def loglik(mu, sigma, y):
        return -np.log(sigma) - 0.5 * ((y - mu) / sigma)**2

    gauss = Model([('mu', 0., 10.), ('sigma', 0.1, 4.)], loglik)

or use the `model` decorator::

    @model(('mu', 0., 10.), ('sigma', 0.1, 4.))
    def gauss(mu, sigma, y):
        return -np.log(sigma) - 0.5 * ((y - mu) / sigma)**2

The log-likelihood takes one argument per parameter (in the declared order),
followed by the components of a single observation. It is called with numpy
arrays of length N for the parameters (one value per particle), so it should
be written with numpy operations; it then returns the N log-likelihoods of
that observation at once. It may return -inf (zero likelihood).

Data is a sequence of observations; each observation is a tuple (or a row of
a 2D array) whose elements are passed as trailing arguments. If the model
has no data, the log-likelihood is called once, with the parameters only::

    @model(('x', -1., 1.), ('y', -1., 1.))
    def disc(x, y):
        return np.where(x**2 + y**2 <= 1., 0., -np.inf)

Then::

    log_evidence, post = gauss.run(data, n_particles=200, steps=100)

runs a tempering SMC sampler (see module `tempering`).

"""

import collections
import keyword
import numbers

import numpy as np


class ParamSpec(collections.namedtuple('ParamSpec', ['name', 'lower', 'upper'])):
    """Specification of a single parameter: name, lower and upper bounds."""
    __slots__ = ()

    @property
    def width(self):
        return abs(self.upper - self.lower)


def _check_bound(name, which, value):
    if (isinstance(value, bool) or not isinstance(value, numbers.Real)
            or not np.isfinite(value)):
        raise ValueError('Model: %s bound of parameter %s must be a finite '
                         'real number (got %r)' % (which, name, value))
    return float(value)


def _as_param_spec(p):
    if isinstance(p, ParamSpec):
        name, lower, upper = p
    else:
        try:
            name, lower, upper = p
        except (TypeError, ValueError):
            raise ValueError('Model: a parameter must be specified as a '
                             '(name, lower, upper) triple (got %r)' % (p,))
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError('Model: %r is not a valid parameter name' % (name,))
    return ParamSpec(name, _check_bound(name, 'lower', lower),
                     _check_bound(name, 'upper', upper))


def _as_args(obs):
    if isinstance(obs, (tuple, list, np.ndarray)):
        return tuple(obs)
    return (obs,)


class Model:
    """Ordered parameter specifications plus a log-likelihood function.

    Parameters
    ----------
    params: sequence of `ParamSpec` or (name, lower, upper) triples
        the parameters, in the order expected by loglik
    loglik: callable
        loglik(*param_values, *observation) -> log-likelihood

    Raises
    ------
    ValueError
        if no parameter is given, if a name is invalid or repeated, or if a
        bound is not a finite real number
    TypeError
        if loglik is not callable
    """

    def __init__(self, params, loglik):
        params = tuple(_as_param_spec(p) for p in params)
        if not params:
            raise ValueError('Model: at least one parameter must be declared')
        names = [p.name for p in params]
        if len(set(names)) < len(names):
            raise ValueError('Model: duplicate parameter names in %s' % names)
        if not callable(loglik):
            raise TypeError('Model: loglik must be callable')
        self._params = params
        self._loglik = loglik

    def __repr__(self):
        return 'Model(%s)' % ', '.join('%s in [%g, %g]' % p for p in self.params)

    @property
    def params(self):
        return self._params

    @property
    def names(self):
        return [p.name for p in self._params]

    @property
    def dim(self):
        return len(self._params)

    @property
    def lower(self):
        return np.array([p.lower for p in self._params])

    @property
    def upper(self):
        return np.array([p.upper for p in self._params])

    @property
    def widths(self):
        return np.array([p.width for p in self._params])

    def logpyt(self, theta, obs=None):
        """Log-likelihood of a single observation (or of no observation).

        Parameters
        ----------
        theta: (D, N) ndarray
            the parameter values of N particles
        obs: observation, or None

        Returns
        -------
        (N,) float ndarray
        """
        args = tuple(theta)
        if obs is not None:
            args += _as_args(obs)
        out = np.asarray(self._loglik(*args), dtype=float)
        return np.broadcast_to(out, theta.shape[1:])

    def loglik(self, theta, data=None):
        """Total log-likelihood (summed over observations).

        Parameters
        ----------
        theta: (D, N) ndarray, or `Population` object
            the parameter values of N particles
        data: sequence of observations, or None

        Returns
        -------
        l: (N,) float ndarray
            the N log-likelihood values; values that are not numbers, or
            that overflowed to +inf, are set to -inf
        """
        theta = getattr(theta, 'theta', theta)
        with np.errstate(over='ignore', invalid='ignore'):
            if data is None or len(data) == 0:
                l = np.array(self.logpyt(theta), dtype=float)
            else:
                l = np.zeros(theta.shape[1])
                for obs in data:
                    l += self.logpyt(theta, obs)
        l[np.isnan(l) | (l == np.inf)] = -np.inf
        return l

    def run(self, data=None, n_particles=100, steps=100,
            jitter_scales=(0.01, 0.35, 1.), seed=None, **options):
        """Runs a tempering SMC sampler for this model.

        See `tempering.run` for the meaning of the arguments.
        """
        from tempsmc import tempering
        return tempering.run(self, data=data, n_particles=n_particles,
                             steps=steps, jitter_scales=jitter_scales,
                             seed=seed, **options)


def model(*params):
    """Decorator that turns a log-likelihood function into a `Model`.

    Example
    -------
    ::

        @model(('a', 0., 4.), ('b', -1., 3.))
        def line(a, b, x, y):
            return -0.5 * ((y - a * x - b) / 0.1)**2
    """
    def decorator(loglik):
        return Model(params, loglik)
    return decorator
