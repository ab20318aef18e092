"""
Particle populations.

A `Population` object packs together the N particles of a SMC sampler:

* ``theta``: a (D, N) float array; row d contains the N values of parameter
  d, and column n is the parameter vector of particle n;
* ``llik``: a (N,) float array, the log-likelihood of each particle (None
  until computed);
* ``shared``: a dictionary of information that is not attached to a single
  particle (e.g. Metropolis acceptance rates).

A particle (a column of ``theta`` together with its entry of ``llik``) is
always copied, moved or discarded as a whole. Fancy indexing returns a new
population::

    x[np.array([3, 5, 10, 10])]
    # new object that contains particles 3, 5 and 10 (twice)

while `Population.resample_from` and `Population.copyto` modify the
population in place.

"""

import numbers

import numpy as np


class Population:
    """N particles, each a vector of D parameter values.

    Parameters
    ----------
    names: list of str
        parameter names (length D)
    theta: (D, N) array
        parameter values
    llik: (N,) array, optional
        log-likelihood of each particle
    shared: dict, optional
        information shared by all particles
    """

    def __init__(self, names, theta, llik=None, shared=None):
        self.names = list(names)
        self.theta = np.asarray(theta, dtype=float)
        if self.theta.ndim != 2 or self.theta.shape[0] != len(self.names):
            raise ValueError('Population: theta must be a (D, N) array, with '
                             'D=%i' % len(self.names))
        self.llik = llik
        self.shared = {} if shared is None else shared

    @classmethod
    def linspace(cls, model, N):
        """Deterministic initial population.

        Particle n takes value lower + (upper - lower) * n / N on each
        dimension.
        """
        frac = np.arange(N) / N
        lo, up = model.lower[:, np.newaxis], model.upper[:, np.newaxis]
        return cls(model.names, lo + (up - lo) * frac)

    @property
    def N(self):
        return self.theta.shape[1]

    @property
    def dim(self):
        return self.theta.shape[0]

    def __len__(self):
        return self.N

    def __getitem__(self, key):
        if isinstance(key, str):
            return self.theta[self.names.index(key)]
        if isinstance(key, numbers.Integral):
            key = [key]  # keep theta 2D
        llik = None if self.llik is None else self.llik[key]
        return self.__class__(self.names, self.theta[:, key], llik=llik,
                              shared=self.shared.copy())

    def copy(self):
        """Returns a copy of the object."""
        llik = None if self.llik is None else self.llik.copy()
        return self.__class__(self.names, self.theta.copy(), llik=llik,
                              shared=self.shared.copy())

    def resample_from(self, A):
        """Replace, in place, particle n by (old) particle A[n].

        The old particles are read from a frozen copy, so that A may point
        to a location that is itself overwritten.
        """
        old = self[np.asarray(A)]  # fancy indexing returns a copy
        self.theta[:, :] = old.theta
        self.llik = old.llik

    def copyto(self, src, where):
        """Emulates function copyto in NumPy.

        Parameters
        ----------
        src: `Population` object
            source (same N)
        where: (N,) bool ndarray
            True if particle n in src must be copied (at location n)

        If src carries no log-likelihood, the log-likelihood of the copied
        particles is set to nan.
        """
        np.copyto(self.theta, src.theta, where=where[np.newaxis, :])
        if src.llik is not None:
            if self.llik is None:
                self.llik = np.full(self.N, np.nan)
            np.copyto(self.llik, src.llik, where=where)
        elif self.llik is not None:
            # moved particles have an unknown log-likelihood
            self.llik[where] = np.nan

    def as_dict(self):
        """Returns {name: array of the N values of that parameter}."""
        return {name: self.theta[d].copy() for d, name in enumerate(self.names)}
