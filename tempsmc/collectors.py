"""Objects that collect summaries at each iteration of a SMC algorithm.

Overview
========

A "summary collector" records, at every iteration, a certain summary of the
particle system. For instance::

    from tempsmc import collectors as col

    alg = tempsmc.SMC(fk=some_fk, collect=[col.Moments(), col.AccRates()])
    alg.run()
    print(alg.summaries.moments)  # list of moments
    print(alg.summaries.accRates)  # list of acceptance rates

Once the algorithm is run, the object `alg.summaries` contains the computed
summaries, stored in lists (one component per iteration).

Default summaries
=================

By default, the following summaries are collected (even if argument
`collect` is not used):

    * ``ESSs``: ESS (effective sample size) of the incremental weights;
    * ``logLts``: running estimate of the log marginal likelihood;
    * ``temperatures``: the temperature used to weight the particles.

``logLts`` is read from the `SMC` object (attribute ``logLt``), the two
others from the object that provides the callbacks (attributes ``wgts`` and
``temperature``; nan if missing). You may turn off summary collection
entirely::

    alg = tempsmc.SMC(fk=some_fk, collect='off')

User-defined collectors
=======================

Subclass `Collector`, and define method ``fetch``::

    class MaxLogLik(collectors.Collector):
        def fetch(self, smc):
            return smc.fk.X.llik.max()

Then ``alg.summaries.maxLogLik`` is a list of the values returned by
``fetch`` at each iteration.

"""

import numpy as np

from tempsmc import resampling as rs


class Summaries:
    """Class to store and update summaries.

    Attribute ``summaries`` of ``SMC`` objects is an instance of this class.
    """

    def __init__(self, cols):
        self._collectors = [cls() for cls in default_collector_cls]
        if cols is not None:
            # call each collector to get a fresh instance
            self._collectors.extend(col() for col in cols)
        for col in self._collectors:
            setattr(self, col.summary_name, col.summary)

    def collect(self, smc):
        for col in self._collectors:
            col.collect(smc)


class Collector:
    """Base class for collectors.

    To subclass `Collector`:
    * implement method `fetch(self, smc)` which computes the summary that
      must be collected (from object smc, at each iteration).
    * (optionally) define class attribute `summary_name` (name of the
      collected summary; by default, name of the class, un-capitalised, i.e.
      Moments > moments)
    * (optionally) define class attribute `signature` (the signature of the
      constructor, by default, an empty dict)
    """
    signature = {}

    @property
    def summary_name(self):
        cn = self.__class__.__name__
        return cn[0].lower() + cn[1:]

    def __init__(self, **kwargs):
        self.summary = []
        for k, v in self.signature.items():
            setattr(self, k, v)
        for k, v in kwargs.items():
            if k in self.signature.keys():
                setattr(self, k, v)
            else:
                raise ValueError('Collector %s: unknown parameter %s' %
                                 (self.__class__.__name__, k))

    def __call__(self):
        # clone the object
        return self.__class__(**{k: getattr(self, k) for k in
                                 self.signature.keys()})

    def collect(self, smc):
        self.summary.append(self.fetch(smc))

    def fetch(self, smc):
        raise NotImplementedError('Collector %s: fetch not implemented'
                                  % self.__class__.__name__)

# Default collectors
####################

class ESSs(Collector):
    summary_name = 'ESSs'

    def fetch(self, smc):
        wgts = getattr(smc.fk, 'wgts', None)
        return np.nan if wgts is None else wgts.ESS


class LogLts(Collector):
    def fetch(self, smc):
        return smc.logLt


class Temperatures(Collector):
    def fetch(self, smc):
        return getattr(smc.fk, 'temperature', np.nan)


default_collector_cls = [ESSs, LogLts, Temperatures]

# Optional collectors
#####################

class Moments(Collector):
    """Collects empirical moments (e.g. mean and variance) of the particles.

    Moments are defined through a function with the following signature:

        def mom_func(W, X):
           return np.average(X.theta, weights=W, axis=1)  # for instance

    where W are the normalised weights and X the current `Population`. If no
    function is provided, the weighted mean and variance of each parameter is
    computed.
    """
    signature = {'mom_func': None}

    def fetch(self, smc):
        x, W = smc.fk.X, smc.fk.wgts.W
        if self.mom_func is None:
            return rs.wmean_and_var(W, x.theta)
        return self.mom_func(W, x)


class AccRates(Collector):
    """Collects the acceptance rates of the latest rejuvenation step (one per
    jitter scale; empty list if no rejuvenation took place yet)."""

    def fetch(self, smc):
        ars = smc.fk.X.shared.get('acc_rates', [])
        return ars[-1] if ars else []
