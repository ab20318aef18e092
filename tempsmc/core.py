"""
Core module.

Overview
========

This module defines the two core objects of the package:

* `AnnealingCallbacks`: the base class for the objects that drive an
  annealing-style SMC algorithm (e.g. `tempering.LikelihoodTempering`);
* `SMC`: the generic SMC algorithm, which repeatedly invokes these
  callbacks.

You don't need to import this module: these objects are automatically
imported when you import the package itself::

    import tempsmc
    help(tempsmc.SMC)  # should work

The callback contract
=====================

An object passed as argument ``fk`` to `SMC` must provide five methods:

    * `weight(self)`: (re)compute the log-weights of the particles;
    * `log_mean_likelihood(self)`: log of the average of the weights, i.e.
      the contribution of this iteration to the log marginal likelihood;
    * `step(self)`: move to the next iteration (e.g. increase the
      temperature); return False when the algorithm is done;
    * `resample(self)`: resample the particles according to their weights;
    * `rejuvenate(self)`: move the particles (e.g. through MCMC steps).

`SMC` knows nothing about the particles, the models or the temperatures: it
only calls these methods in the following order::

    weight -> log_mean_likelihood -> step -> (stop) or (resample -> rejuvenate)

and accumulates the output of ``log_mean_likelihood`` in attribute
``logLt``.

SMC class
=========

To run the algorithm::

    alg = tempsmc.SMC(fk=my_fk)
    alg.run()
    print(alg.logLt)  # estimate of the log marginal likelihood

`SMC` objects are iterators, making it possible to run the algorithm step by
step::

    next(alg)  # do iteration 0
    next(alg)  # do iteration 1
    alg.run()  # do the remaining iterations

"""

from tempsmc import collectors
from tempsmc import utils


class AnnealingCallbacks:
    """Abstract base class for the objects that drive a `SMC` algorithm.

    Sub-class it and define the five methods below; see the module
    documentation for the contract they must honour. Method `summary_format`
    is optional (it is used when the algorithm runs with ``verbose=True``).
    """

    def _error_msg(self, meth):
        return 'method %s missing in class %s' % (meth,
                                                  self.__class__.__name__)

    def weight(self):
        """Computes the (incremental) log-weights of the particles."""
        raise NotImplementedError(self._error_msg('weight'))

    def log_mean_likelihood(self):
        """Log of the mean weight (increment of the log marginal likelihood)."""
        raise NotImplementedError(self._error_msg('log_mean_likelihood'))

    def resample(self):
        """Resamples the particles."""
        raise NotImplementedError(self._error_msg('resample'))

    def rejuvenate(self):
        """Moves the particles after resampling."""
        raise NotImplementedError(self._error_msg('rejuvenate'))

    def step(self):
        """Moves to the next iteration; returns False when done."""
        raise NotImplementedError(self._error_msg('step'))

    def summary_format(self, smc):
        return 'iteration %i: logLt=%.3f' % (smc.t, smc.logLt)


class SMC:
    """Generic (annealing) SMC algorithm.

       Parameters
       ----------
       fk: object
           provides the five callbacks (see `AnnealingCallbacks`)
       verbose: bool, optional
           whether to print basic info at every iteration (default=False)
       collect: list of collectors, or 'off' (for turning off summary
           collections); see module ``collectors``

       Attributes
       ----------
       t : int
          number of completed iterations
       logLt : float
          running estimate of the log marginal likelihood
       loglt : float
          contribution of the last iteration to logLt
       done : bool
          whether the algorithm is finished
       cpu_time : float
          CPU time of complete run (in seconds)
       summaries: `Summaries` object (None if collect='off')
          summaries recorded at every iteration

       Methods
       -------
       run():
           run the algorithm until completion, returns logLt
       __next__()
           run the algorithm for one iteration (object self is an iterator)

    """

    def __init__(self, fk=None, verbose=False, collect=None):
        self.fk = fk
        self.verbose = verbose
        self.t = 0
        self.logLt = 0.
        self.loglt = 0.
        self.done = False
        if collect == 'off':
            self.summaries = None
        else:
            self.summaries = collectors.Summaries(collect)

    def __str__(self):
        if hasattr(self.fk, 'summary_format'):
            return self.fk.summary_format(self)
        return AnnealingCallbacks.summary_format(self.fk, self)

    def compute_summaries(self):
        if self.verbose:
            print(self)
        if self.summaries:
            self.summaries.collect(self)

    def __next__(self):
        """One iteration of the algorithm.
        """
        if self.done:
            raise StopIteration
        self.fk.weight()
        self.loglt = self.fk.log_mean_likelihood()
        self.logLt += self.loglt
        self.compute_summaries()
        if self.fk.step():
            self.fk.resample()
            self.fk.rejuvenate()
        else:
            self.done = True
        self.t += 1

    def __iter__(self):
        return self

    @utils.timer
    def run(self):
        """Runs the algorithm until completion.

           Returns
           -------
           logLt: float
               the estimate of the log marginal likelihood

           Note: this class implements the iterator protocol, so the
           algorithm may also be run step by step (see module
           documentation). In that case, attribute `cpu_time` records the
           CPU cost of the last command only.
        """
        for _ in self:
            pass
        return self.logLt
