"""
Likelihood tempering.

Overview
========

This module implements SMC tempering for Bayesian parameter inference: the
particles target, at temperature e in [0, 1], the distribution proportional
to L(theta)^e over the parameter ranges of the model, where L is the
likelihood of the data. The temperature increases linearly from 0 to 1, by
increments of 1 / steps. At the end, the particles are (approximately)
distributed according to the posterior, and the sum of the log mean weights
estimates the log marginal likelihood (log-evidence)::

    from tempsmc import tempering

    log_evidence, post = tempering.run(my_model, data=data, n_particles=200,
                                       steps=100, seed=42)
    post['mu'].mean()  # posterior mean of parameter mu

Under the hood, `run` creates a `LikelihoodTempering` object (which holds
the particles, the temperatures and the weights, and provides the callbacks
required by `core.SMC`), and runs `core.SMC` on it. At each iteration:

* weight: particle n gets log-weight
  ``llik[n] * e_t - llik[n] * e_{t-1}``, i.e. the likelihood mass introduced
  since the previous temperature;
* the temperature is increased; if it was already 1, the algorithm stops;
* resample: systematic resampling (by default);
* rejuvenate: random walk Metropolis moves at several scales (see module
  `mcmc`), which leave L(theta)^e invariant at the current temperature.

The initial particles are spread deterministically over the parameter
ranges (see `population.Population.linspace`); the first iteration weights
them at temperature 0, which amounts to discarding the particles with zero
likelihood.

All random numbers are drawn from a single `numpy.random.Generator`, created
from argument ``seed``; two runs with the same seed give the same results.

To run the algorithm several times (possibly in parallel), see `multi_run`.

"""

import numpy as np

from tempsmc import core
from tempsmc import mcmc
from tempsmc import resampling as rs
from tempsmc import utils
from tempsmc.population import Population

# the temperature is set to 1 when it gets closer than this
TEMPERATURE_TOL = 1e-9

# options of run that may legitimately be lists
PROTECTED_OPTIONS = ('data', 'jitter_scales', 'collect')


def tempered_loglik(llik, temperature):
    """Log-likelihood raised to power `temperature`, on the log scale."""
    with np.errstate(invalid='ignore'):
        return rs.log_pow(llik, temperature)


class LikelihoodTempering(core.AnnealingCallbacks):
    """Callbacks of a likelihood tempering SMC sampler.

    Parameters
    ----------
    model: `models.Model` object
        the model (parameter ranges and log-likelihood)
    data: sequence of observations, or None
        the data
    N: int (default=100)
        number of particles
    steps: int (default=100)
        number of tempering steps (the temperature increases by 1/steps)
    jitter_scales: sequence of floats (default=(0.01, 0.35, 1.))
        scales of the Metropolis moves (see `mcmc.MetropolisJitter`)
    resampling: str (default='systematic')
        resampling scheme (see module `resampling`)
    out_of_bounds: {'ignore', 'reject', 'clamp'} (default='ignore')
        how Metropolis proposals outside the parameter ranges are treated
    seed: None, int or numpy.random.Generator
        source of randomness

    Attributes
    ----------
    X: `Population` object
        the N particles
    wgts: `resampling.Weights` object
        the current log-weights (None before the first iteration)
    temperature, prev_temperature: float
        current and previous temperatures
    """

    def __init__(self, model=None, data=None, N=100, steps=100,
                 jitter_scales=(0.01, 0.35, 1.), resampling='systematic',
                 out_of_bounds='ignore', seed=None):
        if int(N) != N or N < 1:
            raise ValueError('LikelihoodTempering: N must be a positive integer')
        if int(steps) != steps or steps < 1:
            raise ValueError('LikelihoodTempering: steps must be a positive '
                             'integer')
        if resampling not in rs.rs_funcs:
            raise ValueError('%s: not a valid resampling scheme' % resampling)
        self.model = model
        self.data = data
        self.N = int(N)
        self.temp_step = 1. / steps
        self.resampling = resampling
        self.jitter = mcmc.MetropolisJitter(scales=jitter_scales,
                                            out_of_bounds=out_of_bounds)
        self.rng = utils.as_generator(seed)
        self.temperature = 0.
        self.prev_temperature = 0.
        self.wgts = None
        self.X = Population.linspace(model, self.N)

    def weight(self):
        self.X.llik = self.model.loglik(self.X, self.data)
        with np.errstate(invalid='ignore'):
            lw = rs.log_ratio(tempered_loglik(self.X.llik, self.temperature),
                              tempered_loglik(self.X.llik, self.prev_temperature))
        self.wgts = rs.Weights(lw=lw)

    def log_mean_likelihood(self):
        return self.wgts.log_mean

    def resample(self):
        A = rs.resampling(self.resampling, self.wgts.lw, rng=self.rng)
        self.X.resample_from(A)

    def step(self):
        go_on = self.temperature < 1.
        self.prev_temperature = self.temperature
        new_temp = self.temperature + self.temp_step
        self.temperature = 1. if new_temp > 1. - TEMPERATURE_TOL else new_temp
        return go_on

    def metropolis_accept(self, x, xprop):
        """Metropolis acceptance test at the current temperature.

        Computes the log-likelihood of the proposed particles (stored in
        xprop.llik) and returns a boolean array, True where the move is
        accepted.
        """
        xprop.llik = self.model.loglik(xprop, self.data)
        with np.errstate(divide='ignore', invalid='ignore'):
            lu = np.log(self.rng.random(x.N))
            delta = rs.log_ratio(tempered_loglik(xprop.llik, self.temperature),
                                 tempered_loglik(x.llik, self.temperature))
            return lu < delta

    def rejuvenate(self):
        self.jitter(self.X, self.model, self.metropolis_accept, self.rng)

    def summary_format(self, smc):
        msg = 't=%i, temperature=%.3g, ESS=%.2f, logLt=%.3f' % (
            smc.t, self.temperature, self.wgts.ESS, smc.logLt)
        ars = self.X.shared.get('acc_rates')
        if ars:
            msg += ', Metropolis acc. rates: %s' % ', '.join(
                '%.3f' % a for a in ars[-1])
        return msg


def run(model, data=None, n_particles=100, steps=100,
        jitter_scales=(0.01, 0.35, 1.), seed=None, verbose=False,
        collect=None, resampling='systematic', out_of_bounds='ignore'):
    """Runs a likelihood tempering SMC sampler.

    Parameters
    ----------
    model: `models.Model` object
    data: sequence of observations, or None
    n_particles: int (default=100)
    steps: int (default=100)
    jitter_scales: sequence of floats (default=(0.01, 0.35, 1.))
    seed: None, int or numpy.random.Generator
    verbose: bool (default=False)
        print a summary at each iteration
    collect: list of collectors, or 'off'
        see module `collectors`
    resampling: str (default='systematic')
    out_of_bounds: {'ignore', 'reject', 'clamp'} (default='ignore')

    Returns
    -------
    log_evidence: float
        estimate of the log marginal likelihood
    post: dict
        {name: (n_particles,) array}, the final particles
    """
    fk = LikelihoodTempering(model=model, data=data, N=n_particles,
                             steps=steps, jitter_scales=jitter_scales,
                             resampling=resampling,
                             out_of_bounds=out_of_bounds, seed=seed)
    alg = core.SMC(fk=fk, verbose=verbose, collect=collect)
    log_evidence = alg.run()
    return log_evidence, fk.X.as_dict()


def multi_run(model, nruns=10, nprocs=1, out_func=None, seed=None, **options):
    """Runs the tempering sampler several times, optionally in parallel.

    A basic usage is::

        results = multi_run(my_model, data=data, nruns=20, nprocs=0)

    which runs `run` 20 times, using all available CPU cores, and returns a
    list of 20 dicts, with keys ``'run'`` (run identifier), ``'seed'`` (each
    run gets its own seed) and ``'output'`` (what `run` returned, or
    ``out_func(log_evidence, post)`` if out_func is given).

    Options given as lists are "cartesianised"::

        results = multi_run(my_model, data=data, n_particles=[100, 1000])

    runs the sampler 10 times for each value of n_particles; the output
    dicts then contain an extra key, ``'n_particles'``.
    Options data, jitter_scales and collect are never cartesianised.

    Parameters
    ----------
    model: `models.Model` object
    nruns: int
        number of runs (for each combination of options)
    nprocs: int
        number of processes; if <= 0, number of cores *not* to use
        (default: 1, no multiprocessing)
    out_func: callable, optional
        function of (log_evidence, post) applied to the output of each run
    seed: None, int or numpy.random.Generator
        used to generate the seeds of the runs
    **options:
        arguments of `run`

    Returns
    -------
    A list of dicts

    See also
    --------
    `utils.multiplexer`: for more details on the syntax.
    """
    protected = {k: options.pop(k) for k in PROTECTED_OPTIONS if k in options}
    f = _Runner(model, out_func)
    return utils.multiplexer(f=f, nruns=nruns, nprocs=nprocs, seeding=True,
                             rng=seed, protected_args=protected, **options)


class _Runner:
    # picklable wrapper around run (for joblib)
    def __init__(self, model, out_func):
        self.model = model
        self.out_func = out_func

    def __call__(self, **kwargs):
        out = run(self.model, **kwargs)
        return out if self.out_func is None else self.out_func(*out)
