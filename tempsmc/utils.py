"""
Non-numerical utilities (random generators, timing, repeated runs).

Overview
========

This module gathers a few utilities that are used throughout the package:

* `as_generator`: turns a seed (or None, or an existing generator) into a
  `numpy.random.Generator`. All the random numbers of a run are drawn from
  such a generator, which is passed around explicitly; there is no global
  random state.
* `timer`: decorator that records the running time of a method.
* `multiplexer`: evaluates a function for a cartesian product of arguments,
  optionally in parallel.

The last one is what `tempering.multi_run` relies on. Say we have some
function ``f``, which takes only keyword arguments::

    def f(x=0, y=0, z=0):
        return x + y + z**2

then::

    results = multiplexer(f=f, x=3, y=[2, 4, 6], z=[3, 5])

returns a list of 3*2 dictionaries of the form::

    [ {'run': 0, 'y': 2, 'z': 3, 'output': 14},  # 14=f(3, 2, 3)
      {'run': 0, 'y': 2, 'z': 5, 'output': 30},
       ... ]

Arguments given as lists are "cartesianised"; other arguments are passed
as is.

.. warning ::
    Parallel processing relies on library joblib. Workers do not share any
    random state: when ``seeding`` is True, each evaluation of ``f`` receives
    its own ``seed`` keyword argument (and f must accept it).

"""

import functools
import itertools
import time

import joblib
import numpy as np

MAX_INT_32 = np.iinfo(np.uint32).max


def as_generator(seed=None):
    """Returns a numpy random generator.

    Parameters
    ----------
    seed: None, int or numpy.random.Generator
        if a generator, it is returned as is (not copied); otherwise, a new
        generator is created with this seed

    Returns
    -------
    numpy.random.Generator
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def timer(method):
    @functools.wraps(method)
    def timed_method(self, **kwargs):
        starting_time = time.perf_counter()
        out = method(self, **kwargs)
        self.cpu_time = time.perf_counter() - starting_time
        return out

    return timed_method


def cartesian_lists(d):
    """
    turns a dict of lists into a list of dicts that represents
    the cartesian product of the initial lists

    Example
    -------
    cartesian_lists({'a':[0, 2], 'b':[3, 4, 5]}
    returns
    [ {'a':0, 'b':3}, {'a':0, 'b':4}, ... {'a':2, 'b':5} ]

    """
    return [dict(zip(d.keys(), args)) for args in itertools.product(*d.values())]


def distinct_seeds(k, rng=None):
    """Generates k distinct seeds.

    Parameters
    ----------
    k:  int
        number of requested seeds
    rng: None, int or numpy.random.Generator
        source of randomness

    Note
    ----
    uses stratified sampling to make sure the seeds are distinct.
    """
    bw = MAX_INT_32 // k  # bin width
    return np.arange(0, k * bw, bw) + as_generator(rng).integers(bw, size=k)


def distribute_work(f, inputs, outputs, nprocs=1, out_key="output"):
    """
    For each input i (a dict) in list **inputs**, evaluate f(**i),
    using joblib if nprocs > 1.

    Result number i is stored in dict outputs[i], under key out_key; list
    outputs is returned.
    """
    if nprocs <= 0:
        nprocs += joblib.cpu_count()

    if nprocs <= 1:
        results = [f(**ip) for ip in inputs]
    else:
        pool = joblib.Parallel(n_jobs=nprocs, backend="loky")
        results = pool(joblib.delayed(f)(**ip) for ip in inputs)
    for op, r in zip(outputs, results):
        op[out_key] = r
    return outputs


def multiplexer(f=None, nruns=1, nprocs=1, seeding=True, rng=None,
                protected_args=None, **args):
    """Evaluate a function for different parameters, optionally in parallel.

    Parameters
    ----------
    f: function
        function f to evaluate, must take only kw arguments as inputs
    nruns: int
        number of evaluations of f for each set of arguments
    nprocs: int
        if <=0, set to actual number of physical processors plus nprocs
        (i.e. -1 => number of cpus on your machine minus one)
        Default is 1, which means no multiprocessing
    seeding: bool (default: True)
        whether to pass a distinct ``seed`` keyword argument to each
        evaluation of f
    rng: None, int or numpy.random.Generator
        generator used to draw the seeds
    protected_args: dict
        args protected from cartesian product (even if they are lists)
    **args:
        keyword arguments for function f; lists are cartesianised

    """
    if not callable(f):
        raise TypeError("multiplexer: function f missing, or not callable")
    fixedargs = {} if protected_args is None else dict(protected_args)
    listargs = {"run": list(range(nruns))}
    for k, v in args.items():
        if isinstance(v, list):
            listargs[k] = v
        else:
            fixedargs[k] = v
    outputs = cartesian_lists(listargs)
    inputs = []
    for op in outputs:
        ip = dict(fixedargs)
        ip.update((k, v) for k, v in op.items() if k != "run")
        inputs.append(ip)
    if seeding:
        seeds = distinct_seeds(len(inputs), rng=rng)
        for ip, op, seed in zip(inputs, outputs, seeds):
            ip["seed"] = op["seed"] = int(seed)
    return distribute_work(f, inputs, outputs, nprocs=nprocs)
