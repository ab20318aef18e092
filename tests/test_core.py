"""Tests for the generic SMC loop."""

import types

import numpy as np
import pytest

import tempsmc
from tempsmc import collectors as col
from tempsmc.core import SMC, AnnealingCallbacks


class Countdown(AnnealingCallbacks):
    """Records calls; step() returns True n times, then False."""

    def __init__(self, n):
        self.n = n
        self.calls = []

    def weight(self):
        self.calls.append('weight')

    def log_mean_likelihood(self):
        self.calls.append('log_mean_likelihood')
        return -1.5

    def step(self):
        self.calls.append('step')
        self.n -= 1
        return self.n >= 0

    def resample(self):
        self.calls.append('resample')

    def rejuvenate(self):
        self.calls.append('rejuvenate')


def test_call_sequence():
    fk = Countdown(2)
    alg = SMC(fk=fk)
    out = alg.run()
    cycle = ['weight', 'log_mean_likelihood', 'step', 'resample', 'rejuvenate']
    assert fk.calls == 2 * cycle + cycle[:3]
    assert out == alg.logLt == -4.5
    assert alg.loglt == -1.5
    assert alg.t == 3
    assert alg.done
    assert alg.cpu_time >= 0.


def test_iterator_protocol():
    alg = SMC(fk=Countdown(1))
    next(alg)
    assert alg.t == 1 and not alg.done
    next(alg)
    assert alg.done
    with pytest.raises(StopIteration):
        next(alg)


def test_stops_at_once():
    fk = Countdown(0)
    SMC(fk=fk).run()
    assert fk.calls == ['weight', 'log_mean_likelihood', 'step']


def test_plain_callbacks_object(capsys):
    n = {'left': 3}

    def step():
        n['left'] -= 1
        return n['left'] > 0
    fk = types.SimpleNamespace(weight=lambda: None,
                               log_mean_likelihood=lambda: 1.,
                               step=step, resample=lambda: None,
                               rejuvenate=lambda: None)
    alg = SMC(fk=fk, verbose=True)
    assert alg.run() == 3.
    out = capsys.readouterr().out.splitlines()
    assert out == ['iteration 0: logLt=1.000', 'iteration 1: logLt=2.000',
                   'iteration 2: logLt=3.000']


def test_default_summaries():
    alg = SMC(fk=Countdown(3))
    alg.run()
    assert alg.summaries.logLts == [-1.5, -3., -4.5, -6.]
    assert len(alg.summaries.ESSs) == 4
    assert all(np.isnan(alg.summaries.temperatures))


def test_summaries_off():
    alg = SMC(fk=Countdown(3), collect='off')
    alg.run()
    assert alg.summaries is None


def test_user_collector():
    class Calls(col.Collector):
        def fetch(self, smc):
            return len(smc.fk.calls)

    alg = SMC(fk=Countdown(1), collect=[Calls()])
    alg.run()
    assert alg.summaries.calls == [2, 7]


def test_collector_unknown_parameter():
    with pytest.raises(ValueError):
        col.Moments(phi=None)


@pytest.mark.parametrize('meth', ['weight', 'log_mean_likelihood', 'resample',
                                  'rejuvenate', 'step'])
def test_abstract_callbacks(meth):
    with pytest.raises(NotImplementedError):
        getattr(AnnealingCallbacks(), meth)()


def test_exported():
    assert tempsmc.SMC is SMC
