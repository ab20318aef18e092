"""
Metropolis moves applied to the particles (rejuvenation step).

After resampling, several particles are copies of the same ancestor. To
restore diversity, each particle is moved through Gaussian random walk
Metropolis steps that leave the current (tempered) target invariant.

`MetropolisJitter` performs one pass per jitter *scale*. For a model with D
parameters and N particles, the proposal of a pass with scale s is::

    theta_prop[d] = theta[d] + s * step_d / N**(1/D) * Z_d,   Z_d ~ N(0, 1)

where step_d = |upper_d - lower_d| / D / 3. Term N**(1/D) accounts for the
fact that particles get denser as N grows. All the D components are moved
together, and the move is accepted or rejected as a whole, by a predicate
provided by the caller::

    jitter = MetropolisJitter(scales=(0.01, 0.35, 1.))
    acc_rates = jitter(x, model, accept, rng)

Here ``accept(x, xprop)`` returns a boolean array of length N (see
`tempering.LikelihoodTempering.metropolis_accept`). Particles are moved in
place; each particle evolves independently of the others.

Parameter bounds are not enforced by default (``out_of_bounds='ignore'``);
use ``'reject'`` to reject proposals that leave [lower, upper], or ``'clamp'``
to project them back onto the bounds.

"""

import numpy as np
from scipy import stats

OUT_OF_BOUNDS_POLICIES = ('ignore', 'reject', 'clamp')


def step_sizes(model):
    """Per-dimension step sizes |upper - lower| / D / 3."""
    return model.widths / model.dim / 3.


class MetropolisJitter:
    """Multi-scale Gaussian random walk Metropolis.

    Parameters
    ----------
    scales: sequence of floats
        jitter scales, applied sequentially (one pass per scale)
    out_of_bounds: {'ignore', 'reject', 'clamp'}
        what to do with proposals outside the parameter ranges
    """

    def __init__(self, scales=(0.01, 0.35, 1.), out_of_bounds='ignore'):
        self.scales = [float(s) for s in scales]
        if not self.scales or min(self.scales) <= 0.:
            raise ValueError('MetropolisJitter: scales must be a non-empty '
                             'sequence of positive numbers')
        if out_of_bounds not in OUT_OF_BOUNDS_POLICIES:
            raise ValueError('MetropolisJitter: out_of_bounds must be one of %s'
                             % (OUT_OF_BOUNDS_POLICIES,))
        self.out_of_bounds = out_of_bounds

    def proposal(self, x, scale, steps, rng):
        z = stats.norm.rvs(size=x.theta.shape, random_state=rng)
        return x.theta + scale * (steps / x.N ** (1. / x.dim))[:, np.newaxis] * z

    def step(self, x, model, scale, accept, rng):
        """One Metropolis pass with the given scale.

        Returns
        -------
        mean acceptance rate
        """
        lo = np.minimum(model.lower, model.upper)[:, np.newaxis]
        up = np.maximum(model.lower, model.upper)[:, np.newaxis]
        xprop = x.__class__(x.names, self.proposal(x, scale, step_sizes(model), rng))
        if self.out_of_bounds == 'clamp':
            np.clip(xprop.theta, lo, up, out=xprop.theta)
        acc = accept(x, xprop)
        if self.out_of_bounds == 'reject':
            acc &= np.all((xprop.theta >= lo) & (xprop.theta <= up), axis=0)
        x.copyto(xprop, where=acc)
        return np.mean(acc)

    def __call__(self, x, model, accept, rng):
        """Applies one pass per scale to population x (in place).

        Returns
        -------
        list of acceptance rates (one per scale)
        """
        ars = [self.step(x, model, s, accept, rng) for s in self.scales]
        x.shared['acc_rates'] = x.shared.get('acc_rates', []) + [ars]
        return ars
