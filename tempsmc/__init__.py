"""
Likelihood tempering SMC (Sequential Monte Carlo) in python.

"""

__version__ = '0.1'

from tempsmc.core import SMC, AnnealingCallbacks
from tempsmc.models import Model, ParamSpec, model
from tempsmc.tempering import LikelihoodTempering, multi_run, run
