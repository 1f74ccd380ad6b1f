from puttmcmc.core.state import ChainResult, ChainState
from puttmcmc.core.target import NonFiniteLogDensityError
from puttmcmc.samplers import MCMCsampler, metropolis_hastings, run_chains

__version__ = "0.1.0"

__all__ = [
    "ChainState",
    "ChainResult",
    "NonFiniteLogDensityError",
    "MCMCsampler",
    "metropolis_hastings",
    "run_chains",
]
