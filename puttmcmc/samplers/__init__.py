from puttmcmc.samplers.multi_chain import overdispersed_starts, run_chains
from puttmcmc.samplers.single_chain import MCMCsampler, metropolis_hastings

__all__ = [
    "MCMCsampler",
    "metropolis_hastings",
    "run_chains",
    "overdispersed_starts",
]
