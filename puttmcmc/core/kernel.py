"""
Template class file for the kernel
"""

# Imports
from typing import Protocol
import numpy as np
from puttmcmc.core.state import ChainState
from puttmcmc.core.proposal import ProposalProtocol


class KernelProtocol(Protocol):
    """
    Protocol for MCMC transition kernels.
    """

    def propose(self, proposal: ProposalProtocol, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        """Generate candidate state from current state"""
        raise NotImplementedError("Implement propose method")

    def log_acceptance_ratio(self, proposal: ProposalProtocol, current: ChainState, proposed: ChainState) -> float:
        """Compute log acceptance ratio"""
        raise NotImplementedError("Implement log_acceptance_ratio method")

    def accept(self, log_ratio: float, rng: np.random.Generator) -> bool:
        """Decide whether to move to the proposed state"""
        raise NotImplementedError("Implement accept method")
