"""
Class file for the Metropolis-Hastings kernel
"""

# Imports
import numpy as np
from puttmcmc.core.state import ChainState
from puttmcmc.core.kernel import KernelProtocol
from puttmcmc.core.proposal import ProposalProtocol
from puttmcmc.core.target import TargetProtocol, NonFiniteLogDensityError, evaluate_target


class MetropolisHastingsKernel(KernelProtocol):
    """
    Metropolis-Hastings kernel for MCMC sampling.

    All comparisons happen in log-space: a candidate is accepted when
    log(u) < log pi(x') - log pi(x) + log q(x | x') - log q(x' | x).
    """

    def __init__(self, target: TargetProtocol):
        """
        Initialize the Metropolis-Hastings kernel with a target.
        """
        self.target = target

    def propose(self, proposal: ProposalProtocol, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        """
        Generate a candidate state from the current state using the proposal.
        """
        proposed_position = proposal.sample(current_state, rng).position

        # Evaluate the target at the candidate
        target_result = evaluate_target(self.target, proposed_position)

        metadata = current_state.metadata.copy() if current_state.metadata is not None else {}
        return ChainState(position=proposed_position, **target_result, metadata=metadata)

    def log_acceptance_ratio(self, proposal: ProposalProtocol, current: ChainState, proposed: ChainState) -> float:
        """
        Compute the log acceptance ratio for the proposed state.

        Off-support candidates give -inf whatever the proposal ratio; a
        zero-density current state gives +inf for any supported candidate.
        """
        if proposed.log_density == -np.inf:
            return -np.inf
        if current.log_density == -np.inf:
            return np.inf

        log_q_ratio = proposal.log_proposal_ratio(current, proposed)
        if np.isnan(log_q_ratio):
            raise NonFiniteLogDensityError(
                f"Proposal log ratio is NaN between {current.position.ravel().tolist()} "
                f"and {proposed.position.ravel().tolist()}."
            )

        return proposed.log_density - current.log_density + log_q_ratio

    def accept(self, log_ratio: float, rng: np.random.Generator) -> bool:
        """
        Accept with probability min(1, exp(log_ratio)).
        """
        # 1 - U lies in (0, 1], so the log is always finite
        log_u = np.log1p(-rng.random())
        return bool(log_u < log_ratio)
