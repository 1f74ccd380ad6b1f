"""
Template class file for proposal
"""

# Imports
import numpy as np
from typing import Callable, Optional, Protocol, Tuple
from puttmcmc.core.state import ChainState
from puttmcmc.utils.tools import as_column


class ProposalProtocol(Protocol):
    """
    Protocol for proposal distributions
    """

    def sample(self, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        """Generate candidate state from current state"""
        raise NotImplementedError("Implement sample method")

    def log_proposal_ratio(self, current_state: ChainState, proposed_state: ChainState) -> float:
        """Hastings correction log q(current | proposed) - log q(proposed | current)"""
        raise NotImplementedError("Implement log_proposal_ratio method")


class ProposalBase:
    """
    Base class for proposals with a tractable density.

    Subclasses implement ``proposal_logpdf`` returning the forward (proposed
    given current) and reverse (current given proposed) log densities.
    """

    def sample(self, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        raise NotImplementedError("Subclass must implement sample method")

    def proposal_logpdf(self, current_state: ChainState, proposed_state: ChainState) -> Tuple[float, float]:
        raise NotImplementedError("Subclass must implement proposal_logpdf method")

    def log_proposal_ratio(self, current_state: ChainState, proposed_state: ChainState) -> float:
        logq_forward, logq_reverse = self.proposal_logpdf(current_state, proposed_state)
        return logq_reverse - logq_forward


class FunctionProposal:
    """
    Proposal built from plain functions.

    ``propose(position, rng)`` maps a (d, 1) position to a candidate position;
    ``log_ratio(current, candidate)`` gives the Hastings correction and defaults
    to 0 for symmetric proposals.
    """

    def __init__(self, propose: Callable[[np.ndarray, np.random.Generator], np.ndarray], log_ratio: Optional[Callable[[np.ndarray, np.ndarray], float]] = None):
        if not callable(propose):
            raise TypeError("propose must be callable.")
        if log_ratio is not None and not callable(log_ratio):
            raise TypeError("log_ratio must be callable or None.")
        self.propose = propose
        self.log_ratio = log_ratio

    @property
    def is_symmetric(self) -> bool:
        return self.log_ratio is None

    def sample(self, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        candidate = as_column(self.propose(current_state.position.copy(), rng))
        if candidate.shape != current_state.position.shape:
            raise ValueError(
                f"propose returned shape {candidate.shape}, expected {current_state.position.shape}."
            )
        return ChainState(position=candidate)

    def log_proposal_ratio(self, current_state: ChainState, proposed_state: ChainState) -> float:
        if self.log_ratio is None:
            return 0.0
        return float(self.log_ratio(current_state.position, proposed_state.position))
