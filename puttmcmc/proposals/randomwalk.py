"""
Symmetric random-walk proposals for MCMC sampling
"""

from typing import Tuple

import numpy as np

from puttmcmc.core.proposal import ProposalBase
from puttmcmc.core.state import ChainState
from puttmcmc.utils.tools import lognormpdf, sample_multivariate_gaussian


class GaussianRandomWalk(ProposalBase):
    """Random walk proposal centered at current state"""

    def __init__(self, sigma: np.ndarray):
        sigma = np.atleast_2d(np.asarray(sigma, dtype=float))
        if sigma.shape[0] != sigma.shape[1]:
            raise ValueError(f"sigma must be a square (d, d) covariance, got {sigma.shape}.")
        self.cov = sigma
        self.mu = np.zeros((sigma.shape[0], 1))

    @classmethod
    def isotropic(cls, dim: int, step_size: float) -> "GaussianRandomWalk":
        """Random walk with independent N(0, step_size**2) increments."""
        if step_size <= 0:
            raise ValueError("step_size must be positive.")
        return cls(step_size**2 * np.eye(dim))

    def sample(self, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        """Generate candidate state from current state"""
        step = sample_multivariate_gaussian(self.mu, self.cov, rng)
        return ChainState(position=current_state.position + step)

    def proposal_logpdf(self, current_state: ChainState, proposed_state: ChainState) -> Tuple[float, float]:
        """Calculate forward and reverse log probability"""
        logq_forward = lognormpdf(proposed_state.position, current_state.position, self.cov)
        logq_reverse = lognormpdf(current_state.position, proposed_state.position, self.cov)
        return logq_forward, logq_reverse

    def log_proposal_ratio(self, current_state: ChainState, proposed_state: ChainState) -> float:
        # Increments are zero-mean, so the walk is symmetric
        return 0.0


class IntegerRandomWalk(ProposalBase):
    """
    Random walk on the integer lattice.

    One coordinate, chosen uniformly, moves by k drawn uniformly from
    {-max_step, ..., max_step} without 0; the others stay put. Candidates may
    leave the target's support; the target is expected to report -inf there
    so the move is rejected.
    """

    def __init__(self, max_step: int = 1):
        if int(max_step) != max_step or max_step < 1:
            raise ValueError(f"max_step must be a positive integer, got {max_step}.")
        self.max_step = int(max_step)

    def sample(self, current_state: ChainState, rng: np.random.Generator) -> ChainState:
        dim = current_state.position.shape[0]
        coordinate = rng.integers(dim)
        magnitude = rng.integers(1, self.max_step + 1)
        sign = rng.choice(np.array([-1, 1]))
        position = current_state.position.copy()
        position[coordinate, 0] += sign * magnitude
        return ChainState(position=position)

    def proposal_logpdf(self, current_state: ChainState, proposed_state: ChainState) -> Tuple[float, float]:
        dim = current_state.position.shape[0]
        step = np.abs(proposed_state.position - current_state.position).ravel()
        moved = step[step != 0]
        if moved.size != 1 or moved[0] > self.max_step or moved[0] != np.round(moved[0]):
            return -np.inf, -np.inf
        log_q = -np.log(dim) - np.log(2 * self.max_step)
        return log_q, log_q

    def log_proposal_ratio(self, current_state: ChainState, proposed_state: ChainState) -> float:
        return 0.0
