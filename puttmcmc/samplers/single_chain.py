"""
Class file for a single chain MCMC sampler.
"""

import logging
from dataclasses import replace
from numbers import Integral
from typing import Callable, Optional

import numpy as np

from puttmcmc.core.kernel import KernelProtocol
from puttmcmc.core.proposal import FunctionProposal, ProposalProtocol
from puttmcmc.core.state import ChainResult, ChainState
from puttmcmc.core.target import TargetProtocol, evaluate_target
from puttmcmc.kernels.metropolis import MetropolisHastingsKernel
from puttmcmc.utils.logging import PuttLogger
from puttmcmc.utils.tools import as_column, make_rng


def validate_n_iterations(n_iterations) -> int:
    if isinstance(n_iterations, bool) or not isinstance(n_iterations, Integral):
        raise TypeError(f"n_iterations must be an integer, got {type(n_iterations).__name__}.")
    if n_iterations < 1:
        raise ValueError(f"n_iterations must be positive, got {n_iterations}.")
    return int(n_iterations)


class MCMCsampler:
    """
    Class for a single chain MCMC sampler.

    Attributes:
        target (TargetProtocol): Unnormalized log target density.
        kernel (KernelProtocol): The transition kernel used for sampling.
        proposal (ProposalProtocol): The proposal used for generating candidate states.
        initial_state (ChainState): The initial state of the chain.
        n_iterations (int): Number of iterations to run the sampler.
        rng (np.random.Generator): Random source owned by this chain.
        log_every (int): Number of iterations between progress messages.
    """

    def __init__(self, target: TargetProtocol, proposal: ProposalProtocol, initial_position, n_iterations: int, kernel: Optional[KernelProtocol] = None, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None, log_every: int = 1000, logger: Optional[logging.Logger] = None, dim: Optional[int] = None):

        self.n_iterations = validate_n_iterations(n_iterations)
        self.target = target
        self.proposal = proposal
        self.kernel = kernel if kernel is not None else MetropolisHastingsKernel(target)
        self.rng = make_rng(seed, rng)
        self.log_every = log_every
        self.logger = logger if logger is not None else PuttLogger.get_logger(__name__)

        # Default start is the origin of the requested dimension
        if initial_position is None:
            if dim is None:
                raise ValueError("Provide initial_position or dim.")
            initial_position = np.zeros((dim, 1))
        initial_position = as_column(initial_position)
        self.dim = initial_position.shape[0]
        self.initial_state = ChainState(position=initial_position, **evaluate_target(target, initial_position), metadata={
            'iteration': 0,
            'log_acceptance_ratio': 0.0,
            'is_accepted': False,
            })
        if self.initial_state.log_density == -np.inf:
            raise ValueError(
                f"Initial position {initial_position.ravel().tolist()} lies outside the target's support."
            )

    def run(self) -> ChainResult:
        """
        Run the MCMC sampler for the configured number of iterations.

        Returns:
        -------
            ChainResult holding exactly n_iterations positions and the acceptance flags.
        """
        positions = np.empty((self.dim, self.n_iterations))
        log_target = np.empty(self.n_iterations)
        accepted = np.zeros(self.n_iterations, dtype=bool)

        # Fresh metadata so repeated runs leave the initial state untouched
        current_state = replace(self.initial_state, metadata=dict(self.initial_state.metadata or {}))
        self.logger.debug("Starting chain of %d iterations in %d dimensions", self.n_iterations, self.dim)

        for i in range(self.n_iterations):

            proposed_state = self.kernel.propose(self.proposal, current_state, self.rng)
            log_ratio = self.kernel.log_acceptance_ratio(self.proposal, current_state, proposed_state)

            # Rejection carries the current state forward unchanged
            is_accepted = self.kernel.accept(log_ratio, self.rng)
            if is_accepted:
                current_state = proposed_state
                accepted[i] = True

            current_state.metadata['iteration'] = i + 1
            current_state.metadata['log_acceptance_ratio'] = log_ratio
            current_state.metadata['is_accepted'] = is_accepted

            positions[:, i] = current_state.position[:, 0]
            log_target[i] = current_state.log_density

            if self.log_every and (i + 1) % self.log_every == 0:
                self.logger.debug(
                    "Iteration %d/%d, acceptance rate so far %.3f",
                    i + 1, self.n_iterations, np.count_nonzero(accepted[:i + 1]) / (i + 1),
                )

        result = ChainResult(
            positions=positions,
            log_target=log_target,
            accepted=accepted,
            initial_position=self.initial_state.position.copy(),
        )
        self.logger.info(
            "Finished %d iterations: %d accepted (rate %.3f)",
            result.n_iterations, result.n_accepted, result.acceptance_rate,
        )
        return result


def metropolis_hastings(log_target: TargetProtocol, propose: Callable[[np.ndarray, np.random.Generator], np.ndarray], initial_position, n_iterations: int, log_proposal_ratio: Optional[Callable[[np.ndarray, np.ndarray], float]] = None, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None, logger: Optional[logging.Logger] = None) -> ChainResult:
    """
    Run a Metropolis-Hastings chain from plain functions.

    Parameters
    ----------
    log_target : callable
        Unnormalized log density of a (d, 1) position; -inf outside the support.
    propose : callable
        ``propose(position, rng)`` returns a candidate position.
    initial_position : array-like
        Starting point, must have finite log density.
    n_iterations : int
        Number of iterations; the chain holds exactly this many positions.
    log_proposal_ratio : callable, optional
        ``log_proposal_ratio(current, candidate)`` = log q(current | candidate) - log q(candidate | current).
        Omit for symmetric proposals.
    seed, rng :
        Source of randomness, at most one of the two.

    Returns
    -------
    ChainResult
    """
    proposal = FunctionProposal(propose, log_proposal_ratio)
    sampler = MCMCsampler(log_target, proposal, initial_position, n_iterations, seed=seed, rng=rng, logger=logger)
    return sampler.run()
