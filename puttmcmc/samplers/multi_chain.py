"""
Independent multi-chain sampling.

Every chain owns its own generator, spawned from a single SeedSequence, and its
own output arrays; nothing mutable is shared between chains.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from puttmcmc.core.proposal import ProposalProtocol
from puttmcmc.core.state import ChainResult
from puttmcmc.core.target import TargetProtocol
from puttmcmc.samplers.single_chain import MCMCsampler
from puttmcmc.utils.logging import PuttLogger


def run_chains(target: TargetProtocol, proposal: ProposalProtocol, initial_positions: Sequence, n_iterations: int, seed: Optional[int] = None, logger: Optional[logging.Logger] = None) -> List[ChainResult]:
    """
    Run one Metropolis-Hastings chain per initial position.

    Parameters
    ----------
    target : TargetProtocol
        Unnormalized log target density.
    proposal : ProposalProtocol
        Proposal shared by all chains; proposals keep no per-chain state.
    initial_positions : sequence
        One starting point per chain.
    n_iterations : int
        Iterations per chain.
    seed : int, optional
        Root seed; chain k uses the k-th spawned child, so results are reproducible.

    Returns
    -------
    list of ChainResult, in the order of ``initial_positions``.
    """
    if len(initial_positions) == 0:
        raise ValueError("Need at least one initial position.")

    logger = logger if logger is not None else PuttLogger.get_logger(__name__)
    children = np.random.SeedSequence(seed).spawn(len(initial_positions))

    # Build every sampler first so invalid starts fail before any sampling
    samplers = [
        MCMCsampler(
            target, proposal, start, n_iterations,
            rng=np.random.default_rng(child), logger=PuttLogger.chain_logger(logger, k),
        )
        for k, (start, child) in enumerate(zip(initial_positions, children))
    ]

    results = []
    for k, sampler in enumerate(samplers):
        logger.debug("Running chain %d/%d", k + 1, len(samplers))
        results.append(sampler.run())
    return results


def overdispersed_starts(center, scale, n_chains: int, seed: Optional[int] = None) -> List[np.ndarray]:
    """
    Draw ``n_chains`` starting points around ``center`` with N(0, scale**2) jitter.

    ``scale`` is a float or one value per coordinate.
    """
    if n_chains < 1:
        raise ValueError("n_chains must be positive.")
    center = np.asarray(center, dtype=float).reshape(-1, 1)
    scale = np.asarray(scale, dtype=float)
    if scale.ndim > 0:
        scale = scale.reshape(-1, 1)
        if scale.shape != center.shape:
            raise ValueError(f"scale needs one value per coordinate, got {scale.size} for {center.shape[0]}.")
    if np.any(scale <= 0):
        raise ValueError("scale must be positive.")
    rng = np.random.default_rng(seed)
    return [center + scale * rng.standard_normal(center.shape) for _ in range(n_chains)]
