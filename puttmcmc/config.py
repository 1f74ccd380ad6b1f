from dataclasses import dataclass
from typing import Optional, Tuple

from puttmcmc.proposals.independence import GammaNormalIndependenceProposal


@dataclass
class SamplerConfig:
    n_iterations: int = 10000
    n_chains: int = 4
    seed: Optional[int] = None
    burnin: float = 0.25
    log_every: int = 1000

    def __post_init__(self) -> None:
        if self.n_iterations < 1:
            raise ValueError("n_iterations must be positive.")
        if self.n_chains < 1:
            raise ValueError("n_chains must be positive.")
        if not 0.0 <= self.burnin < 1.0:
            raise ValueError("burnin must be a fraction in [0, 1).")


@dataclass
class IndependenceProposalConfig:
    """Gamma x Normal independence proposal, with the Gamma given by a central interval."""

    alpha_interval: Tuple[float, float]
    beta_mean: float
    beta_sd: float
    alpha_mass: float = 0.95

    def build(self) -> GammaNormalIndependenceProposal:
        lower, upper = self.alpha_interval
        return GammaNormalIndependenceProposal.from_interval(
            lower, upper, self.beta_mean, self.beta_sd, mass=self.alpha_mass
        )
