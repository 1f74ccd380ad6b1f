"""
Independence proposals: candidates are drawn from a fixed density that does
not depend on the current state.
"""

from typing import Tuple

import numpy as np
from scipy import stats

from puttmcmc.core.proposal import ProposalBase
from puttmcmc.core.state import ChainState
from puttmcmc.utils.tools import as_column, elicit_gamma, lognormpdf, sample_multivariate_gaussian


class IndependentProposal(ProposalBase):
    """Independent proposal from fixed Gaussian distribution"""

    def __init__(self, mu: np.ndarray, sigma: np.ndarray):
        self.mu = as_column(mu)
        self.cov = np.atleast_2d(np.asarray(sigma, dtype=float))

    def sample(self, _: ChainState, rng: np.random.Generator) -> ChainState:
        return ChainState(position=sample_multivariate_gaussian(self.mu, self.cov, rng))

    def log_density(self, position: np.ndarray) -> float:
        return lognormpdf(position, self.mu, self.cov)

    def proposal_logpdf(self, current_state: ChainState, proposed_state: ChainState) -> Tuple[float, float]:
        """Calculate forward and reverse log probability"""
        return self.log_density(proposed_state.position), self.log_density(current_state.position)


class GammaNormalIndependenceProposal(ProposalBase):
    """
    Independence proposal for a two-parameter (alpha, beta) posterior.

    alpha' ~ Gamma(alpha_shape, rate=alpha_rate) and beta' ~ Normal(beta_mean, beta_sd),
    drawn independently of each other and of the current state. The Hastings
    correction is log q(current) - log q(candidate).
    """

    def __init__(self, alpha_shape: float, alpha_rate: float, beta_mean: float, beta_sd: float):
        if alpha_shape <= 0 or alpha_rate <= 0:
            raise ValueError("Gamma shape and rate must be positive.")
        if beta_sd <= 0:
            raise ValueError("beta_sd must be positive.")
        self.alpha_shape = float(alpha_shape)
        self.alpha_rate = float(alpha_rate)
        self.beta_mean = float(beta_mean)
        self.beta_sd = float(beta_sd)

    @classmethod
    def from_interval(cls, alpha_lower: float, alpha_upper: float, beta_mean: float, beta_sd: float, mass: float = 0.95) -> "GammaNormalIndependenceProposal":
        """Build the proposal with a Gamma whose central ``mass`` interval is (alpha_lower, alpha_upper)."""
        shape, rate = elicit_gamma(alpha_lower, alpha_upper, mass)
        return cls(shape, rate, beta_mean, beta_sd)

    def sample(self, _: ChainState, rng: np.random.Generator) -> ChainState:
        alpha = rng.gamma(self.alpha_shape, 1.0 / self.alpha_rate)
        beta = rng.normal(self.beta_mean, self.beta_sd)
        return ChainState(position=np.array([[alpha], [beta]]))

    def log_density(self, position: np.ndarray) -> float:
        alpha, beta = np.ravel(position)
        log_q_alpha = stats.gamma.logpdf(alpha, a=self.alpha_shape, scale=1.0 / self.alpha_rate)
        log_q_beta = stats.norm.logpdf(beta, loc=self.beta_mean, scale=self.beta_sd)
        return float(log_q_alpha + log_q_beta)

    def proposal_logpdf(self, current_state: ChainState, proposed_state: ChainState) -> Tuple[float, float]:
        if current_state.position.shape[0] != 2 or proposed_state.position.shape[0] != 2:
            raise ValueError("GammaNormalIndependenceProposal works on (alpha, beta) pairs only.")
        return self.log_density(proposed_state.position), self.log_density(current_state.position)

    def __repr__(self) -> str:
        return (
            f"GammaNormalIndependenceProposal(alpha_shape={self.alpha_shape:.4g}, alpha_rate={self.alpha_rate:.4g}, "
            f"beta_mean={self.beta_mean:.4g}, beta_sd={self.beta_sd:.4g})"
        )
