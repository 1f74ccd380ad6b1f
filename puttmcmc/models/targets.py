"""
Closed-form targets used in the sampling exercises.

Each factory returns a callable taking a (d, 1) position and returning an
unnormalized log density, with -inf outside the support.
"""

from typing import Callable, Optional, Sequence

import numpy as np
from scipy import stats

from puttmcmc.utils.tools import lognormpdf


def standard_normal_log_pdf(x: np.ndarray) -> float:
    """Log density of N(0, I), up to a constant."""
    return -0.5 * float(np.sum(np.square(x)))


def gaussian_log_pdf(mean: np.ndarray, cov: Optional[np.ndarray] = None) -> Callable[[np.ndarray], float]:
    """Log density of N(mean, cov)."""
    mean = np.atleast_1d(np.asarray(mean, dtype=float)).reshape(-1, 1)
    if cov is None:
        cov = np.eye(mean.shape[0])

    def log_pdf(x: np.ndarray) -> float:
        return lognormpdf(np.reshape(x, (-1, 1)), mean, cov)

    return log_pdf


def _is_integral(x: np.ndarray) -> bool:
    return bool(np.all(np.isfinite(x)) and np.all(x == np.round(x)))


def poisson_log_pmf(rate: float) -> Callable[[np.ndarray], float]:
    """
    Log pmf of independent Poisson(rate) coordinates.

    Negative or non-integer values are outside the support.
    """
    if rate <= 0:
        raise ValueError(f"Poisson rate must be positive, got {rate}.")

    def log_pmf(x: np.ndarray) -> float:
        if not _is_integral(x) or np.any(x < 0):
            return -np.inf
        return float(np.sum(stats.poisson.logpmf(x, rate)))

    return log_pmf


def discrete_uniform_log_pmf(states: Sequence[float]) -> Callable[[np.ndarray], float]:
    """
    Log pmf of a uniform distribution on a finite set of scalar states.
    """
    support = np.unique(np.asarray(states, dtype=float))
    if support.size == 0:
        raise ValueError("states must not be empty.")
    log_mass = -np.log(support.size)

    def log_pmf(x: np.ndarray) -> float:
        value = np.ravel(x)
        if value.size != 1:
            raise ValueError("discrete_uniform_log_pmf is defined on scalars only.")
        return log_mass if np.isin(value[0], support) else -np.inf

    return log_pmf
