"""
Script housing some helper functions
"""

# Imports
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np
import scipy
import scipy.linalg
import scipy.optimize
from scipy import stats

logger = logging.getLogger(__name__)


def make_rng(seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """
    Return the random generator used by a chain.

    Exactly one source of randomness is honoured: an explicit generator is used
    as-is, otherwise a new generator is seeded from ``seed`` (fresh entropy if None).
    """
    if rng is not None and seed is not None:
        raise ValueError("Pass either seed or rng, not both.")
    if rng is not None:
        if not isinstance(rng, np.random.Generator):
            raise TypeError(f"rng must be a numpy.random.Generator, got {type(rng).__name__}.")
        return rng
    return np.random.default_rng(seed)


def as_column(x) -> np.ndarray:
    """
    Convert a scalar, list or array to a float column vector of shape (d, 1).
    """
    arr = np.array(x, dtype=float)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr[:, np.newaxis]
    if arr.ndim == 2 and arr.shape[1] == 1:
        return arr
    raise ValueError(f"Expected a scalar, a 1D array or a (d, 1) column vector, got shape {arr.shape}.")


def lognormpdf(x: np.ndarray, mean: Optional[np.ndarray] = None, cov: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Log density of N(mean, cov) at the columns of ``x``.

    ``x`` is a (d, N) array of N points; a scalar or a 1D array is read as a
    single point. ``mean`` defaults to zero and ``cov`` to the identity. A
    float is returned for a single point, an (N,) array otherwise.
    """
    x = np.asarray(x, dtype=float)
    if x.ndim < 2:
        x = x.reshape(-1, 1)
    d, n_points = x.shape

    mean = np.zeros(d) if mean is None else np.asarray(mean, dtype=float).reshape(-1)
    cov = np.eye(d) if cov is None else np.asarray(cov, dtype=float).reshape(d, d)

    # Cholesky factor gives both the log-determinant and the whitened residual
    chol = scipy.linalg.cholesky(cov, lower=True)
    z = scipy.linalg.solve_triangular(chol, x - mean[:, np.newaxis], lower=True)
    log_det = 2.0 * np.sum(np.log(np.diag(chol)))
    logpdf = -0.5 * (d * np.log(2.0 * np.pi) + log_det + np.sum(z**2, axis=0))

    return logpdf.item() if n_points == 1 else logpdf


def sample_multivariate_gaussian(mu: np.ndarray, sigma: np.ndarray, rng: np.random.Generator, N: int = 1) -> np.ndarray:
    """
    Draw N points from N(mu, sigma) as a (d, N) array, using the caller's generator.
    """
    mu = np.atleast_2d(mu)
    if mu.shape[1] != 1:
        raise ValueError(f"mu must be a (d, 1) column, got shape {mu.shape}.")
    if sigma.ndim != 2 or sigma.shape != (mu.shape[0], mu.shape[0]):
        raise ValueError(f"sigma must be ({mu.shape[0]}, {mu.shape[0]}) to match mu, got {sigma.shape}.")

    return rng.multivariate_normal(mu[:, 0], sigma, size=N).T


def numerical_hessian(f: Callable, x: np.ndarray, step: float = 1e-4) -> np.ndarray:
    """Central finite-difference Hessian of a scalar function of a 1D array."""
    x = np.asarray(x, dtype=float)
    d = x.size
    h = step * np.maximum(np.abs(x), 1.0)
    hessian = np.zeros((d, d))
    for i in range(d):
        for j in range(i, d):
            ei = np.zeros(d); ei[i] = h[i]
            ej = np.zeros(d); ej[j] = h[j]
            value = (f(x + ei + ej) - f(x + ei - ej) - f(x - ei + ej) + f(x - ei - ej)) / (4 * h[i] * h[j])
            hessian[i, j] = hessian[j, i] = value
    return hessian


def laplace_approx(x0: np.ndarray, logpost: Callable, optmethod: str = "BFGS") -> Tuple[np.ndarray, np.ndarray]:
    """Perform the laplace approximation, returning the MAP point and an approximation of the covariance matrix.

    Parameters
    ----------
    x0 : (d, 1) array
        Initial guess for the MAP point
    logpost : callable
        Function to compute the log posterior, called with a 1D array
    optmethod : str
        Gradient-based method used for the final optimization (e.g. 'BFGS')

    Returns
    -------
    x_map : (d, 1) array
        MAP point
    cov_approx : (d, d) array
        Inverse of the finite-difference Hessian of -logpost at the MAP point
    """

    if x0.ndim != 2 or x0.shape[1] != 1:
        raise ValueError("x0 must be a column vector")

    neg_post = lambda x: -logpost(x)

    # Gradient-free pass to get close to the mode
    res = scipy.optimize.minimize(neg_post, x0.flatten(), method="Nelder-Mead")
    logger.debug("Nelder-Mead pre-optimization finished at %s", res.x)

    # Gradient pass to polish the optimum
    res = scipy.optimize.minimize(neg_post, res.x, method=optmethod, tol=1e-8, options={'maxiter': 5000})
    if not res.success:
        logger.warning("Laplace approximation did not converge: %s", res.message)

    map_point = res.x[:, np.newaxis]
    cov_approx = np.linalg.inv(numerical_hessian(neg_post, res.x))
    return map_point, cov_approx


def elicit_gamma(lower: float, upper: float, mass: float = 0.95) -> Tuple[float, float]:
    """
    Find Gamma (shape, rate) whose central ``mass`` interval is (lower, upper).

    The ratio of the two quantiles depends on the shape only, so the shape is
    found by a bracketed root search and the rate follows from the lower quantile.

    Returns
    -------
    shape, rate : float
    """
    if not 0.0 < lower < upper:
        raise ValueError(f"Need 0 < lower < upper, got ({lower}, {upper}).")
    if not 0.0 < mass < 1.0:
        raise ValueError(f"mass must lie in (0, 1), got {mass}.")

    tail = 0.5 * (1.0 - mass)
    target_ratio = upper / lower

    def ratio_gap(log_shape: float) -> float:
        shape = np.exp(log_shape)
        q_lo, q_hi = stats.gamma.ppf([tail, 1.0 - tail], a=shape)
        return np.log(q_hi / q_lo) - np.log(target_ratio)

    # Quantile ratio shrinks monotonically in the shape
    lo, hi = np.log(1e-2), np.log(1e10)
    if ratio_gap(lo) < 0 or ratio_gap(hi) > 0:
        raise ValueError(
            f"No Gamma with shape in [1e-2, 1e10] puts mass {mass} on ({lower}, {upper}); "
            "the interval is too wide or too narrow relative to its location."
        )
    log_shape = scipy.optimize.brentq(ratio_gap, lo, hi)
    shape = float(np.exp(log_shape))
    rate = float(stats.gamma.ppf(tail, a=shape) / lower)
    return shape, rate


@dataclass
class MonteCarloEstimate:
    """Plain Monte Carlo estimate of an expectation."""

    estimate: float
    standard_error: float
    n_samples: int


def monte_carlo_integrate(f: Callable[[np.ndarray], np.ndarray], sampler: Callable[[np.random.Generator, int], np.ndarray], n_samples: int, rng: np.random.Generator) -> MonteCarloEstimate:
    """
    Estimate E[f(X)] by averaging f over ``n_samples`` draws of X.

    Parameters
    ----------
    f : callable
        Vectorized integrand, maps an array of draws to an array of values.
    sampler : callable
        ``sampler(rng, n)`` returns n independent draws of X.
    n_samples : int
        Number of draws, at least 2 so the standard error is defined.
    rng : np.random.Generator
        Source of randomness.
    """
    if n_samples < 2:
        raise ValueError("n_samples must be at least 2.")

    values = np.asarray(f(sampler(rng, n_samples)), dtype=float)
    if values.shape[0] != n_samples:
        raise ValueError(f"f returned {values.shape[0]} values for {n_samples} draws.")

    estimate = float(np.mean(values))
    standard_error = float(np.std(values, ddof=1) / np.sqrt(n_samples))
    return MonteCarloEstimate(estimate=estimate, standard_error=standard_error, n_samples=n_samples)
