"""
Golf putting data and posteriors.

Putting success as a function of distance (feet) from aggregated counts:
at each distance, ``attempts`` putts were tried and ``successes`` went in.
Two models are provided: a logistic regression on distance and a geometry
based model in which the putt drops when the angular error is small enough
for the ball to fall into the cup.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats
from scipy.special import expit, gammaln

from puttmcmc.utils.tools import laplace_approx

# Regulation sizes, in feet
BALL_RADIUS = (1.68 / 2) / 12
CUP_RADIUS = (4.25 / 2) / 12

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "golf_data.txt"

_COLUMN_ALIASES = {"x": "distance", "n": "attempts", "y": "successes"}


@dataclass
class GolfData:
    """Aggregated putting outcomes, one entry per distance."""

    distance: np.ndarray
    attempts: np.ndarray
    successes: np.ndarray

    def __post_init__(self) -> None:
        self.distance = np.asarray(self.distance, dtype=float)
        self.attempts = np.asarray(self.attempts, dtype=int)
        self.successes = np.asarray(self.successes, dtype=int)

        if not (self.distance.shape == self.attempts.shape == self.successes.shape) or self.distance.ndim != 1:
            raise ValueError("distance, attempts and successes must be 1D arrays of equal length.")
        if self.distance.size == 0:
            raise ValueError("Golf data must contain at least one distance.")
        if np.any(self.distance <= 0):
            raise ValueError("Distances must be positive.")
        if np.any(self.attempts < 1):
            raise ValueError("Each distance needs at least one attempt.")
        if np.any(self.successes < 0) or np.any(self.successes > self.attempts):
            raise ValueError("Successes must lie between 0 and the number of attempts.")

    def __len__(self) -> int:
        return self.distance.size

    @property
    def success_rate(self) -> np.ndarray:
        return self.successes / self.attempts

    @property
    def standard_error(self) -> np.ndarray:
        """Binomial standard error of each empirical success rate."""
        p = self.success_rate
        return np.sqrt(p * (1 - p) / self.attempts)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "distance": self.distance,
            "attempts": self.attempts,
            "successes": self.successes,
            "success_rate": self.success_rate,
        })


def load_golf_data(path: Optional[Union[str, Path]] = None, sep: Optional[str] = None) -> GolfData:
    """
    Read aggregated putting counts from a delimited text file.

    The file needs a header naming the columns either ``distance, attempts,
    successes`` or the short form ``x, n, y``. Without ``sep`` both whitespace
    and comma separated files are accepted. Without ``path`` the bundled
    19-distance professional putting dataset is loaded.
    """
    path = DEFAULT_DATA_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"The file {path} does not exist.")

    if sep is None:
        frame = pd.read_csv(path, sep=r"[\s,]+", engine="python", comment="#")
    else:
        frame = pd.read_csv(path, sep=sep, comment="#")

    frame.columns = [str(col).strip().lower() for col in frame.columns]
    frame = frame.rename(columns=_COLUMN_ALIASES)

    missing = {"distance", "attempts", "successes"} - set(frame.columns)
    if missing:
        raise ValueError(f"Golf data file {path} is missing columns {sorted(missing)}; got {list(frame.columns)}.")

    frame = frame.sort_values("distance")
    return GolfData(
        distance=frame["distance"].to_numpy(),
        attempts=frame["attempts"].to_numpy(),
        successes=frame["successes"].to_numpy(),
    )


def _binomial_log_likelihood(data: GolfData, log_p: np.ndarray, log_1mp: np.ndarray, log_binom: float) -> float:
    failures = data.attempts - data.successes
    return float(log_binom + np.sum(data.successes * log_p + failures * log_1mp))


def _log_binomial_coefficients(data: GolfData) -> float:
    n, y = data.attempts, data.successes
    return float(np.sum(gammaln(n + 1) - gammaln(y + 1) - gammaln(n - y + 1)))


def logistic_success_probability(alpha, beta, distance) -> np.ndarray:
    """
    P(success) = logit^-1(alpha + beta * distance).

    ``alpha`` and ``beta`` may be arrays of posterior draws of shape (S,), in
    which case the result has shape (S, len(distance)).
    """
    alpha = np.asarray(alpha, dtype=float)
    beta = np.asarray(beta, dtype=float)
    distance = np.asarray(distance, dtype=float)
    return expit(alpha[..., np.newaxis] + beta[..., np.newaxis] * distance)


def angle_success_probability(sigma, distance) -> np.ndarray:
    """
    P(success) = 2 Phi(asin((R - r) / x) / sigma) - 1, the chance that a putt
    with N(0, sigma^2) angular error (radians) finds the cup from distance x.
    """
    sigma = np.asarray(sigma, dtype=float)
    threshold = np.arcsin((CUP_RADIUS - BALL_RADIUS) / np.asarray(distance, dtype=float))
    return 2 * stats.norm.cdf(threshold / sigma[..., np.newaxis]) - 1


class LogisticPosterior:
    """
    Posterior of (alpha, beta) for y_j ~ Binomial(n_j, logit^-1(alpha + beta x_j)).

    Independent Normal(0, sd) priors on both parameters. With ``positive_alpha``
    the intercept is restricted to alpha > 0, the support of the Gamma part of
    the independence proposal.
    """

    def __init__(self, data: GolfData, alpha_prior_sd: float = 10.0, beta_prior_sd: float = 10.0, positive_alpha: bool = True):
        if alpha_prior_sd <= 0 or beta_prior_sd <= 0:
            raise ValueError("Prior standard deviations must be positive.")
        self.data = data
        self.alpha_prior_sd = alpha_prior_sd
        self.beta_prior_sd = beta_prior_sd
        self.positive_alpha = positive_alpha
        self._log_binom = _log_binomial_coefficients(data)

    def log_likelihood(self, alpha: float, beta: float) -> float:
        eta = alpha + beta * self.data.distance
        # log p = -log(1 + e^-eta), log(1 - p) = -log(1 + e^eta)
        return _binomial_log_likelihood(self.data, -np.logaddexp(0, -eta), -np.logaddexp(0, eta), self._log_binom)

    def log_prior(self, alpha: float, beta: float) -> float:
        if self.positive_alpha and alpha <= 0:
            return -np.inf
        return float(
            stats.norm.logpdf(alpha, scale=self.alpha_prior_sd)
            + stats.norm.logpdf(beta, scale=self.beta_prior_sd)
        )

    def __call__(self, params: np.ndarray) -> Dict[str, float]:
        alpha, beta = np.ravel(params)
        log_prior = self.log_prior(alpha, beta)
        if log_prior == -np.inf:
            return {"log_prior": -np.inf, "log_likelihood": -np.inf}
        return {"log_prior": log_prior, "log_likelihood": self.log_likelihood(alpha, beta)}


class AnglePosterior:
    """
    Posterior of the angular error sigma (radians) under the geometry model,
    with a half-normal prior of scale ``sigma_prior_scale``.
    """

    def __init__(self, data: GolfData, sigma_prior_scale: float = 1.0):
        if sigma_prior_scale <= 0:
            raise ValueError("sigma_prior_scale must be positive.")
        if np.any(data.distance <= CUP_RADIUS - BALL_RADIUS):
            raise ValueError("Every distance must exceed the cup clearance.")
        self.data = data
        self.sigma_prior_scale = sigma_prior_scale
        self._log_binom = _log_binomial_coefficients(data)
        self._threshold = np.arcsin((CUP_RADIUS - BALL_RADIUS) / data.distance)

    def log_likelihood(self, sigma: float) -> float:
        z = self._threshold / sigma
        p = 2 * stats.norm.cdf(z) - 1
        log_p = np.log(np.clip(p, np.finfo(float).tiny, None))
        # 1 - p = 2 (1 - Phi(z)), kept in log-space for tiny sigma
        log_1mp = np.log(2.0) + stats.norm.logsf(z)
        return _binomial_log_likelihood(self.data, log_p, log_1mp, self._log_binom)

    def __call__(self, params: np.ndarray) -> Dict[str, float]:
        sigma = float(np.ravel(params)[0])
        if sigma <= 0:
            return {"log_prior": -np.inf, "log_likelihood": -np.inf}
        log_prior = float(np.log(2.0) + stats.norm.logpdf(sigma, scale=self.sigma_prior_scale))
        return {"log_prior": log_prior, "log_likelihood": self.log_likelihood(sigma)}


def logistic_point_estimate(data: GolfData, x0: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Maximum-likelihood (alpha, beta) for the logistic model and approximate
    standard errors from the inverse Hessian.

    Returns
    -------
    estimate : (2,) array
    standard_error : (2,) array
    """
    posterior = LogisticPosterior(data, positive_alpha=False)
    if x0 is None:
        x0 = np.array([[1.0], [0.0]])

    map_point, cov = laplace_approx(x0, lambda theta: posterior.log_likelihood(theta[0], theta[1]))
    return map_point.ravel(), np.sqrt(np.diag(cov))
