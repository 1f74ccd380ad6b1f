"""
Chain state representation for Metropolis-Hastings sampling.

This module provides the ChainState dataclass, which captures a single state of
a Markov chain (position and log-density components), and ChainResult, which
collects a finished chain together with its acceptance statistics.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import numpy as np


@dataclass
class ChainState:
    """
    Represents the state of a Markov chain at a single iteration.

    The log target density can be given directly or as a prior/likelihood pair,
    in which case the total is computed automatically.

    Attributes:
        position (np.ndarray):
            Current position in parameter space. Must have shape (d, 1).

        log_target (Optional[float]):
            Unnormalized log target density. Finite or -inf. If None and both
            log_prior and log_likelihood are provided, computed automatically.

        log_prior (Optional[float]):
            Log prior density. Used with log_likelihood. Default: None.

        log_likelihood (Optional[float]):
            Log likelihood. Used with log_prior. Default: None.

        metadata (Optional[Dict[str, Any]]):
            Additional state information such as:
            - 'iteration': Iteration number
            - 'log_acceptance_ratio': Log acceptance ratio of the last move
            - 'is_accepted': Whether the last proposal was accepted
            Default: empty dict (None allowed).

    Examples:
        >>> state = ChainState(
        ...     position=np.array([[1.0], [2.0]]),
        ...     log_prior=-2.0,
        ...     log_likelihood=-3.2,
        ... )
        >>> state.log_density
        -5.2
    """

    position: np.ndarray
    """Current position in parameter space (d, 1)."""

    log_target: Optional[float] = None
    """Unnormalized log target density (computed from prior + likelihood if not provided)."""

    log_prior: Optional[float] = None
    """Log prior density."""

    log_likelihood: Optional[float] = None
    """Log likelihood."""

    metadata: Optional[Dict[str, Any]] = field(default_factory=dict)
    """
    Dictionary for additional state information:
    - 'iteration': Chain iteration number
    - 'log_acceptance_ratio': Log acceptance ratio
    - 'is_accepted': Whether state was accepted
    """

    def __post_init__(self) -> None:
        if not isinstance(self.position, np.ndarray):
            raise TypeError("position must be a numpy.ndarray with shape (d, 1).")
        if self.position.ndim != 2 or self.position.shape[1] != 1:
            raise ValueError(
                f"position must have shape (d, 1), got {self.position.shape}."
            )

        if (
            self.log_target is None
            and self.log_prior is not None
            and self.log_likelihood is not None
        ):
            # A zero-prior point stays at -inf even if the likelihood is -inf too
            if self.log_prior == -np.inf or self.log_likelihood == -np.inf:
                self.log_target = -np.inf
            else:
                self.log_target = self.log_prior + self.log_likelihood

    @property
    def log_density(self) -> float:
        """
        Log target value of this state.

        Raises:
            ValueError: If neither log_target nor both components are set.
        """
        if self.log_target is not None:
            return self.log_target

        raise ValueError(
            "Log target value cannot be determined. Must provide either:\n"
            "  1. log_target directly, or\n"
            "  2. both log_prior and log_likelihood"
        )

    @property
    def dim(self) -> int:
        return self.position.shape[0]

    def validate(self) -> None:
        """
        Explicitly validate that the log target can be computed.

        Raises:
            ValueError: If the log target cannot be computed from available data.
        """
        if self.log_target is None:
            raise ValueError(
                "Invalid state: log target cannot be determined. Must provide either:\n"
                "  1. log_target directly, or\n"
                "  2. both log_prior and log_likelihood"
            )

    def __repr__(self) -> str:
        log_target_str = (
            f"log_target={self.log_target:.4f}"
            if self.log_target is not None
            else "log_target=?"
        )
        metadata_str = f", metadata({len(self.metadata)})" if self.metadata else ""
        return f"ChainState(position_shape={self.position.shape}, {log_target_str}{metadata_str})"


@dataclass
class ChainResult:
    """
    Output of one finished Metropolis-Hastings chain.

    Attributes:
        positions (np.ndarray):
            Chain values, shape (d, N). Column i is the state after iteration i+1;
            rejected proposals repeat the previous column.
        log_target (np.ndarray):
            Log target density of each column, shape (N,).
        accepted (np.ndarray):
            Boolean acceptance flag per iteration, shape (N,).
        initial_position (np.ndarray):
            Starting position, shape (d, 1). Not part of ``positions``.
    """

    positions: np.ndarray
    log_target: np.ndarray
    accepted: np.ndarray
    initial_position: np.ndarray

    def __post_init__(self) -> None:
        if self.positions.ndim != 2:
            raise ValueError(f"positions must have shape (d, N), got {self.positions.shape}.")
        n = self.positions.shape[1]
        if self.log_target.shape != (n,) or self.accepted.shape != (n,):
            raise ValueError("log_target and accepted must have one entry per iteration.")

    def __len__(self) -> int:
        return self.positions.shape[1]

    @property
    def n_iterations(self) -> int:
        return len(self)

    @property
    def n_accepted(self) -> int:
        return int(np.count_nonzero(self.accepted))

    @property
    def acceptance_rate(self) -> float:
        return self.n_accepted / self.n_iterations

    @property
    def dim(self) -> int:
        return self.positions.shape[0]

    def draws(self, burnin: float = 0.0) -> np.ndarray:
        """
        Return the (d, N') positions after discarding a ``burnin`` fraction of iterations.
        """
        if not 0.0 <= burnin < 1.0:
            raise ValueError("Burn-in must be a fraction in [0, 1).")
        n_burnin = int(self.n_iterations * burnin)
        return self.positions[:, n_burnin:]
