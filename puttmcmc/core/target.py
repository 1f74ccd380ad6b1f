"""
Target interfaces for Metropolis-Hastings sampling.

A target is any callable mapping a (d, 1) parameter vector to its unnormalized
log density. Targets are validated every time the sampler evaluates them.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, Union, runtime_checkable

import numpy as np


class NonFiniteLogDensityError(ValueError):
    """Raised when a target returns NaN or +inf instead of a finite value or -inf."""


@runtime_checkable
class TargetProtocol(Protocol):
    """
    Protocol defining the required interface for sampling targets.

    A target must be callable, accept a parameter vector of shape (d, 1), and
    return either:

    **Option 1 - Plain log density:**
        A float (finite, or -inf outside the support).

    **Option 2 - Direct dict:**
        A dict with a 'log_target' key.

    **Option 3 - Component-based dict:**
        A dict with both 'log_prior' and 'log_likelihood' keys.

    Examples:
        Function::

            def standard_normal(params: np.ndarray) -> float:
                return -0.5 * np.sum(params ** 2)

        Component-based::

            class Posterior:
                def __call__(self, params: np.ndarray) -> dict:
                    return {
                        "log_prior": -0.5 * np.sum(params ** 2),
                        "log_likelihood": -np.sum((params - 1.0) ** 2),
                    }
    """

    def __call__(self, params: np.ndarray) -> Union[float, Dict[str, Any]]:
        ...


def validate_target_output(output: Dict[str, Any]) -> None:
    """
    Validate that a dict returned by a target satisfies TargetProtocol.

    Raises:
        TypeError: If output is not a dict.
        ValueError: If the log target specification is invalid.
    """
    if not isinstance(output, dict):
        raise TypeError(f"Target must return float or dict, got {type(output).__name__}.")

    has_log_target = "log_target" in output
    has_log_prior = "log_prior" in output
    has_log_likelihood = "log_likelihood" in output

    if not has_log_target and not (has_log_prior and has_log_likelihood):
        raise ValueError(
            f"Target output must contain either:\n"
            f"  1. 'log_target' key, OR\n"
            f"  2. Both 'log_prior' AND 'log_likelihood' keys\n"
            f"Got: {list(output.keys())}"
        )

    if has_log_target and (has_log_prior or has_log_likelihood):
        raise ValueError(
            f"Cannot mix 'log_target' with component specifications. "
            f"Got: {list(output.keys())}"
        )


def _as_log_value(value: Any, name: str, params: np.ndarray) -> float:
    arr = np.asarray(value, dtype=float)
    if arr.size != 1:
        raise ValueError(f"{name} must be a scalar, got shape {arr.shape}.")
    result = float(arr.item())
    if np.isnan(result) or result == np.inf:
        raise NonFiniteLogDensityError(
            f"{name} evaluated to {result} at position {params.ravel().tolist()}; "
            "targets must return a finite value or -inf."
        )
    return result


def evaluate_target(target: TargetProtocol, params: np.ndarray) -> Dict[str, float]:
    """
    Evaluate ``target`` at ``params`` and return ChainState keyword arguments.

    Raises:
        NonFiniteLogDensityError: If any returned log value is NaN or +inf.
    """
    output = target(params)

    if not isinstance(output, dict):
        return {"log_target": _as_log_value(output, "log_target", params)}

    validate_target_output(output)
    if "log_target" in output:
        return {"log_target": _as_log_value(output["log_target"], "log_target", params)}
    return {
        "log_prior": _as_log_value(output["log_prior"], "log_prior", params),
        "log_likelihood": _as_log_value(output["log_likelihood"], "log_likelihood", params),
    }
