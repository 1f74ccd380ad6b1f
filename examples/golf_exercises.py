"""
Worked solutions to the sampling exercises of the golf putting case study:

1. Monte Carlo estimate of E[X^2] for X ~ N(0, 1).
2. Metropolis sampling of a Poisson(5) target with an integer random walk.
3. Metropolis sampling of a standard Normal with a Gaussian random walk.
4. Independence Metropolis-Hastings for the logistic putting model, with a
   Gamma x Normal proposal built around the maximum-likelihood fit.
5. Random-walk sampling of the geometry (angle) model.

Figures are written to ``examples/figures``.
"""

import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from puttmcmc.config import IndependenceProposalConfig, SamplerConfig
from puttmcmc.models.golf import (
    AnglePosterior,
    LogisticPosterior,
    angle_success_probability,
    load_golf_data,
    logistic_point_estimate,
    logistic_success_probability,
)
from puttmcmc.models.targets import poisson_log_pmf, standard_normal_log_pdf
from puttmcmc.proposals.randomwalk import GaussianRandomWalk, IntegerRandomWalk
from puttmcmc.samplers import MCMCsampler, metropolis_hastings, overdispersed_starts, run_chains
from puttmcmc.utils.logging import PuttLogger
from puttmcmc.utils.post_processing import (
    plot_success_curve,
    plot_trace,
    potential_scale_reduction,
    scatter_matrix,
    summarize_chain,
)
from puttmcmc.utils.tools import monte_carlo_integrate

logger = PuttLogger.get_logger("golf_exercises")


def monte_carlo_exercise(seed: int = 0) -> None:
    rng = np.random.default_rng(seed)
    result = monte_carlo_integrate(lambda x: x**2, lambda r, n: r.standard_normal(n), 10000, rng)
    logger.info("E[X^2] ~ %.4f +/- %.4f (exact 1)", result.estimate, result.standard_error)


def poisson_exercise(config: SamplerConfig, output_dir: str) -> None:
    sampler = MCMCsampler(poisson_log_pmf(5.0), IntegerRandomWalk(max_step=1), [5], config.n_iterations, seed=config.seed)
    result = sampler.run()
    draws = result.draws(config.burnin)
    logger.info("Poisson(5): mean %.3f, variance %.3f, acceptance %.3f", draws.mean(), draws.var(), result.acceptance_rate)

    fig, _ = plot_trace(draws, labels=[r'$x$'])
    fig.savefig(os.path.join(output_dir, "poisson_trace.png"), bbox_inches='tight')
    plt.close(fig)


def normal_exercise(config: SamplerConfig) -> None:
    def propose(x, rng):
        return x + rng.normal(0.0, 1.0, size=x.shape)

    result = metropolis_hastings(standard_normal_log_pdf, propose, [3.0], config.n_iterations, seed=config.seed)
    logger.info("\n%s", summarize_chain(result, burnin=config.burnin, labels=["x"]))


def logistic_exercise(config: SamplerConfig, output_dir: str) -> None:
    data = load_golf_data()
    estimate, standard_error = logistic_point_estimate(data)
    logger.info("Logistic MLE alpha=%.3f beta=%.3f", *estimate)

    proposal_config = IndependenceProposalConfig(
        alpha_interval=(estimate[0] - 4 * standard_error[0], estimate[0] + 4 * standard_error[0]),
        beta_mean=estimate[1],
        beta_sd=2 * standard_error[1],
    )
    proposal = proposal_config.build()
    logger.info("Using %r", proposal)

    posterior = LogisticPosterior(data)
    starts = overdispersed_starts(estimate, 3 * standard_error, config.n_chains, seed=config.seed)
    for start in starts:
        # Keep alpha inside the Gamma proposal's support
        start[0, 0] = max(start[0, 0], 0.5 * estimate[0])
    results = run_chains(posterior, proposal, starts, config.n_iterations, seed=config.seed)
    chains = [r.draws(config.burnin) for r in results]
    logger.info("R-hat %s", potential_scale_reduction(chains))
    logger.info("\n%s", summarize_chain(results[0], burnin=config.burnin, labels=["alpha", "beta"]))

    fig, _, _ = scatter_matrix(chains, labels=[r'$\alpha$', r'$\beta$'])
    fig.savefig(os.path.join(output_dir, "logistic_pairs.png"), bbox_inches='tight')
    plt.close(fig)

    grid = np.linspace(1, 21, 100)
    pooled = np.hstack(chains)
    fig, _ = plot_success_curve(data, grid, logistic_success_probability(pooled[0], pooled[1], grid), label='logistic')
    fig.savefig(os.path.join(output_dir, "logistic_curve.png"), bbox_inches='tight')
    plt.close(fig)


def angle_exercise(config: SamplerConfig, output_dir: str) -> None:
    data = load_golf_data()
    posterior = AnglePosterior(data)
    starts = [np.abs(s) for s in overdispersed_starts([0.03], 0.005, config.n_chains, seed=config.seed)]
    results = run_chains(posterior, GaussianRandomWalk.isotropic(1, 0.001), starts, config.n_iterations, seed=config.seed)
    chains = [r.draws(config.burnin) for r in results]
    sigma = np.hstack(chains)[0]
    logger.info("sigma: %.4f rad (%.2f deg), R-hat %s", sigma.mean(), np.degrees(sigma.mean()), potential_scale_reduction(chains))

    grid = np.linspace(1, 21, 100)
    fig, _ = plot_success_curve(data, grid, angle_success_probability(sigma, grid), label='angle model')
    fig.savefig(os.path.join(output_dir, "angle_curve.png"), bbox_inches='tight')
    plt.close(fig)


if __name__ == "__main__":
    output_dir = os.path.join(os.path.dirname(__file__), "figures")
    os.makedirs(output_dir, exist_ok=True)
    config = SamplerConfig(n_iterations=5000, n_chains=4, seed=2024)

    monte_carlo_exercise(config.seed)
    poisson_exercise(config, output_dir)
    normal_exercise(config)
    logistic_exercise(config, output_dir)
    angle_exercise(config, output_dir)
