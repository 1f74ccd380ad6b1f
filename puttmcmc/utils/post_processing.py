"""Markov Chain Monte Carlo plotting and diagnostics.

All sample arrays follow the (d, N) convention: one row per parameter, one
column per iteration.
"""
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from matplotlib.gridspec import GridSpec
from scipy.stats import gaussian_kde

from puttmcmc.core.state import ChainResult
from puttmcmc.models.golf import GolfData

from typing import List, Optional, Dict, Tuple, Union

DEFAULT_IMG_KWARGS = {
    'label_fontsize': 18,
    'title_fontsize': 20,
    'tick_fontsize': 16,
    'legend_fontsize': 16,
}


def _check_samples(samples: np.ndarray) -> None:
    if not isinstance(samples, np.ndarray) or samples.ndim != 2:
        raise ValueError("Samples should be a 2D numpy array.")
    if samples.shape[0] > samples.shape[1]:
        raise ValueError("Samples should be in the format (d, N), where d is the number of dimensions and N is the number of samples.")


def _apply_style(img_kwargs: Optional[Dict[str, int]]) -> Dict[str, int]:
    img_kwargs = {**DEFAULT_IMG_KWARGS, **(img_kwargs or {})}
    sns.set_style("white")
    sns.set_context("talk")
    plt.rcParams.update({
        'axes.labelsize': img_kwargs['label_fontsize'],
        'axes.titlesize': img_kwargs['title_fontsize'],
        'xtick.labelsize': img_kwargs['tick_fontsize'],
        'ytick.labelsize': img_kwargs['tick_fontsize'],
        'legend.fontsize': img_kwargs['legend_fontsize'],
    })
    return img_kwargs


def _default_labels(dim: int, labels: Optional[List[str]]) -> List[str]:
    if labels is None:
        return [rf'$\theta_{ii+1}$' for ii in range(dim)]
    if len(labels) != dim:
        raise ValueError(f"Expected {dim} labels, got {len(labels)}.")
    return list(labels)


def autocorrelation(samples: np.ndarray, maxlag: int = 100, step: int = 1) -> Tuple[np.ndarray, np.ndarray]:
    """Compute the autocorrelation of a set of samples

    Parameters
    ----------
    samples : np.ndarray
        The samples to compute the autocorrelation for. Should be of shape (n_dim, n_samples).
    maxlag : int
        The maximum lag (exclusive), capped at the number of samples.
    step : int
        The step size for the lag. Default is 1.

    Returns
    -------
    lags : np.ndarray
        The lags for which the autocorrelation is computed.
    autos : np.ndarray
        The autocorrelation values for each dimension at each lag, shape (n_dim, n_lags).
    """
    _check_samples(samples)
    ndim, nsamples = samples.shape

    centered = samples - np.mean(samples, axis=1, keepdims=True)
    denominator = np.sum(centered**2, axis=1)

    lags = np.arange(0, min(maxlag, nsamples), step)
    autos = np.zeros((ndim, len(lags)))

    for zz, lag in enumerate(lags):
        # covariance between all samples *lag apart*
        cov = np.sum(centered[:, :nsamples - lag] * centered[:, lag:], axis=1)
        # A constant chain has zero variance; report it as fully correlated
        autos[:, zz] = np.divide(cov, denominator, out=np.ones(ndim), where=denominator > 0)

    return lags, autos


def effective_sample_size(auto_corrs: np.ndarray, n_samples: int) -> float:
    """
    Estimate the effective sample size of one parameter's chain.

    Parameters
    ----------
    auto_corrs : np.ndarray
        Autocorrelations at consecutive lags 0, 1, 2, ...
    n_samples : int
        Length of the chain the autocorrelations were computed from.

    Returns
    -------
    ess : float
        n_samples / (1 + 2 * sum of autocorrelations at lags >= 1), the sum
        truncated at the first negative autocorrelation.
    """
    rho = np.asarray(auto_corrs, dtype=float)[1:]
    negative = np.where(rho < 0)[0]
    if len(negative) > 0:
        rho = rho[:negative[0]]

    ess = n_samples / (1 + 2 * np.sum(rho))
    return float(ess)


def potential_scale_reduction(chains: List[np.ndarray]) -> np.ndarray:
    """
    Gelman-Rubin potential scale reduction factor per parameter.

    Parameters
    ----------
    chains : list of (d, N) arrays
        At least two chains of equal length.

    Returns
    -------
    rhat : (d,) array
    """
    if len(chains) < 2:
        raise ValueError("Need at least two chains to compare.")
    stacked = np.stack(chains)  # (m, d, N)
    n = stacked.shape[2]
    if n < 2:
        raise ValueError("Each chain needs at least two samples.")

    chain_means = stacked.mean(axis=2)
    within = stacked.var(axis=2, ddof=1).mean(axis=0)
    between = n * chain_means.var(axis=0, ddof=1)
    var_plus = (n - 1) / n * within + between / n
    return np.sqrt(np.divide(var_plus, within, out=np.ones_like(within), where=within > 0))


def summarize_chain(result: Union[ChainResult, np.ndarray], burnin: float = 0.0, labels: Optional[List[str]] = None, maxlag: int = 500) -> pd.DataFrame:
    """
    Posterior summary table: mean, sd, 2.5% and 97.5% quantiles, and ESS per parameter.
    """
    if isinstance(result, ChainResult):
        samples = result.draws(burnin)
    else:
        _check_samples(result)
        samples = result[:, int(result.shape[1] * burnin):]

    dim, n = samples.shape
    if labels is None:
        labels = [f"theta_{ii+1}" for ii in range(dim)]
    _, autos = autocorrelation(samples, maxlag=maxlag)

    return pd.DataFrame({
        "mean": samples.mean(axis=1),
        "sd": samples.std(axis=1, ddof=1),
        "q2.5": np.quantile(samples, 0.025, axis=1),
        "q97.5": np.quantile(samples, 0.975, axis=1),
        "ess": [effective_sample_size(autos[ii], n) for ii in range(dim)],
    }, index=pd.Index(labels, name="parameter"))


def plot_trace(samples: np.ndarray, img_kwargs: Optional[Dict] = None, labels: Optional[List] = None) -> Tuple[plt.Figure, List[plt.Axes]]:
    """
    Plot the trace of the samples.

    Parameters
    ----------
    samples : np.ndarray
        The samples to plot. Should be of shape (n_dim, n_samples).
    img_kwargs : dict, optional
        Font sizes: label_fontsize, title_fontsize, tick_fontsize, legend_fontsize.
    labels : list of str, optional
        List of labels for each dimension. If None, they will be set to '\\theta_1', '\\theta_2', etc.

    Returns
    -------
    fig : matplotlib.figure.Figure
    axs : list of matplotlib.axes.Axes, one per dimension
    """
    _check_samples(samples)
    _apply_style(img_kwargs)

    dim = samples.shape[0]
    labels = _default_labels(dim, labels)

    fig, axs = plt.subplots(dim, 1, figsize=(16, 4 * dim), sharex=True)
    if dim == 1:
        axs = [axs]
    else:
        axs = list(axs)

    for i in range(dim):
        axs[i].plot(samples[i, :], alpha=0.5, lw=1)
        axs[i].set_ylabel(labels[i])
        axs[i].grid(False)
        for spine in axs[i].spines.values():
            spine.set_color('black')
            spine.set_linewidth(2)
        axs[i].xaxis.set_major_locator(plt.MaxNLocator(integer=True))

    axs[dim - 1].set_xlabel('Iteration')
    return fig, axs


def plot_lag(samples: np.ndarray, maxlag: int = 500, step: int = 1, img_kwargs: Optional[Dict[str, int]] = None, labels: Optional[List[str]] = None) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot the autocorrelation of the samples, with the ESS of each parameter in the legend.
    """
    _check_samples(samples)
    _apply_style(img_kwargs)

    dim, nsamples = samples.shape
    labels = _default_labels(dim, labels)
    markers = ['o', 's', 'D', '^', 'v', '<', '>', 'p', '*', 'h']

    lags, autolag = autocorrelation(samples, maxlag=maxlag, step=step)
    _, full = autocorrelation(samples, maxlag=maxlag)

    fig, ax = plt.subplots(1, 1, figsize=(8, 6))
    for i in range(dim):
        ess = effective_sample_size(full[i, :], nsamples)
        ax.plot(lags, autolag[i, :], markers[i % len(markers)], label=f'{labels[i]}, ess = {ess:0.2f}', alpha=0.7, markersize=7)
    ax.set_ylabel('Autocorrelation')
    ax.set_xlabel('Lag')
    ax.legend()
    ax.grid(False)
    return fig, ax


def scatter_matrix(samples: List[np.ndarray], labels: Optional[List[str]] = None, sample_labels: Optional[List[str]] = None, nbins: int = 60, img_kwargs: Optional[Dict[str, int]] = None) -> Tuple[plt.Figure, List[plt.Axes], GridSpec]:
    """
    Pair plot of one or more chains.
    The marginals are on the diagonal and the joint distributions below it.

    Parameters
    ----------
    samples : list of np.ndarray
        Samples from different chains, each of shape (n_dim, n_samples).
    labels : list of str, optional
        Parameter labels.
    sample_labels : list of str, optional
        Chain labels. Defaults to 'Chain 1', 'Chain 2', etc.
    nbins : int
        Grid resolution of the joint density contours.

    Returns
    -------
    fig, axs, gs
        axs is a flat list of length dim * dim; entries above the diagonal are None.
    """
    if not isinstance(samples, list) or len(samples) == 0:
        raise ValueError("Samples should be a non-empty list of numpy arrays.")
    for s in samples:
        _check_samples(s)
    dim = samples[0].shape[0]
    if not all(s.shape[0] == dim for s in samples):
        raise ValueError("All samples should have the same number of dimensions.")

    img_kwargs = _apply_style(img_kwargs)
    labels = _default_labels(dim, labels)
    if sample_labels is None:
        sample_labels = [f'Chain {kk+1}' for kk in range(len(samples))]

    colors = sns.color_palette("tab10")
    cmap_list = [plt.cm.viridis, plt.cm.plasma, plt.cm.cividis, plt.cm.inferno, plt.cm.magma]

    mins = np.min([np.quantile(s, 0.01, axis=1) for s in samples], axis=0)
    maxs = np.max([np.quantile(s, 0.99, axis=1) for s in samples], axis=0)
    pad = np.where(maxs > mins, (maxs - mins) / 10.0, 0.5)
    lo, hi = mins - pad, maxs + pad

    fig = plt.figure(figsize=(4 * dim + 2, 4 * dim))
    gs = GridSpec(dim, dim, figure=fig)
    axs = [None] * dim * dim

    for ii in range(dim):
        ax = fig.add_subplot(gs[ii, ii])
        axs[ii * dim + ii] = ax
        x_grid = np.linspace(lo[ii], hi[ii], 400)
        for kk, samp in enumerate(samples):
            values = samp[ii, :]
            if np.ptp(values) > 0:
                density = gaussian_kde(values)(x_grid)
                ax.fill_between(x_grid, 0, density, color=colors[kk % len(colors)], alpha=0.3)
                ax.plot(x_grid, density, color=colors[kk % len(colors)], alpha=0.7)
            ax.axvline(np.mean(values), color=colors[kk % len(colors)], linestyle='--', lw=2)
        ax.set_xlim(lo[ii], hi[ii])
        ax.set_yticks([])
        if ii == dim - 1:
            ax.set_xlabel(labels[ii])

        for jj in range(ii + 1, dim):
            ax = fig.add_subplot(gs[jj, ii])
            axs[jj * dim + ii] = ax
            for kk, samp in enumerate(samples):
                color = colors[kk % len(colors)]
                ax.plot(samp[ii, :], samp[jj, :], 'o', ms=1, alpha=0.1, color=color, label=sample_labels[kk])
                joint = np.vstack([samp[ii, :], samp[jj, :]])
                if np.all(np.ptp(joint, axis=1) > 0):
                    X, Y = np.meshgrid(np.linspace(lo[ii], hi[ii], nbins), np.linspace(lo[jj], hi[jj], nbins))
                    Z = gaussian_kde(joint)(np.vstack([X.ravel(), Y.ravel()])).reshape(X.shape)
                    ax.contour(X, Y, Z, levels=5, cmap=cmap_list[kk % len(cmap_list)], linewidths=1.0)
            ax.set_xlim(lo[ii], hi[ii])
            ax.set_ylim(lo[jj], hi[jj])
            if ii == 0:
                ax.set_ylabel(labels[jj])
            if jj == dim - 1:
                ax.set_xlabel(labels[ii])
            if jj == ii + 1 and len(samples) > 1:
                leg = ax.legend(loc='best', fontsize=img_kwargs['legend_fontsize'], markerscale=6)
                for lh in leg.legend_handles:
                    lh.set_alpha(1)

    fig.tight_layout()
    return fig, axs, gs


def plot_success_curve(data: GolfData, distance_grid: np.ndarray, probability_draws: np.ndarray, ax: Optional[plt.Axes] = None, interval: float = 0.95, label: str = 'posterior') -> Tuple[plt.Figure, plt.Axes]:
    """
    Overlay observed putting success rates with a posterior credible ribbon.

    Parameters
    ----------
    data : GolfData
        Observed counts; plotted as rates with +/- 1 standard error bars.
    distance_grid : (G,) array
        Distances at which the curve was evaluated.
    probability_draws : (S, G) array
        Success probability per posterior draw and distance.
    interval : float
        Central mass of the ribbon.
    """
    probability_draws = np.atleast_2d(probability_draws)
    distance_grid = np.asarray(distance_grid, dtype=float)
    if probability_draws.shape[1] != distance_grid.size:
        raise ValueError("probability_draws must have one column per grid distance.")
    if not 0.0 < interval < 1.0:
        raise ValueError("interval must lie in (0, 1).")

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 6))
    else:
        fig = ax.figure

    tail = 0.5 * (1.0 - interval)
    lower, median, upper = np.quantile(probability_draws, [tail, 0.5, 1.0 - tail], axis=0)

    ax.errorbar(data.distance, data.success_rate, yerr=data.standard_error, fmt='o', color='black', label='observed')
    line, = ax.plot(distance_grid, median, lw=2, label=label)
    ax.fill_between(distance_grid, lower, upper, color=line.get_color(), alpha=0.3)
    ax.set_xlabel('Distance from hole (feet)')
    ax.set_ylabel('Probability of success')
    ax.set_ylim(0, 1.05)
    ax.legend()
    return fig, ax
