import logging

import numpy as np
import pytest
from scipy import stats

from puttmcmc.utils.logging import PuttLogger
from puttmcmc.utils.tools import (
    as_column,
    elicit_gamma,
    laplace_approx,
    lognormpdf,
    make_rng,
    monte_carlo_integrate,
    numerical_hessian,
    sample_multivariate_gaussian,
)


class TestLognormpdf:
    def test_scalar_output(self):
        x = np.array([[1.0], [2.0]])
        mean = np.array([0.0, 0.0])
        cov = np.array([[1.0, 0.0], [0.0, 1.0]])

        result = lognormpdf(x, mean, cov)
        expected = stats.multivariate_normal.logpdf(x.reshape(-1), mean, cov)

        assert isinstance(result, float)
        assert np.isclose(result, expected)

    def test_array_output(self):
        x = np.array([[1.0, 2.0], [2.0, 3.0]])  # 2 points in 2D
        mean = np.array([0.0, 0.0])
        cov = np.array([[1.0, 0.5], [0.5, 2.0]])

        result = lognormpdf(x, mean, cov)
        expected = stats.multivariate_normal.logpdf(x.T, mean, cov)

        assert result.shape == (2,)
        assert np.allclose(result, expected)

    def test_column_vector_mean_and_defaults(self):
        x = np.array([1.0, 2.0])
        assert np.isclose(lognormpdf(x, np.zeros((2, 1))), stats.multivariate_normal.logpdf(x, np.zeros(2)))
        assert np.isclose(lognormpdf(x), stats.multivariate_normal.logpdf(x, np.zeros(2)))


class TestSampleMultivariateGaussian:
    def test_shape_and_statistics(self):
        mu = np.array([[3.0], [-2.0]])
        sigma = np.array([[2.0, 0.5], [0.5, 1.0]])

        samples = sample_multivariate_gaussian(mu, sigma, np.random.default_rng(0), N=10000)

        assert samples.shape == (2, 10000)
        assert np.allclose(np.mean(samples, axis=1), mu.flatten(), atol=0.1)
        assert np.allclose(np.cov(samples), sigma, atol=0.2)

    def test_reproducible(self):
        mu, sigma = np.zeros((2, 1)), np.eye(2)
        a = sample_multivariate_gaussian(mu, sigma, np.random.default_rng(5), N=3)
        b = sample_multivariate_gaussian(mu, sigma, np.random.default_rng(5), N=3)
        assert np.array_equal(a, b)

    def test_input_validation(self):
        rng = np.random.default_rng(0)
        sigma = np.array([[1.0, 0.5], [0.5, 2.0]])

        with pytest.raises(ValueError):
            sample_multivariate_gaussian(np.array([0.0, 0.0]), sigma, rng)
        with pytest.raises(ValueError):
            sample_multivariate_gaussian(np.zeros((3, 1)), sigma, rng)
        with pytest.raises(ValueError):
            sample_multivariate_gaussian(np.zeros((2, 1)), np.ones((3, 2)), rng)


class TestLaplaceApprox:
    def test_simple_gaussian(self):
        mean = np.array([1.0, -2.0])
        precision = np.array([[2.0, 0.0], [0.0, 0.5]])

        def logpost(x):
            diff = x - mean
            return -0.5 * diff @ precision @ diff

        map_point, cov_approx = laplace_approx(np.array([[0.0], [0.0]]), logpost)

        assert map_point.shape == (2, 1)
        assert np.allclose(map_point.ravel(), mean, atol=1e-4)
        assert np.allclose(np.diag(cov_approx), [0.5, 2.0], atol=0.1)

    def test_requires_column_vector(self):
        with pytest.raises(ValueError):
            laplace_approx(np.zeros(2), lambda x: 0.0)


def test_numerical_hessian_of_quadratic():
    A = np.array([[3.0, 1.0], [1.0, 2.0]])
    hessian = numerical_hessian(lambda x: 0.5 * x @ A @ x, np.array([1.5, -40.0]))
    assert np.allclose(hessian, A, rtol=1e-4)


class TestElicitGamma:
    @pytest.mark.parametrize("lower, upper, mass", [(1.0, 3.0, 0.95), (0.1, 10.0, 0.9), (2.0, 2.5, 0.99)])
    def test_matches_quantiles(self, lower, upper, mass):
        shape, rate = elicit_gamma(lower, upper, mass)
        tail = 0.5 * (1 - mass)
        q = stats.gamma.ppf([tail, 1 - tail], a=shape, scale=1 / rate)
        assert np.allclose(q, [lower, upper], rtol=1e-6)

    def test_narrow_interval(self):
        shape, rate = elicit_gamma(2.0, 2.005, 0.95)
        assert shape > 1e6
        q = stats.gamma.ppf([0.025, 0.975], a=shape, scale=1 / rate)
        assert np.allclose(q, [2.0, 2.005], rtol=1e-4)

    def test_unreachable_interval_names_bounds(self):
        with pytest.raises(ValueError, match=r"\(1.0, 1.0000001\)"):
            elicit_gamma(1.0, 1.0000001, 0.95)

    @pytest.mark.parametrize("lower, upper, mass", [(3.0, 1.0, 0.95), (-1.0, 1.0, 0.95), (1.0, 2.0, 1.5)])
    def test_invalid_input(self, lower, upper, mass):
        with pytest.raises(ValueError):
            elicit_gamma(lower, upper, mass)


class TestMonteCarloIntegrate:
    def test_second_moment_of_normal(self):
        result = monte_carlo_integrate(lambda x: x**2, lambda rng, n: rng.standard_normal(n), 20000, np.random.default_rng(0))
        assert result.n_samples == 20000
        assert result.standard_error > 0
        assert abs(result.estimate - 1.0) < 4 * result.standard_error

    def test_indicator_integral(self):
        # P(U < 0.25) for U ~ Uniform(0, 1)
        result = monte_carlo_integrate(lambda u: (u < 0.25).astype(float), lambda rng, n: rng.random(n), 20000, np.random.default_rng(1))
        assert abs(result.estimate - 0.25) < 0.02

    def test_validation(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            monte_carlo_integrate(lambda x: x, lambda r, n: r.random(n), 1, rng)
        with pytest.raises(ValueError):
            monte_carlo_integrate(lambda x: x[:5], lambda r, n: r.random(n), 10, rng)


class TestHelpers:
    def test_make_rng(self):
        assert isinstance(make_rng(), np.random.Generator)
        rng = np.random.default_rng(3)
        assert make_rng(rng=rng) is rng
        assert make_rng(1).random() == np.random.default_rng(1).random()
        with pytest.raises(ValueError):
            make_rng(1, rng)
        with pytest.raises(TypeError):
            make_rng(rng=np.random.RandomState(0))

    def test_as_column(self):
        assert as_column(2.0).shape == (1, 1)
        assert as_column([1, 2, 3]).shape == (3, 1)
        assert as_column(np.ones((2, 1))).dtype == float
        with pytest.raises(ValueError):
            as_column(np.ones((2, 2)))

    def test_logger_handlers_not_duplicated(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = PuttLogger.get_logger("puttmcmc.tests.tools", level=logging.DEBUG, log_file=str(log_file))
        same = PuttLogger.get_logger("puttmcmc.tests.tools", level=logging.DEBUG, log_file=str(log_file))
        assert logger is same
        assert len(logger.handlers) == 2
        logger.info("written")
        for handler in logger.handlers:
            handler.flush()
        assert "written" in log_file.read_text()

    def test_logger_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("PUTTMCMC_LOG_LEVEL", "debug")
        logger = PuttLogger.get_logger("puttmcmc.tests.env")
        assert logger.level == logging.DEBUG
        with pytest.raises(ValueError):
            PuttLogger.get_logger("puttmcmc.tests.env", level="chatty")

    def test_chain_logger_and_set_level(self):
        parent = PuttLogger.get_logger("puttmcmc.tests.chains", level=logging.INFO)
        child = PuttLogger.chain_logger(parent, 2)
        assert child.name == "puttmcmc.tests.chains.chain2"
        assert child.getEffectiveLevel() == logging.INFO
        assert not child.handlers

        PuttLogger.set_level("WARNING", name="puttmcmc.tests.chains")
        assert parent.level == logging.WARNING
        assert child.getEffectiveLevel() == logging.WARNING
