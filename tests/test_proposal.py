import numpy as np
import pytest
from scipy import stats

from puttmcmc.config import IndependenceProposalConfig
from puttmcmc.core.proposal import FunctionProposal
from puttmcmc.core.state import ChainState
from puttmcmc.proposals.independence import GammaNormalIndependenceProposal, IndependentProposal
from puttmcmc.proposals.randomwalk import GaussianRandomWalk, IntegerRandomWalk

# --------------------------------------------------
# Fixtures
# --------------------------------------------------
@pytest.fixture
def rng():
    return np.random.default_rng(42)

@pytest.fixture
def current_state():
    return ChainState(position=np.array([[1.0], [-0.5]]), log_target=-0.625)

@pytest.fixture
def gamma_normal():
    return GammaNormalIndependenceProposal(alpha_shape=20.0, alpha_rate=10.0, beta_mean=-0.25, beta_sd=0.05)

# --------------------------------------------------
# Gaussian random walk
# --------------------------------------------------
def test_gaussian_rw_sample_centered_on_current(rng, current_state):
    proposal = GaussianRandomWalk(np.eye(2))
    samples = np.array([proposal.sample(current_state, rng).position for _ in range(2000)]).squeeze()
    assert samples.shape == (2000, 2)
    assert np.allclose(samples.mean(axis=0), current_state.position.ravel(), atol=0.1)

def test_gaussian_rw_is_symmetric(current_state):
    proposal = GaussianRandomWalk(np.eye(2))
    proposed = ChainState(position=current_state.position + np.array([[0.5], [0.5]]))
    logq_fwd, logq_rev = proposal.proposal_logpdf(current_state, proposed)
    assert np.isclose(logq_fwd, logq_rev)
    assert np.isclose(logq_fwd, -0.25 - np.log(2 * np.pi))
    assert proposal.log_proposal_ratio(current_state, proposed) == 0.0

def test_gaussian_rw_isotropic():
    proposal = GaussianRandomWalk.isotropic(3, 0.5)
    assert np.allclose(proposal.cov, 0.25 * np.eye(3))
    with pytest.raises(ValueError):
        GaussianRandomWalk.isotropic(3, 0.0)

def test_gaussian_rw_rejects_non_square():
    with pytest.raises(ValueError):
        GaussianRandomWalk(np.ones((2, 3)))

# --------------------------------------------------
# Integer random walk
# --------------------------------------------------
def test_integer_rw_steps(rng):
    proposal = IntegerRandomWalk(max_step=2)
    state = ChainState(position=np.array([[5.0]]))
    steps = np.array([proposal.sample(state, rng).position[0, 0] - 5.0 for _ in range(2000)])
    assert set(np.unique(steps)) == {-2.0, -1.0, 1.0, 2.0}

def test_integer_rw_density(rng):
    proposal = IntegerRandomWalk(max_step=2)
    state = ChainState(position=np.array([[5.0]]))
    assert np.allclose(proposal.proposal_logpdf(state, ChainState(position=np.array([[3.0]]))), np.log(0.25))
    assert proposal.proposal_logpdf(state, ChainState(position=np.array([[5.0]])))[0] == -np.inf
    assert proposal.log_proposal_ratio(state, ChainState(position=np.array([[6.0]]))) == 0.0

def test_integer_rw_moves_one_coordinate(rng):
    proposal = IntegerRandomWalk(max_step=1)
    state = ChainState(position=np.array([[3.0], [3.0], [3.0]]))
    moved = np.array([
        np.count_nonzero(proposal.sample(state, rng).position != state.position) for _ in range(500)
    ])
    assert np.all(moved == 1)
    assert np.array_equal(state.position, [[3.0], [3.0], [3.0]])

def test_integer_rw_density_in_several_dimensions():
    proposal = IntegerRandomWalk(max_step=2)
    state = ChainState(position=np.array([[0.0], [0.0]]))
    one_move = ChainState(position=np.array([[0.0], [-2.0]]))
    two_moves = ChainState(position=np.array([[1.0], [1.0]]))
    assert np.allclose(proposal.proposal_logpdf(state, one_move), np.log(1 / 8))
    assert proposal.proposal_logpdf(state, two_moves)[0] == -np.inf

@pytest.mark.parametrize("max_step", [0, -1, 1.5])
def test_integer_rw_invalid_step(max_step):
    with pytest.raises(ValueError):
        IntegerRandomWalk(max_step=max_step)

# --------------------------------------------------
# Independence proposals
# --------------------------------------------------
def test_independent_sample_ignores_current(rng):
    proposal = IndependentProposal(mu=np.array([[3.0], [-3.0]]), sigma=0.5 * np.eye(2))
    far = ChainState(position=np.array([[100.0], [100.0]]))
    samples = np.array([proposal.sample(far, rng).position for _ in range(2000)]).squeeze()
    assert np.allclose(samples.mean(axis=0), [3.0, -3.0], atol=0.1)

def test_independent_log_ratio():
    proposal = IndependentProposal(mu=np.zeros((2, 1)), sigma=2.0 * np.eye(2))
    state1 = ChainState(position=np.array([[0.0], [0.0]]))
    state2 = ChainState(position=np.array([[1.0], [1.0]]))
    expected = stats.multivariate_normal.logpdf([0.0, 0.0], cov=2.0 * np.eye(2)) - stats.multivariate_normal.logpdf([1.0, 1.0], cov=2.0 * np.eye(2))
    assert np.isclose(proposal.log_proposal_ratio(state1, state2), expected)
    assert np.isclose(proposal.log_proposal_ratio(state2, state1), -expected)

def test_gamma_normal_sample_support(gamma_normal, rng, current_state):
    samples = np.hstack([gamma_normal.sample(current_state, rng).position for _ in range(4000)])
    assert samples.shape == (2, 4000)
    assert np.all(samples[0] > 0)
    assert np.isclose(samples[0].mean(), 2.0, atol=0.05)
    assert np.isclose(samples[1].mean(), -0.25, atol=0.01)

def test_gamma_normal_log_ratio(gamma_normal):
    current = ChainState(position=np.array([[2.1], [-0.26]]))
    proposed = ChainState(position=np.array([[1.8], [-0.2]]))

    def log_q(alpha, beta):
        return stats.gamma.logpdf(alpha, a=20.0, scale=0.1) + stats.norm.logpdf(beta, -0.25, 0.05)

    expected = log_q(2.1, -0.26) - log_q(1.8, -0.2)
    assert np.isclose(gamma_normal.log_proposal_ratio(current, proposed), expected)

def test_gamma_normal_requires_two_parameters(gamma_normal):
    with pytest.raises(ValueError):
        gamma_normal.proposal_logpdf(ChainState(position=np.zeros((3, 1))), ChainState(position=np.zeros((3, 1))))

def test_gamma_normal_invalid_parameters():
    with pytest.raises(ValueError):
        GammaNormalIndependenceProposal(0.0, 1.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        GammaNormalIndependenceProposal(1.0, 1.0, 0.0, -1.0)

def test_gamma_normal_from_interval():
    proposal = GammaNormalIndependenceProposal.from_interval(1.5, 3.0, beta_mean=-0.25, beta_sd=0.02)
    q = stats.gamma.ppf([0.025, 0.975], a=proposal.alpha_shape, scale=1.0 / proposal.alpha_rate)
    assert np.allclose(q, [1.5, 3.0], rtol=1e-6)

def test_independence_config_build():
    config = IndependenceProposalConfig(alpha_interval=(1.0, 4.0), beta_mean=0.0, beta_sd=1.0, alpha_mass=0.9)
    proposal = config.build()
    q = stats.gamma.ppf([0.05, 0.95], a=proposal.alpha_shape, scale=1.0 / proposal.alpha_rate)
    assert np.allclose(q, [1.0, 4.0], rtol=1e-6)
    assert proposal.beta_sd == 1.0

# --------------------------------------------------
# Function proposal
# --------------------------------------------------
def test_function_proposal_symmetric_default(rng, current_state):
    proposal = FunctionProposal(lambda x, r: x + 1.0)
    proposed = proposal.sample(current_state, rng)
    assert np.allclose(proposed.position, current_state.position + 1.0)
    assert proposal.is_symmetric
    assert proposal.log_proposal_ratio(current_state, proposed) == 0.0

def test_function_proposal_accepts_flat_output(rng):
    proposal = FunctionProposal(lambda x, r: [1.0, 2.0], log_ratio=lambda c, p: 0.5)
    state = ChainState(position=np.zeros((2, 1)))
    proposed = proposal.sample(state, rng)
    assert proposed.position.shape == (2, 1)
    assert proposal.log_proposal_ratio(state, proposed) == 0.5

def test_function_proposal_does_not_mutate_current(rng, current_state):
    def propose(x, r):
        x += 1.0
        return x

    before = current_state.position.copy()
    FunctionProposal(propose).sample(current_state, rng)
    assert np.array_equal(current_state.position, before)

def test_function_proposal_shape_mismatch(rng, current_state):
    with pytest.raises(ValueError):
        FunctionProposal(lambda x, r: np.zeros(3)).sample(current_state, rng)

def test_function_proposal_requires_callable():
    with pytest.raises(TypeError):
        FunctionProposal(None)
