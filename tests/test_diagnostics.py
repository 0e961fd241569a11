import numpy as np
import pytest

from swapcool.diagnostics import (
    QUALITY_LOW,
    QUALITY_OKAY,
    QUALITY_VERY_LOW,
    as_qobj,
    calc_krms,
    calc_krms_unleaked,
    evaluate_quality_metric,
    internal_state,
    level_populations,
    momentum_distribution,
    quality_metrics,
    state_info,
)
from swapcool.operators import EXCITED, GROUND, LOW, MomentumStateIndex


@pytest.fixture
def index():
    return MomentumStateIndex(-3, 3)


@pytest.fixture
def rho(index):
    rho = index.zeros()
    rho[index.entry_index(GROUND, 3, GROUND, 3)] = 0.5
    rho[index.entry_index(LOW, 1, LOW, 1)] = 0.25
    rho[index.entry_index(EXCITED, -1, EXCITED, -1)] = 0.25
    rho[index.entry_index(LOW, 1, EXCITED, -1)] = 0.1j
    rho[index.entry_index(EXCITED, -1, LOW, 1)] = -0.1j
    return rho


def test_level_populations(rho, index):
    np.testing.assert_allclose(level_populations(rho, index), [0.5, 0.25, 0.25])


def test_momentum_distribution(rho, index):
    k, prob = momentum_distribution(rho, index)
    np.testing.assert_array_equal(k, np.arange(-3, 4))
    assert prob[k == 3][0] == pytest.approx(0.5)
    assert prob[k == -1][0] == pytest.approx(0.25)
    assert prob.sum() == pytest.approx(1.0)


def test_krms(rho, index):
    assert calc_krms(rho, index) == pytest.approx(np.sqrt(0.5 * 9 + 0.25 + 0.25))
    # Ground-state population at k=3 is excluded
    assert calc_krms_unleaked(rho, index) == pytest.approx(1.0)


def test_krms_unleaked_with_everything_leaked(index):
    rho = index.zeros()
    rho[index.entry_index(GROUND, 0, GROUND, 0)] = 1.0
    assert calc_krms_unleaked(rho, index) == 0.0


def test_state_info(rho, index):
    info = state_info(rho, index)
    assert info["trace"] == pytest.approx(1.0)
    assert info["purity"] == pytest.approx(0.5**2 + 2 * 0.25**2 + 2 * 0.01)
    assert info["k_rms_unleaked"] == pytest.approx(1.0)


def test_qobj_export(rho, index):
    q = as_qobj(rho, index)
    assert q.dims == [[3, 7], [3, 7]]
    assert q.isherm
    internal = internal_state(rho, index)
    assert internal.shape == (3, 3)
    np.testing.assert_allclose(np.diag(internal.full()).real, [0.5, 0.25, 0.25])
    # Coherence between different momenta vanishes under the momentum trace
    assert internal.full()[LOW, EXCITED] == pytest.approx(0.0)


def test_quality_metrics(index, make_params):
    params = make_params(
        recoil_frequency=0.5, detuning_amplitude=40.0, detuning_frequency=0.05, rabi_frequency=5.0
    )
    rho = index.zeros()
    rho[index.entry_index(LOW, 2, LOW, 2)] = 1.0
    metrics = quality_metrics(rho, index, params)
    dopshift = 0.5 * 2
    assert metrics["Ramp size"] == pytest.approx(40.0 / (4 * dopshift))
    assert metrics["Q factor"] == pytest.approx(40.0 * 0.05 / (2 * (dopshift - 0.5) + 5.0))
    assert metrics["Adiabaticity"] == pytest.approx(25.0 / (2 * 40.0 * 0.05))
    assert metrics["Doppler splitting"] == pytest.approx(2 * (dopshift - 0.5) / 5.0)


def test_quality_metrics_zero_spread_is_infinite_ramp(index, make_params):
    params = make_params(recoil_frequency=0.5, detuning_amplitude=40.0)
    rho = index.zeros()
    rho[index.entry_index(LOW, 0, LOW, 0)] = 1.0
    assert quality_metrics(rho, index, params)["Ramp size"] == float("inf")


@pytest.mark.parametrize(
    "value, flag", [(0.5, QUALITY_VERY_LOW), (5.0, QUALITY_LOW), (50.0, QUALITY_OKAY)]
)
def test_evaluate_quality_metric(value, flag):
    assert evaluate_quality_metric(value) == flag
