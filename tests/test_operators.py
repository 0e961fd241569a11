import numpy as np
import pytest

from swapcool.operators import EXCITED, GROUND, LOW, N_LEVELS, MomentumStateIndex


@pytest.fixture
def index():
    return MomentumStateIndex(-2, 3)


def test_sizes(index):
    assert index.n_momenta == 6
    assert index.n_states == 18
    assert index.n_entries == 324
    assert index.zeros().shape == (324,)


def test_state_index_formula(index):
    assert index.state_index(GROUND, -2) == 0
    assert index.state_index(GROUND, 3) == 5
    assert index.state_index(LOW, -2) == 6
    assert index.state_index(EXCITED, 0) == 2 + 6 * 2


def test_state_index_is_a_bijection(index):
    seen = set()
    for n, k in index.states():
        idx = index.state_index(n, k)
        assert index.state_coords(idx) == (n, k)
        seen.add(idx)
    assert seen == set(range(index.n_states))


def test_entry_index_is_row_major(index):
    n = index.n_states
    assert index.entry_index(LOW, 1, EXCITED, -2) == index.state_index(LOW, 1) * n + index.state_index(
        EXCITED, -2
    )
    entries = {
        index.entry_index(nl, kl, nr, kr)
        for nl, kl in index.states()
        for nr, kr in index.states()
    }
    assert entries == set(range(index.n_entries))


@pytest.mark.parametrize("n, k", [(0, -3), (0, 4), (-1, 0), (N_LEVELS, 0)])
def test_out_of_window_raises(index, n, k):
    with pytest.raises(IndexError):
        index.state_index(n, k)


def test_kmin_greater_than_kmax_rejected():
    with pytest.raises(ValueError):
        MomentumStateIndex(1, 0)


def test_views_agree_with_entry_index(index, random_density_matrix):
    rho = random_density_matrix(index)
    arr = index.as_array(rho)
    mat = index.as_matrix(rho)
    for nl, kl, nr, kr in [(0, -2, 2, 3), (1, 0, 1, 0), (2, 3, 0, -1)]:
        flat = rho[index.entry_index(nl, kl, nr, kr)]
        assert arr[nl, kl - index.kmin, nr, kr - index.kmin] == flat
        assert mat[index.state_index(nl, kl), index.state_index(nr, kr)] == flat


def test_trace_reductions(index):
    rho = index.zeros()
    rho[index.entry_index(GROUND, 0, GROUND, 0)] = 0.2
    rho[index.entry_index(LOW, 0, LOW, 0)] = 0.3
    rho[index.entry_index(LOW, 3, LOW, 3)] = 0.4
    rho[index.entry_index(EXCITED, -2, EXCITED, -2)] = 0.1
    rho[index.entry_index(LOW, 0, EXCITED, -2)] = 0.05j

    assert index.total_trace(rho) == pytest.approx(1.0)
    assert index.partial_trace_over_momentum(rho, LOW) == pytest.approx(0.7)
    assert index.partial_trace_over_momentum(rho, EXCITED) == pytest.approx(0.1)
    assert index.partial_trace_over_level(rho, 0) == pytest.approx(0.5)
    assert index.partial_trace_over_level(rho, -2) == pytest.approx(0.1)
    assert index.partial_trace_over_level(rho, 1) == 0
    with pytest.raises(IndexError):
        index.partial_trace_over_level(rho, 5)


def test_partial_traces_sum_to_total(index, random_density_matrix):
    rho = random_density_matrix(index, seed=3)
    total = index.total_trace(rho)
    by_level = sum(index.partial_trace_over_momentum(rho, n) for n in range(N_LEVELS))
    by_momentum = sum(index.partial_trace_over_level(rho, k) for k in index.momenta)
    assert by_level == pytest.approx(total)
    assert by_momentum == pytest.approx(total)


def test_purity(index, random_density_matrix):
    psi = np.zeros(index.n_states, dtype=complex)
    psi[index.state_index(LOW, 1)] = 1 / np.sqrt(2)
    psi[index.state_index(EXCITED, 2)] = 1j / np.sqrt(2)
    pure = np.outer(psi, psi.conj()).reshape(-1)
    assert index.purity(pure) == pytest.approx(1.0)

    mixed = random_density_matrix(index, seed=1)
    mat = index.as_matrix(mixed)
    assert index.purity(mixed) == pytest.approx(np.trace(mat @ mat))
    assert index.purity(mixed).real < 1.0
