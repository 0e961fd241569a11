import numpy as np
import pytest

from swapcool.params import PhysicalParameters


@pytest.fixture
def make_params():
    """Factory for small, fast parameter sets. Keyword arguments override defaults."""

    def _make(**overrides):
        values = dict(
            decay_rate=1e8,
            max_momentum=2,
            branching_ratio=0.3,
            enable_decay=1.0,
            rabi_frequency=1.5,
            rabi_switch_coeff=1.0,
            rabi_switch_power=2.0,
            detuning_amplitude=2.0,
            detuning_frequency=0.2,
            transition_frequency=50.0,
            stationary_decay_probability=0.6,
            recoil_frequency=0.3,
        )
        values.update(overrides)
        return PhysicalParameters(**values)

    return _make


@pytest.fixture
def random_density_matrix():
    """Factory for a random flat, Hermitian, positive, unit-trace density matrix."""

    def _make(index, seed=0):
        rng = np.random.default_rng(seed)
        n = index.n_states
        a = rng.normal(size=(n, n)) + 1j * rng.normal(size=(n, n))
        rho = a @ a.conj().T
        rho /= np.trace(rho)
        return rho.reshape(-1)

    return _make
