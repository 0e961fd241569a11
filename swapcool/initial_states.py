from __future__ import annotations

import numpy as np
from scipy.constants import Boltzmann as K_BOLTZMANN
from scipy.constants import hbar as HBAR
from scipy.integrate import quad

from .logging_utils import setup_logger
from .operators import LOW, MomentumStateIndex
from .params import ConfigurationError, PhysicalParameters, SimulationParameters

logger = setup_logger(__name__)

# Transverse momenta are integrated out to this many standard deviations per axis
N_STDDEVS = 5


def _low_level_state(index: MomentumStateIndex, weights: np.ndarray) -> np.ndarray:
    total = float(np.sum(weights))
    if total <= 0:
        raise ConfigurationError("Initial momentum distribution has zero total weight")
    rho = index.zeros()
    for k, weight in zip(index.momenta, weights):
        rho[index.entry_index(LOW, k, LOW, k)] = weight / total
    return rho


def single_momentum_state(index: MomentumStateIndex, k: int) -> np.ndarray:
    """All population in the low level at momentum k."""
    if not index.in_window(k):
        raise ConfigurationError(
            f"Initial momentum {k} outside [{index.kmin}, {index.kmax}]"
        )
    rho = index.zeros()
    rho[index.entry_index(LOW, k, LOW, k)] = 1.0
    return rho


def thermal_state(temp: float, index: MomentumStateIndex, params: PhysicalParameters) -> np.ndarray:
    """Boltzmann-distributed momenta in the low level."""
    if temp <= 0:
        raise ConfigurationError(f"Initial temperature must be positive, got {temp}")
    recoil_energy = HBAR * params.recoil_frequency * params.decay_rate
    k = np.arange(index.kmin, index.kmax + 1, dtype=float)
    weights = np.exp(-recoil_energy * k**2 / (K_BOLTZMANN * temp))
    return _low_level_state(index, weights)


def _k_axial_integrand(k: float, k_axial: float, sigma: float) -> float:
    ratio = k_axial / k if k else 0.0
    return k * np.exp(-0.5 * (k / sigma) ** 2) / np.sqrt(1 - ratio**2)


def k_axial_distr(k_axial: float, sigma: float, epsabs: float = 0.0, epsrel: float = 1e-7) -> float:
    """Unnormalized axial momentum distribution of an isotropic Gaussian.

    Integrates the magnitude sqrt(k_trans^2 + k_axial^2) out to the point
    where every Cartesian component is ``N_STDDEVS`` standard deviations.
    """
    k_axial = abs(k_axial)
    upper = N_STDDEVS * np.sqrt(3) * sigma
    if k_axial >= upper:
        return 0.0
    result, _ = quad(
        _k_axial_integrand, k_axial, upper, args=(k_axial, sigma), epsabs=epsabs, epsrel=epsrel,
        limit=1000,
    )
    return result


def antihydrogen_2s_state(temp: float, index: MomentumStateIndex, params: PhysicalParameters) -> np.ndarray:
    """Axial momentum distribution of a thermal 2s antihydrogen cloud, in the low level.

    Has more weight in high momentum states than ``thermal_state``.
    """
    if temp <= 0:
        raise ConfigurationError(f"Initial temperature must be positive, got {temp}")
    if not params.recoil_frequency > 0:
        raise ConfigurationError("Antihydrogen distribution needs a positive recoil frequency")
    sigma = np.sqrt(
        K_BOLTZMANN * temp / (2 * HBAR * params.recoil_frequency * params.decay_rate)
    )
    weights = np.array([k_axial_distr(k, sigma) for k in index.momenta])
    return _low_level_state(index, weights)


def initial_state(
    index: MomentumStateIndex,
    physical_params: PhysicalParameters,
    sim_params: SimulationParameters,
) -> np.ndarray:
    if not sim_params.is_thermal:
        logger.info("Initial state: all population at k=%s", sim_params.initial_momentum)
        return single_momentum_state(index, sim_params.initial_momentum)
    if sim_params.use_antihydrogen_distr:
        logger.info(
            "Initial state: antihydrogen 2s axial distribution at T=%s K",
            sim_params.initial_temperature,
        )
        return antihydrogen_2s_state(sim_params.initial_temperature, index, physical_params)
    logger.info("Initial state: thermal distribution at T=%s K", sim_params.initial_temperature)
    return thermal_state(sim_params.initial_temperature, index, physical_params)
