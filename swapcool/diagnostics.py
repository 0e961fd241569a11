from __future__ import annotations

from typing import Dict, Tuple

import numpy as np
from qutip import Qobj

from .logging_utils import setup_logger
from .operators import EXCITED, LOW, MomentumStateIndex
from .params import PhysicalParameters

logger = setup_logger(__name__)

QUALITY_OKAY = "  "
QUALITY_LOW = "* "
QUALITY_VERY_LOW = "**"


def level_populations(rho: np.ndarray, index: MomentumStateIndex) -> np.ndarray:
    return np.array(
        [index.partial_trace_over_momentum(rho, n).real for n in range(index.nint)]
    )


def momentum_distribution(rho: np.ndarray, index: MomentumStateIndex) -> Tuple[np.ndarray, np.ndarray]:
    """Momenta and P(k) summed over internal levels."""
    k = np.arange(index.kmin, index.kmax + 1)
    return k, index.populations(rho).real.sum(axis=0)


def calc_krms(rho: np.ndarray, index: MomentumStateIndex) -> float:
    k, prob = momentum_distribution(rho, index)
    return float(np.sqrt(np.sum(prob * k**2)))


def calc_krms_unleaked(rho: np.ndarray, index: MomentumStateIndex) -> float:
    """RMS momentum of the low and excited levels, renormalized to their population."""
    pops = index.populations(rho).real
    unleaked = pops[LOW] + pops[EXCITED]
    unleaked_prob = float(unleaked.sum())
    if unleaked_prob <= 0:
        logger.warning("No population left in the low and excited levels")
        return 0.0
    k = np.arange(index.kmin, index.kmax + 1)
    return float(np.sqrt(np.sum(unleaked / unleaked_prob * k**2)))


def state_info(rho: np.ndarray, index: MomentumStateIndex) -> Dict[str, object]:
    pops = level_populations(rho, index)
    return {
        "populations": pops,
        "trace": index.total_trace(rho).real,
        "purity": index.purity(rho).real,
        "k_rms": calc_krms(rho, index),
        "k_rms_unleaked": calc_krms_unleaked(rho, index),
    }


def as_qobj(rho: np.ndarray, index: MomentumStateIndex) -> Qobj:
    """Density matrix as a qutip operator on (internal level) x (momentum)."""
    dims = [index.nint, index.n_momenta]
    return Qobj(index.as_matrix(rho), dims=[dims, dims])


def internal_state(rho: np.ndarray, index: MomentumStateIndex) -> Qobj:
    """Reduced 3x3 internal-level density matrix, momentum traced out."""
    return as_qobj(rho, index).ptrace(0)


def _ratio(num: float, den: float) -> float:
    if den == 0:
        return float("inf") if num else float("nan")
    return num / den


def quality_metrics(rho: np.ndarray, index: MomentumStateIndex, params: PhysicalParameters) -> Dict[str, float]:
    """Rough figures of merit for the sweep, evaluated on the initial state."""
    recoil = params.recoil_frequency
    amp = params.detuning_amplitude
    freq = params.detuning_frequency
    rabi = params.rabi_frequency
    dopshift = recoil * calc_krms(rho, index)
    return {
        "Ramp size": _ratio(amp, 4 * dopshift),
        "Q factor": _ratio(amp * freq, 2 * (dopshift - recoil) + rabi),
        "Adiabaticity": _ratio(rabi * rabi, 2 * amp * freq),
        "Doppler splitting": _ratio(2 * (dopshift - recoil), rabi),
    }


def evaluate_quality_metric(
    metric: float,
    low_thresh: float = 10.0,
    very_low_thresh: float = 1.0,
) -> str:
    if metric < very_low_thresh:
        return QUALITY_VERY_LOW
    if metric < low_thresh:
        return QUALITY_LOW
    return QUALITY_OKAY


def log_system_info(
    rho: np.ndarray,
    index: MomentumStateIndex,
    params: PhysicalParameters,
    description: str,
    duration: float,
    tolerance: float,
) -> None:
    logger.info("In units of decay rate when applicable:")
    logger.info("    Decay rate: %s", params.decay_rate)
    logger.info("    Decay: %s", "on" if params.enable_decay else "off")
    logger.info("    Branching ratio: %s", params.branching_ratio)
    logger.info("    Delta amplitude: %s", params.detuning_amplitude)
    logger.info("    Sawtooth frequency: %s", params.detuning_frequency)
    logger.info("    Rabi frequency: %s", params.rabi_frequency)
    logger.info("    Recoil frequency: %s", params.recoil_frequency)
    logger.info("    Initial state: %s", description)
    logger.info("    Momentum state range: [%s, %s]", index.kmin, index.kmax)
    logger.info(
        "    Duration: %s (%s cycles)", duration, params.detuning_frequency * duration
    )
    logger.info("    Stepper tolerance: %s", tolerance)
    logger.info("Quality metrics (* mildly low, ** very low):")
    for name, value in quality_metrics(rho, index, params).items():
        logger.info("    %s%s: %s", evaluate_quality_metric(value), name, value)
