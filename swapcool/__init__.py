"""Sawtooth-sweep laser cooling simulator on a ladder of recoil momentum states."""

from .params import (
    ConfigurationError,
    PhysicalParameters,
    SimulationParameters,
    load_config,
)
from .pulses import ParameterCache, SawtoothDrive
from .operators import EXCITED, GROUND, LOW, N_LEVELS, MomentumStateIndex
from .lindblad import decay_term, dissipator
from .hamiltonian import MomentumHamiltonian
from .simulation import CycleIntegrator, IntegrationError, cycle_schedule, run_swap_cooling
from .initial_states import (
    antihydrogen_2s_state,
    initial_state,
    single_momentum_state,
    thermal_state,
)
from .diagnostics import (
    as_qobj,
    calc_krms,
    calc_krms_unleaked,
    internal_state,
    momentum_distribution,
    quality_metrics,
    state_info,
)

__all__ = [
    "ConfigurationError",
    "PhysicalParameters",
    "SimulationParameters",
    "load_config",
    "ParameterCache",
    "SawtoothDrive",
    "GROUND",
    "LOW",
    "EXCITED",
    "N_LEVELS",
    "MomentumStateIndex",
    "decay_term",
    "dissipator",
    "MomentumHamiltonian",
    "CycleIntegrator",
    "IntegrationError",
    "cycle_schedule",
    "run_swap_cooling",
    "antihydrogen_2s_state",
    "initial_state",
    "single_momentum_state",
    "thermal_state",
    "as_qobj",
    "calc_krms",
    "calc_krms_unleaked",
    "internal_state",
    "momentum_distribution",
    "quality_metrics",
    "state_info",
]
