from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from .logging_utils import setup_logger
from .params import PhysicalParameters

logger = setup_logger(__name__)


class ParameterCache:
    """Half-detuning and half-Rabi frequency at the last requested time.

    Owned by a single ``SawtoothDrive``; not safe to share between drives.
    """

    def __init__(self):
        self.time: Optional[float] = None
        self.half_detuning = 0.0
        self.half_rabi = 0.0

    def matches(self, gt: float) -> bool:
        return self.time is not None and self.time == gt

    def store(self, gt: float, half_detuning: float, half_rabi: float) -> None:
        self.time = gt
        self.half_detuning = half_detuning
        self.half_rabi = half_rabi

    def invalidate(self) -> None:
        self.time = None


class SawtoothDrive:
    """Sawtooth laser detuning with an exponential soft switch on the Rabi frequency.

    All times are (decay rate)*t. The detuning starts from its minimum at the
    beginning of every sweep period and the Rabi frequency peaks at mid-period.
    """

    def __init__(self, params: PhysicalParameters, cache: Optional[ParameterCache] = None):
        self.rabi_frequency = params.rabi_frequency
        self.rabi_switch_coeff = params.rabi_switch_coeff
        self.rabi_switch_power = params.rabi_switch_power
        self.detuning_amplitude = params.detuning_amplitude
        self.detuning_frequency = params.detuning_frequency
        self.transition_frequency = params.transition_frequency
        self.cache = cache if cache is not None else ParameterCache()

    def cycle_fraction(self, gt: float) -> float:
        return math.modf(self.detuning_frequency * gt)[0]

    def coupling_envelope(self, gt: float) -> float:
        phase = abs(2 * self.cycle_fraction(gt) - 1)
        value = self.rabi_frequency * float(
            np.exp(-self.rabi_switch_coeff * phase**self.rabi_switch_power)
        )
        if not np.isfinite(value):
            logger.warning("Non-finite Rabi frequency at gt=%s", gt)
        return value

    def detuning(self, gt: float) -> float:
        return self.detuning_amplitude * (2 * self.cycle_fraction(gt) - 1)

    def cumulative_phase(self, gt: float) -> float:
        """Integral of (transition frequency + detuning) from 0 to gt."""
        completion, ncycles = math.modf(gt * self.detuning_frequency)
        # The sawtooth integrates to zero over every full cycle
        return (
            ncycles * self.transition_frequency
            + completion
            * (self.transition_frequency + self.detuning_amplitude * (completion - 1))
        ) / self.detuning_frequency

    def refresh_cache(self, gt: float) -> None:
        self.cache.store(gt, 0.5 * self.detuning(gt), 0.5 * self.coupling_envelope(gt))

    def half_values(self, gt: float) -> Tuple[float, float]:
        """(detuning/2, Rabi frequency/2) at gt, reusing the cache for a repeated gt."""
        if not self.cache.matches(gt):
            self.refresh_cache(gt)
        return self.cache.half_detuning, self.cache.half_rabi
