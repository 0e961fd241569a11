from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from scipy.constants import c as SPEED_OF_LIGHT
from scipy.constants import hbar as HBAR

NumberLike = Union[float, int]

DEFAULT_STATIONARY_DECAY_PROB = 0.6
APPROX_OUTPUT_PTS_PER_CYCLE = 100


class ConfigurationError(ValueError):
    """Invalid or missing simulation parameter."""


def load_config(path: Union[str, Path]) -> Dict[str, float]:
    """Read ``name value`` pairs from a plain-text config file.

    ``name = value`` is accepted as well. ``#`` starts a comment.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    values: Dict[str, float] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        parts = line.replace("=", " ").split()
        if len(parts) != 2:
            raise ConfigurationError(f"{path}:{lineno}: expected 'name value', got {raw!r}")
        name, value = parts
        try:
            values[name] = float(value)
        except ValueError as exc:
            raise ConfigurationError(
                f"{path}:{lineno}: parameter {name!r} is not numeric: {value!r}"
            ) from exc
    return values


def _get(mapping: Mapping[str, NumberLike], name: str, default: Optional[float] = None) -> float:
    value = mapping.get(name, default)
    if value is None:
        raise ConfigurationError(f"Missing required parameter {name!r}")
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Parameter {name!r} is not numeric: {value!r}") from exc
    if math.isnan(value) and default is None:
        raise ConfigurationError(f"Missing required parameter {name!r}")
    return value


def _optional(mapping: Mapping[str, NumberLike], name: str) -> Optional[float]:
    value = _get(mapping, name, default=math.nan)
    return None if math.isnan(value) else value


@dataclass
class PhysicalParameters:
    """Atomic and laser parameters. Rates and frequencies are per decay rate."""

    decay_rate: float = 1.0
    mass: float = math.inf
    max_momentum: int = 0
    min_momentum: Optional[int] = None
    branching_ratio: float = 0.5
    enable_decay: float = 1.0
    rabi_frequency: float = 0.0
    rabi_switch_coeff: float = 0.0
    rabi_switch_power: float = 2.0
    detuning_amplitude: float = 0.0
    detuning_frequency: float = 1.0
    transition_frequency: float = 0.0
    stationary_decay_probability: float = DEFAULT_STATIONARY_DECAY_PROB
    recoil_frequency: Optional[float] = None

    def __post_init__(self):
        # Symmetric window by default
        if self.min_momentum is None:
            self.min_momentum = -self.max_momentum
        self.max_momentum = int(self.max_momentum)
        self.min_momentum = int(self.min_momentum)
        if self.min_momentum > self.max_momentum:
            raise ConfigurationError(
                f"Min momentum {self.min_momentum} greater than max momentum {self.max_momentum}."
            )
        if not self.detuning_frequency > 0:
            raise ConfigurationError(
                f"Detuning frequency must be positive, got {self.detuning_frequency}"
            )
        if not 0.0 <= self.branching_ratio <= 1.0:
            raise ConfigurationError(f"Branching ratio outside [0, 1]: {self.branching_ratio}")
        if not 0.0 <= self.stationary_decay_probability <= 1.0:
            raise ConfigurationError(
                "Stationary decay probability outside [0, 1]: "
                f"{self.stationary_decay_probability}"
            )
        if self.decay_rate <= 0:
            raise ConfigurationError(f"Decay rate must be positive, got {self.decay_rate}")
        if not self.mass > 0:
            raise ConfigurationError(f"Mass must be positive, got {self.mass}")
        self.enable_decay = 1.0 if self.enable_decay else 0.0
        if self.recoil_frequency is None:
            k_photon_per_decay = self.transition_frequency / SPEED_OF_LIGHT
            self.recoil_frequency = HBAR * k_photon_per_decay**2 * self.decay_rate / (2 * self.mass)

    @property
    def n_momenta(self) -> int:
        return self.max_momentum - self.min_momentum + 1

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, NumberLike]) -> "PhysicalParameters":
        decay_rate = _get(mapping, "spontaneous_decay_rate")
        low_energy = _get(mapping, "low_energy_level")
        high_energy = _get(mapping, "high_energy_level")
        min_momentum = _optional(mapping, "min_momentum")
        stationary = _optional(mapping, "stationary_decay_probability")
        return cls(
            decay_rate=decay_rate,
            mass=_get(mapping, "mass"),
            max_momentum=int(_get(mapping, "max_momentum")),
            min_momentum=None if min_momentum is None else int(min_momentum),
            branching_ratio=_get(mapping, "branching_ratio"),
            enable_decay=_get(mapping, "enable_decay"),
            rabi_frequency=_get(mapping, "rabi_frequency"),
            rabi_switch_coeff=_get(mapping, "rabi_switch_coeff"),
            rabi_switch_power=_get(mapping, "rabi_switch_power"),
            detuning_amplitude=_get(mapping, "detuning_amplitude"),
            detuning_frequency=_get(mapping, "detuning_frequency"),
            transition_frequency=(high_energy - low_energy) / (HBAR * decay_rate),
            stationary_decay_probability=(
                DEFAULT_STATIONARY_DECAY_PROB if stationary is None else stationary
            ),
        )


@dataclass
class SimulationParameters:
    """Run length, stepper settings and initial-state choice."""

    duration: float = 1.0
    tolerance: float = 1e-6
    initial_temperature: float = 0.0
    initial_momentum: Optional[int] = None
    use_antihydrogen_distr: bool = False
    output_points_per_cycle: float = APPROX_OUTPUT_PTS_PER_CYCLE
    method: str = "RK45"

    def __post_init__(self):
        if self.duration < 0:
            raise ConfigurationError(f"Duration must be non-negative, got {self.duration}")
        if not self.tolerance > 0:
            raise ConfigurationError(f"Tolerance must be positive, got {self.tolerance}")
        if not self.output_points_per_cycle > 0:
            raise ConfigurationError("Output points per cycle must be positive")
        if self.initial_momentum is not None:
            self.initial_momentum = int(self.initial_momentum)

    @property
    def is_thermal(self) -> bool:
        return self.initial_momentum is None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, NumberLike]) -> "SimulationParameters":
        initial_momentum = _optional(mapping, "initial_momentum")
        initial_temperature = _optional(mapping, "initial_temperature")
        use_antihydrogen = _optional(mapping, "use_antihydrogen_distr")
        if initial_momentum is None and initial_temperature is None:
            raise ConfigurationError(
                "Either 'initial_momentum' or 'initial_temperature' must be given"
            )
        return cls(
            duration=_get(mapping, "duration"),
            tolerance=_get(mapping, "tolerance"),
            initial_temperature=0.0 if initial_temperature is None else initial_temperature,
            initial_momentum=None if initial_momentum is None else int(initial_momentum),
            use_antihydrogen_distr=bool(use_antihydrogen),
        )
