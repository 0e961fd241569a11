from __future__ import annotations

from typing import Optional, Protocol

import numpy as np

from .lindblad import decay_term, dissipator
from .logging_utils import setup_logger
from .operators import EXCITED, GROUND, LOW, MomentumStateIndex
from .params import PhysicalParameters
from .pulses import SawtoothDrive

logger = setup_logger(__name__)


class DerivativeEvaluator(Protocol):
    """What the cycle integrator needs from a master equation."""

    drive: SawtoothDrive
    index: MomentumStateIndex

    def derivative(self, gt: float, rho: np.ndarray) -> np.ndarray:
        ...

    def density_matrix(self, gt: float, coefficients: np.ndarray) -> np.ndarray:
        ...

    def initialize_cycle(self, rho: np.ndarray) -> np.ndarray:
        ...


def _flip(n: int) -> int:
    return EXCITED if n == LOW else LOW


class MomentumHamiltonian:
    """Master equation for a three-level atom on a ladder of recoil momentum states.

    Works in the rotating wave approximation; the integrated coefficients carry
    the low/excited coherences with the laser phase removed, see
    ``density_matrix``. Time is (decay rate)*t throughout.
    """

    def __init__(self, params: PhysicalParameters, drive: Optional[SawtoothDrive] = None):
        self.params = params
        self.drive = drive if drive is not None else SawtoothDrive(params)
        self.index = MomentumStateIndex(params.min_momentum, params.max_momentum)
        self.recoil_frequency = params.recoil_frequency
        self.enable_decay = params.enable_decay
        k = np.arange(self.index.kmin, self.index.kmax + 1)
        self._kinetic = self.recoil_frequency * k.astype(float) ** 2
        logger.info(
            "Momentum Hamiltonian: k in [%s, %s], %s states, recoil=%s",
            self.index.kmin,
            self.index.kmax,
            self.index.n_states,
            self.recoil_frequency,
        )

    def h_action(self, gt: float, rho: np.ndarray, nl: int, kl: int, nr: int, kr: int) -> complex:
        """Single component <nl,kl| H rho |nr,kr>."""
        idx = self.index
        half_detuning, half_rabi = self.drive.half_values(gt)

        diag_coeff = self.recoil_frequency * kl**2
        if nl == LOW:
            diag_coeff += half_detuning
        elif nl == EXCITED:
            diag_coeff -= half_detuning
        val = diag_coeff * rho[idx.entry_index(nl, kl, nr, kr)]

        if nl != GROUND:
            nlflip = _flip(nl)
            if kl - 1 >= idx.kmin:
                val += half_rabi * rho[idx.entry_index(nlflip, kl - 1, nr, kr)]
            if kl + 1 <= idx.kmax:
                val += half_rabi * rho[idx.entry_index(nlflip, kl + 1, nr, kr)]
        return val

    def derivative_entry(self, gt: float, rho: np.ndarray, nl: int, kl: int, nr: int, kr: int) -> complex:
        return (
            -1j * self.h_action(gt, rho, nl, kl, nr, kr)
            + 1j * np.conj(self.h_action(gt, rho, nr, kr, nl, kl))
            + decay_term(rho, self.index, self.params, nl, kl, nr, kr) * self.enable_decay
        )

    def h_action_matrix(self, gt: float, rho: np.ndarray) -> np.ndarray:
        """H rho for every entry, as a (nint, n_momenta, nint, n_momenta) array."""
        half_detuning, half_rabi = self.drive.half_values(gt)
        r = self.index.as_array(rho)

        diag = np.tile(self._kinetic, (self.index.nint, 1))
        diag[LOW] += half_detuning
        diag[EXCITED] -= half_detuning
        hr = diag[:, :, None, None] * r

        # Momentum kicks leaving [kmin, kmax] are dropped
        for n in (LOW, EXCITED):
            nflip = _flip(n)
            hr[n, 1:] += half_rabi * r[nflip, :-1]
            hr[n, :-1] += half_rabi * r[nflip, 1:]
        return hr

    def derivative(self, gt: float, rho: np.ndarray) -> np.ndarray:
        """d(rho)/d(gamma t) = -i[H, rho] + L(rho), on the flat representation."""
        n_states = self.index.n_states
        hr = self.h_action_matrix(gt, rho).reshape(n_states, n_states)
        # The rho H half of the commutator is the conjugate transpose of H rho
        drho = (-1j * hr + 1j * hr.conj().T).reshape(-1)
        if self.enable_decay:
            drho += dissipator(rho, self.index, self.params)
        return drho

    __call__ = derivative

    def _coherence_phase(self, gt: float) -> complex:
        return complex(np.exp(1j * self.drive.cumulative_phase(gt)))

    def _rotate(self, rho: np.ndarray, cexp: complex) -> np.ndarray:
        out = np.array(rho, dtype=complex, copy=True)
        r = self.index.as_array(out)
        k = np.arange(self.index.n_momenta)
        r[LOW, k, EXCITED, k] *= cexp
        r[EXCITED, k, LOW, k] *= np.conj(cexp)
        return out

    def density_matrix(self, gt: float, coefficients: np.ndarray) -> np.ndarray:
        """Put the laser phase back into the low/excited coherences."""
        return self._rotate(coefficients, self._coherence_phase(gt))

    def rotating_coefficients(self, gt: float, rho: np.ndarray) -> np.ndarray:
        """Inverse of ``density_matrix``."""
        return self._rotate(rho, np.conj(self._coherence_phase(gt)))

    def initialize_cycle(self, rho: np.ndarray) -> np.ndarray:
        """Prepare the coefficients for a fresh sweep period, in place.

        The phase reference is global time, so the coefficients carry over
        unchanged apart from re-imposing Hermiticity; the drive cache is
        dropped because local time restarts from zero.
        """
        self.drive.cache.invalidate()
        matrix = self.index.as_matrix(rho)
        matrix[...] = 0.5 * (matrix + matrix.conj().T)
        return rho
